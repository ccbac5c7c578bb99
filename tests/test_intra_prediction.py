import pytest

from wkimage.compression.intra_prediction import (
    ALL_MODES,
    SAFE_EDGE_MODES,
    IntraMode,
    IntraPredictor,
)


def test_dc_prediction():
    pred = IntraPredictor(8)
    result = pred.predict(IntraMode.DC, [100] * 8, [100] * 8, 100)
    assert len(result) == 64
    assert all(v == 100 for v in result)


def test_edge_block_uses_safe_modes():
    pred = IntraPredictor(8)
    block = [128] * 64
    mode, _ = pred.select_best_mode_edge(block, [128] * 8, [128] * 8, 128, True, False)
    assert mode in SAFE_EDGE_MODES


def test_residual_roundtrip():
    pred = IntraPredictor(8)
    block = bytes((i * 4) % 256 for i in range(64))
    prediction = bytes([128] * 64)
    residual = pred.compute_residual(block, prediction)
    assert pred.reconstruct(prediction, residual) == block


@pytest.mark.parametrize("mode", list(IntraMode))
def test_from_u8_roundtrip(mode):
    assert IntraMode.from_u8(int(mode)) is mode


def test_from_u8_unknown():
    assert IntraMode.from_u8(11) is None


def test_all_modes_match_codes_in_order():
    assert [IntraMode.from_u8(v) for v in range(11)] == list(ALL_MODES)


def test_vertical_copies_top():
    pred = IntraPredictor(8)
    top = list(range(10, 90, 10))
    result = pred.predict(IntraMode.VERTICAL, top, [0] * 8, 0)
    for y in range(8):
        assert list(result[y * 8:(y + 1) * 8]) == top


def test_horizontal_copies_left():
    pred = IntraPredictor(8)
    left = list(range(20, 100, 10))
    result = pred.predict(IntraMode.HORIZONTAL, [0] * 8, left, 0)
    for y in range(8):
        assert set(result[y * 8:(y + 1) * 8]) == {left[y]}


def test_missing_neighbours_default_to_128():
    pred = IntraPredictor(4)
    assert pred.predict(IntraMode.VERTICAL, [], [], 0) == bytes([128] * 16)


def test_true_motion_clamps():
    pred = IntraPredictor(4)
    high = pred.predict(IntraMode.TRUE_MOTION, [255] * 4, [255] * 4, 0)
    low = pred.predict(IntraMode.TRUE_MOTION, [0] * 4, [0] * 4, 255)
    assert high == bytes([255] * 16)
    assert low == bytes([0] * 16)


def test_diagonal_down_right_uses_top_left_on_diagonal():
    pred = IntraPredictor(4)
    result = pred.predict(IntraMode.DIAGONAL_DOWN_RIGHT, [1, 2, 3, 4], [5, 6, 7, 8], 99)
    assert [result[i * 4 + i] for i in range(4)] == [99] * 4


@pytest.mark.parametrize("mode", list(IntraMode))
def test_constant_neighbours_give_constant_prediction(mode):
    pred = IntraPredictor(8)
    result = pred.predict(mode, [77] * 16, [77] * 16, 77)
    assert set(result) == {77}


def test_select_best_mode_finds_exact_vertical():
    pred = IntraPredictor(8)
    top = list(range(0, 80, 10))
    left = [128] * 8
    block = top * 8
    mode, sad = pred.select_best_mode(block, top, left, 128)
    assert mode is IntraMode.VERTICAL
    assert sad == 0


def test_reconstruct_clamps():
    pred = IntraPredictor(2)
    assert pred.reconstruct([250, 5, 100, 0], [10, -10, 0, -1]) == bytes([255, 0, 100, 0])


def test_is_edge_block():
    assert IntraPredictor.is_edge_block(0, 3)
    assert IntraPredictor.is_edge_block(2, 0)
    assert not IntraPredictor.is_edge_block(1, 1)


def test_size_is_at_least_one():
    pred = IntraPredictor(0)
    assert len(pred.predict(IntraMode.DC, [], [], 0)) == 1