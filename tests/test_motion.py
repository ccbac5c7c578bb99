import random

import pytest

from wkimage.animation.motion import (
    MotionEstimator,
    MotionVector,
    SearchPattern,
    apply_motion_compensation,
)

W = H = 32


def _random_frame(seed=7):
    rng = random.Random(seed)
    return bytes(rng.randrange(256) for _ in range(W * H))


def _shifted(reference, sx, sy):
    return bytes(
        reference[min(max(y + sy, 0), H - 1) * W + min(max(x + sx, 0), W - 1)]
        for y in range(H)
        for x in range(W)
    )


def test_zero_vector():
    assert MotionVector.zero() == MotionVector(0, 0)


@pytest.mark.parametrize("pattern", list(SearchPattern))
def test_identical_frames_give_zero_vector(pattern):
    frame = _random_frame()
    est = MotionEstimator(4, pattern)
    assert est.estimate(frame, frame, W, H, 8, 8, 8) == MotionVector(0, 0)


def test_full_search_finds_shift():
    reference = _random_frame()
    current = _shifted(reference, 2, 1)
    est = MotionEstimator(4, SearchPattern.FULL_SEARCH)
    assert est.estimate(current, reference, W, H, 8, 8, 8) == MotionVector(2, 1)


@pytest.mark.parametrize("pattern", list(SearchPattern))
def test_vector_stays_within_range(pattern):
    reference = _random_frame(3)
    current = _shifted(reference, 3, -2)
    est = MotionEstimator(2, pattern)
    mv = est.estimate(current, reference, W, H, 16, 16, 8)
    assert abs(mv.x) <= 2 and abs(mv.y) <= 2


def test_default_pattern_is_diamond():
    assert MotionEstimator(4).pattern is SearchPattern.DIAMOND


def test_estimate_rejects_empty_frame():
    with pytest.raises(ValueError):
        MotionEstimator(4).estimate(b"", b"", 0, 0, 0, 0, 8)


def test_compensation_with_zero_vectors_copies_reference():
    reference = _random_frame()
    mvs = [MotionVector.zero()] * 16
    assert apply_motion_compensation(reference, W, H, mvs, 8) == reference


def test_compensation_reproduces_shifted_frame():
    reference = _random_frame()
    current = _shifted(reference, 2, 1)
    mvs = [MotionVector(2, 1)] * 16
    assert apply_motion_compensation(reference, W, H, mvs, 8) == current


def test_estimate_then_compensate_matches_block():
    reference = _random_frame(11)
    current = _shifted(reference, -1, 2)
    est = MotionEstimator(3, SearchPattern.FULL_SEARCH)
    mv = est.estimate(current, reference, W, H, 8, 8, 8)
    predicted = apply_motion_compensation(reference, W, H, [mv] * 16, 8)
    for y in range(8, 16):
        assert predicted[y * W + 8:y * W + 16] == current[y * W + 8:y * W + 16]


def test_compensation_partial_blocks():
    reference = bytes(range(25))
    out = apply_motion_compensation(reference, 5, 5, [MotionVector.zero()] * 4, 4)
    assert out == reference


def test_compensation_rejects_too_few_vectors():
    with pytest.raises(ValueError):
        apply_motion_compensation(_random_frame(), W, H, [MotionVector.zero()], 8)