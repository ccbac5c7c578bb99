import struct

import pytest

from wkimage.compression.adaptive_quant import QuantTable
from wkimage.compression.entropy import DecodingError
from wkimage.compression.lossy import (
    HEADER_SIZE,
    CompressionConfig,
    CompressionMode,
    block_neighbors,
    compress_lossy_v3,
    decompress_lossy_v3,
)
from wkimage.compression.simd import SimdLevel


def _gradient(width, height, channels):
    return bytes(
        (60 + 4 * x + 2 * y + 10 * c) % 256
        for y in range(height)
        for x in range(width)
        for c in range(channels)
    )


def _errors(a, b):
    return [abs(p - q) for p, q in zip(a, b)]


def test_config_defaults():
    cfg = CompressionConfig()
    assert cfg.mode is CompressionMode.LOSSY
    assert cfg.quality == 85
    assert cfg.use_cabac and cfg.use_intra_prediction and cfg.use_adaptive_quant


def test_config_quality_clamped():
    assert CompressionConfig.lossy(150).quality == 100
    assert CompressionConfig.lossy(0).quality == 1
    assert CompressionConfig.lossy_v3(250).quality == 100


def test_config_lossless_and_fast():
    lossless = CompressionConfig.lossless()
    assert lossless.mode is CompressionMode.LOSSLESS
    assert lossless.quality == 100
    assert not lossless.use_cabac
    fast = CompressionConfig.fast_lossy(50)
    assert not (fast.use_cabac or fast.use_intra_prediction or fast.use_adaptive_quant)
    assert fast.quality == 50


def test_block_neighbors_corner_block_defaults():
    padded = list(range(256))
    top, left, top_left = block_neighbors(padded, 16, 0, 0)
    assert top == [128] * 8
    assert left == [128] * 8
    assert top_left == 128


def test_block_neighbors_interior():
    padded = [i % 256 for i in range(256)]
    top, left, top_left = block_neighbors(padded, 16, 1, 1)
    assert top == padded[7 * 16 + 8:7 * 16 + 16]
    assert left == [padded[(8 + y) * 16 + 7] for y in range(8)]
    assert top_left == padded[7 * 16 + 7]


def test_header_layout():
    cfg = CompressionConfig.lossy(75)
    out = compress_lossy_v3(cfg, _gradient(8, 8, 1), 8, 8, 1)
    assert out[:3] == bytes((1, 1, 1))
    assert struct.unpack_from("<64H", out, 3) == QuantTable.aggressive(75, False).table
    assert struct.unpack_from("<64H", out, 131) == QuantTable.aggressive(75, True).table
    (length,) = struct.unpack_from("<I", out, 259)
    assert length == len(out) - HEADER_SIZE


def test_header_flags_follow_config():
    cfg = CompressionConfig(use_cabac=False, use_intra_prediction=False, use_adaptive_quant=False)
    out = compress_lossy_v3(cfg, _gradient(8, 8, 1), 8, 8, 1)
    assert out[:3] == bytes((0, 0, 0))


def test_flat_mid_grey_roundtrips_exactly():
    data = bytes([128]) * 64
    out = compress_lossy_v3(CompressionConfig.lossy(85), data, 8, 8, 1)
    assert decompress_lossy_v3(out, 8, 8, 1) == data


def test_flat_image_roundtrips_closely():
    data = bytes([200]) * (16 * 16)
    out = compress_lossy_v3(CompressionConfig.lossy(85), data, 16, 16, 1)
    decoded = decompress_lossy_v3(out, 16, 16, 1)
    assert len(decoded) == len(data)
    assert max(_errors(data, decoded)) <= 2


def test_rgb_gradient_roundtrip_is_close():
    data = _gradient(16, 16, 3)
    out = compress_lossy_v3(CompressionConfig.lossy(90), data, 16, 16, 3)
    decoded = decompress_lossy_v3(out, 16, 16, 3)
    errors = _errors(data, decoded)
    assert len(decoded) == len(data)
    assert max(errors) <= 20
    assert sum(errors) / len(errors) < 6


def test_odd_dimensions_roundtrip():
    data = _gradient(11, 5, 1)
    out = compress_lossy_v3(CompressionConfig.lossy(90), data, 11, 5, 1)
    decoded = decompress_lossy_v3(out, 11, 5, 1)
    assert len(decoded) == 55
    assert max(_errors(data, decoded)) <= 20


def test_rle_coefficient_path_roundtrip():
    cfg = CompressionConfig(use_cabac=False)
    data = _gradient(16, 8, 1)
    out = compress_lossy_v3(cfg, data, 16, 8, 1)
    assert out[0] == 0
    decoded = decompress_lossy_v3(out, 16, 8, 1)
    assert max(_errors(data, decoded)) <= 20


def test_simd_path_matches_size_and_quality():
    data = _gradient(8, 8, 1)
    out = compress_lossy_v3(CompressionConfig.lossy(90), data, 8, 8, 1, SimdLevel.SSE42)
    decoded = decompress_lossy_v3(out, 8, 8, 1, SimdLevel.SSE42)
    assert max(_errors(data, decoded)) <= 20


def test_decompress_too_short_raises():
    with pytest.raises(DecodingError):
        decompress_lossy_v3(bytes(100), 8, 8, 1)


def test_decompress_more_channels_than_encoded_raises():
    out = compress_lossy_v3(CompressionConfig.lossy(85), _gradient(8, 8, 1), 8, 8, 1)
    with pytest.raises(DecodingError):
        decompress_lossy_v3(out, 8, 8, 2)


def test_compress_rejects_empty_dimensions():
    with pytest.raises(ValueError):
        compress_lossy_v3(CompressionConfig(), b"", 0, 8, 1)


def test_compress_rejects_short_data():
    with pytest.raises(ValueError):
        compress_lossy_v3(CompressionConfig(), bytes(10), 8, 8, 1)