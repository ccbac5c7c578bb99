import struct

import pytest

from wkimage.compression.engine import CompressionEngine
from wkimage.compression.entropy import DecodingError
from wkimage.compression.lossy import CompressionConfig, CompressionMode
from wkimage.compression.quantizer import JPEG_CHROMINANCE_QUANT, JPEG_LUMINANCE_QUANT
from wkimage.compression.simd import SimdLevel


def _gradient(width, height, channels):
    return bytes(
        (x * 7 + y * 5 + c * 30) % 256 if False else min(255, 40 + x * 4 + y * 3 + c * 20)
        for y in range(height)
        for x in range(width)
        for c in range(channels)
    )


def _max_error(a, b):
    return max(abs(x - y) for x, y in zip(a, b))


def test_lossless_roundtrip_exact():
    engine = CompressionEngine(CompressionConfig.lossless())
    data = bytes((i * 37 + 11) % 256 for i in range(9 * 5 * 3))
    encoded = engine.compress_lossless(data, 9, 5, 3)
    assert engine.decompress_lossless(encoded, 9, 5, 3) == data


def test_compress_dispatches_lossless():
    engine = CompressionEngine(CompressionConfig.lossless())
    data = _gradient(6, 4, 4)
    encoded = engine.compress(data, 6, 4, 4)
    assert engine.decompress(encoded, 6, 4, 4, CompressionMode.LOSSLESS) == data


def test_lossy_v3_stream_starts_with_flags():
    engine = CompressionEngine(CompressionConfig.lossy(85))
    encoded = engine.compress_lossy(_gradient(8, 8, 1), 8, 8, 1)
    assert encoded[:3] == b"\x01\x01\x01"


def test_lossy_v3_roundtrip_close():
    engine = CompressionEngine(CompressionConfig.lossy(90))
    data = _gradient(16, 12, 3)
    encoded = engine.compress(data, 16, 12, 3)
    decoded = engine.decompress(encoded, 16, 12, 3, CompressionMode.LOSSY)
    assert len(decoded) == len(data)
    assert _max_error(data, decoded) <= 24


def test_lossy_v3_constant_image_nearly_exact():
    engine = CompressionEngine(CompressionConfig(use_simd=False))
    data = bytes([100]) * (16 * 16)
    decoded = engine.decompress_lossy(engine.compress_lossy(data, 16, 16, 1), 16, 16, 1)
    assert _max_error(data, decoded) <= 2


def test_lossy_v3_without_cabac_roundtrip():
    config = CompressionConfig.lossy(85)
    config.use_cabac = False
    engine = CompressionEngine(config)
    data = _gradient(10, 10, 1)
    encoded = engine.compress_lossy_v3(data, 10, 10, 1)
    assert encoded[0] == 0
    decoded = engine.decompress_lossy_v3(encoded, 10, 10, 1)
    assert _max_error(data, decoded) <= 24


def test_legacy_stream_holds_quant_tables():
    engine = CompressionEngine(CompressionConfig.fast_lossy(50))
    encoded = engine.compress_lossy(_gradient(8, 8, 3), 8, 8, 3)
    assert struct.unpack_from("<64H", encoded, 0) == JPEG_LUMINANCE_QUANT
    assert struct.unpack_from("<64H", encoded, 128) == JPEG_CHROMINANCE_QUANT


def test_legacy_constant_image_roundtrip():
    engine = CompressionEngine(CompressionConfig.fast_lossy(50))
    data = bytes([100]) * (8 * 8)
    encoded = engine.compress(data, 8, 8, 1)
    assert engine.decompress(encoded, 8, 8, 1, CompressionMode.LOSSY) == data


def test_legacy_gradient_roundtrip_close():
    engine = CompressionEngine(CompressionConfig.fast_lossy(75))
    data = _gradient(12, 9, 3)
    decoded = engine.decompress_lossy(engine.compress_lossy(data, 12, 9, 3), 12, 9, 3)
    assert _max_error(data, decoded) <= 30


def test_legacy_short_data_raises():
    engine = CompressionEngine()
    with pytest.raises(DecodingError):
        engine.decompress_lossy(b"\x05" * 100, 8, 8, 1)


def test_lossless_short_data_raises():
    engine = CompressionEngine(CompressionConfig.lossless())
    with pytest.raises(DecodingError):
        engine.decompress_lossless(b"\x00" * 10, 2, 2, 1)


def test_simd_disabled_uses_none_level():
    config = CompressionConfig.lossy(80)
    config.use_simd = False
    assert CompressionEngine(config).simd_level == SimdLevel.NONE


def test_compress_rejects_short_image():
    engine = CompressionEngine(CompressionConfig.fast_lossy(50))
    with pytest.raises(ValueError):
        engine.compress(b"\x00" * 10, 8, 8, 1)