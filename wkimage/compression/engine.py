"""Top-level compression engine choosing between lossless and lossy coding.

Lossless streams are rows filtered by the best spatial predictor and then
Huffman coded. Lossy streams use the block format of
:mod:`wkimage.compression.lossy` when any of its features is enabled, and
otherwise a simpler format: two little-endian tables of 64 16-bit step sizes
(luma, then chroma) followed by run-length and Huffman coded coefficients.
"""

from __future__ import annotations

import struct
from collections.abc import Sequence

from wkimage.compression import lossy
from wkimage.compression.dct import dct_8x8_fast, idct_8x8_fast, zigzag_scan, zigzag_unscan
from wkimage.compression.entropy import DecodingError, EntropyDecoder, EntropyEncoder
from wkimage.compression.lossy import CompressionConfig, CompressionMode
from wkimage.compression.predictor import apply_optimal_predictor, reverse_predictor
from wkimage.compression.quantizer import Quantizer
from wkimage.compression.simd import SimdLevel, detect_simd

_BLOCK = 8
_TABLE = struct.Struct("<64H")
_LEGACY_HEADER = 2 * _TABLE.size
_V3_MIN_LEN = 259


def _wrap16(value: int) -> int:
    return ((value + 32768) & 0xFFFF) - 32768


def _check_dimensions(width: int, height: int, channels: int) -> None:
    if width <= 0 or height <= 0 or channels <= 0:
        raise ValueError("width, height and channels must be positive")


def _check_image(data: bytes, width: int, height: int, channels: int) -> None:
    _check_dimensions(width, height, channels)
    if len(data) < width * height * channels:
        raise ValueError(
            f"need {width * height * channels} bytes of image data, got {len(data)}"
        )


def _padded_plane(
    data: bytes, width: int, height: int, channels: int, ch: int, padded_w: int, padded_h: int
) -> list[int]:
    """One channel extended to whole blocks by repeating its last column and row."""
    plane = data[ch:width * height * channels:channels]
    padded: list[int] = []
    for y in range(height):
        row = list(plane[y * width:(y + 1) * width])
        padded += row + [row[-1]] * (padded_w - width)
    last_row = padded[(height - 1) * padded_w:height * padded_w]
    for _ in range(height, padded_h):
        padded += last_row
    return padded


def _block(padded: Sequence[int], stride: int, bx: int, by: int) -> list[int]:
    out: list[int] = []
    for y in range(_BLOCK):
        start = (by * _BLOCK + y) * stride + bx * _BLOCK
        out += padded[start:start + _BLOCK]
    return out


class CompressionEngine:
    """Compresses and decompresses interleaved 8-bit image samples."""

    def __init__(self, config: CompressionConfig | None = None) -> None:
        self.config = config if config is not None else CompressionConfig()
        self.simd_level = detect_simd() if self.config.use_simd else SimdLevel.NONE

    def compress_lossless(
        self, data: bytes | Sequence[int], width: int, height: int, channels: int
    ) -> bytes:
        raw = bytes(data)
        _check_image(raw, width, height, channels)
        filtered = apply_optimal_predictor(raw, width, height, channels)
        return EntropyEncoder().encode_with_huffman(filtered)

    def decompress_lossless(
        self, data: bytes | Sequence[int], width: int, height: int, channels: int
    ) -> bytes:
        _check_dimensions(width, height, channels)
        filtered = EntropyDecoder().decode_huffman(data)
        return reverse_predictor(filtered, width, height, channels)

    def compress_lossy_v3(
        self, data: bytes | Sequence[int], width: int, height: int, channels: int
    ) -> bytes:
        return lossy.compress_lossy_v3(
            self.config, data, width, height, channels, self.simd_level
        )

    def decompress_lossy_v3(
        self, data: bytes | Sequence[int], width: int, height: int, channels: int
    ) -> bytes:
        return lossy.decompress_lossy_v3(data, width, height, channels, self.simd_level)

    def compress_lossy(
        self, data: bytes | Sequence[int], width: int, height: int, channels: int
    ) -> bytes:
        """Use the block format when any of its features is on, else the simple format."""
        cfg = self.config
        if cfg.use_cabac or cfg.use_intra_prediction or cfg.use_adaptive_quant:
            return self.compress_lossy_v3(data, width, height, channels)
        return self._compress_lossy_legacy(bytes(data), width, height, channels)

    def decompress_lossy(
        self, data: bytes | Sequence[int], width: int, height: int, channels: int
    ) -> bytes:
        """Detect the lossy format from its first byte and length, then decode it."""
        raw = bytes(data)
        if raw and raw[0] <= 1 and len(raw) > _V3_MIN_LEN:
            return self.decompress_lossy_v3(raw, width, height, channels)
        return self._decompress_lossy_legacy(raw, width, height, channels)

    def _compress_lossy_legacy(
        self, raw: bytes, width: int, height: int, channels: int
    ) -> bytes:
        _check_image(raw, width, height, channels)
        quantizer = Quantizer(self.config.quality)
        block_w = -(-width // _BLOCK)
        block_h = -(-height // _BLOCK)
        padded_w, padded_h = block_w * _BLOCK, block_h * _BLOCK

        coeffs: list[int] = []
        for ch in range(channels):
            is_chroma = ch > 0 and channels >= 3
            padded = _padded_plane(raw, width, height, channels, ch, padded_w, padded_h)
            for by in range(block_h):
                for bx in range(block_w):
                    block = [v - 128 for v in _block(padded, padded_w, bx, by)]
                    quantized = quantizer.quantize(dct_8x8_fast(block), is_chroma)
                    coeffs += zigzag_scan(quantized)

        encoded = EntropyEncoder().encode_rle_huffman(coeffs)
        return (
            _TABLE.pack(*quantizer.luma_table.table)
            + _TABLE.pack(*quantizer.chroma_table.table)
            + encoded
        )

    def _decompress_lossy_legacy(
        self, raw: bytes, width: int, height: int, channels: int
    ) -> bytes:
        if len(raw) < _LEGACY_HEADER:
            raise DecodingError("Data too short")
        _check_dimensions(width, height, channels)
        luma_table = _TABLE.unpack_from(raw, 0)
        chroma_table = _TABLE.unpack_from(raw, _TABLE.size)
        coeffs = EntropyDecoder().decode_rle_huffman(raw[_LEGACY_HEADER:])

        block_w = -(-width // _BLOCK)
        block_h = -(-height // _BLOCK)
        padded_w, padded_h = block_w * _BLOCK, block_h * _BLOCK
        blocks_per_channel = block_w * block_h
        output = bytearray(width * height * channels)

        for ch in range(channels):
            is_chroma = ch > 0 and channels >= 3
            steps = chroma_table if is_chroma else luma_table
            offset = ch * blocks_per_channel * 64
            padded = [0] * (padded_w * padded_h)
            for by in range(block_h):
                for bx in range(block_w):
                    start = offset + (by * block_w + bx) * 64
                    if start + 64 > len(coeffs):
                        continue
                    unscanned = zigzag_unscan(coeffs[start:start + 64])
                    block = idct_8x8_fast([_wrap16(c * t) for c, t in zip(unscanned, steps)])
                    for y in range(_BLOCK):
                        base = (by * _BLOCK + y) * padded_w + bx * _BLOCK
                        for x in range(_BLOCK):
                            padded[base + x] = min(max(block[y * _BLOCK + x] + 128, 0), 255)

            for y in range(height):
                row = padded[y * padded_w:y * padded_w + width]
                begin = y * width * channels + ch
                output[begin:begin + width * channels:channels] = bytes(row)
        return bytes(output)

    def compress(
        self, data: bytes | Sequence[int], width: int, height: int, channels: int
    ) -> bytes:
        """Compress with the mode given in the configuration."""
        if self.config.mode is CompressionMode.LOSSLESS:
            return self.compress_lossless(data, width, height, channels)
        return self.compress_lossy(data, width, height, channels)

    def decompress(
        self,
        data: bytes | Sequence[int],
        width: int,
        height: int,
        channels: int,
        mode: CompressionMode,
    ) -> bytes:
        """Decompress data that was written in ``mode``."""
        if mode is CompressionMode.LOSSLESS:
            return self.decompress_lossless(data, width, height, channels)
        return self.decompress_lossy(data, width, height, channels)