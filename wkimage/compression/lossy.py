"""Block-based lossy coding with intra prediction and adaptive quantisation.

A compressed stream starts with three flag bytes (coefficient coder,
intra prediction, adaptive quantisation) and two little-endian tables of
64 16-bit step sizes (luma, then chroma). A 32-bit length follows, then a
deflated payload. For each channel the payload holds the intra modes, the
per-block qualities and the coded coefficients, each prefixed by its
32-bit length.
"""

from __future__ import annotations

import struct
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from wkimage.compression.adaptive_quant import AdaptiveQuantizer, QuantTable
from wkimage.compression.cabac import (
    ArithmeticDecoder,
    ArithmeticEncoder,
    CABACContext,
    compress_coefficients,
    decode_coefficients,
    decompress_coefficients,
    encode_coefficients,
)
from wkimage.compression.dct import dct_8x8_fast, idct_8x8_fast, zigzag_scan, zigzag_unscan
from wkimage.compression.entropy import DecodingError, EntropyDecoder, EntropyEncoder
from wkimage.compression.intra_prediction import IntraMode, IntraPredictor
from wkimage.compression.simd import SimdLevel, dct_8x8_simd, idct_8x8_simd

BLOCK = 8
_TABLE = struct.Struct("<64H")
_U32 = struct.Struct("<I")
_FLAGS_SIZE = 3
_TABLES_END = _FLAGS_SIZE + 2 * _TABLE.size
HEADER_SIZE = _TABLES_END + _U32.size
_DEFAULT_QP = 85


class CompressionMode(Enum):
    """How pixel data is coded."""

    LOSSLESS = 0
    LOSSY = 1
    MIXED = 2


def _clamp_quality(quality: int) -> int:
    return min(max(int(quality), 1), 100)


@dataclass
class CompressionConfig:
    """Coding options; the defaults describe full-featured lossy coding at quality 85."""

    mode: CompressionMode = CompressionMode.LOSSY
    quality: int = 85
    use_optimal_predictor: bool = True
    use_cabac: bool = True
    use_intra_prediction: bool = True
    use_adaptive_quant: bool = True
    use_simd: bool = True

    @classmethod
    def lossless(cls) -> CompressionConfig:
        return cls(
            mode=CompressionMode.LOSSLESS,
            quality=100,
            use_optimal_predictor=True,
            use_cabac=False,
            use_intra_prediction=False,
            use_adaptive_quant=False,
        )

    @classmethod
    def lossy(cls, quality: int) -> CompressionConfig:
        return cls(
            mode=CompressionMode.LOSSY,
            quality=_clamp_quality(quality),
            use_optimal_predictor=False,
        )

    @classmethod
    def fast_lossy(cls, quality: int) -> CompressionConfig:
        return cls(
            mode=CompressionMode.LOSSY,
            quality=_clamp_quality(quality),
            use_optimal_predictor=False,
            use_cabac=False,
            use_intra_prediction=False,
            use_adaptive_quant=False,
        )

    @classmethod
    def lossy_v3(cls, quality: int) -> CompressionConfig:
        return cls.lossy(quality)


def _wrap16(value: int) -> int:
    return ((value + 32768) & 0xFFFF) - 32768


def _check_image(data: bytes, width: int, height: int, channels: int) -> None:
    if width <= 0 or height <= 0 or channels <= 0:
        raise ValueError("width, height and channels must be positive")
    if len(data) < width * height * channels:
        raise ValueError(
            f"need {width * height * channels} bytes of image data, got {len(data)}"
        )


def block_neighbors(
    padded: Sequence[int], stride: int, bx: int, by: int
) -> tuple[list[int], list[int], int]:
    """Row above, column to the left and corner sample of block (bx, by); 128 where absent."""
    x0, y0 = bx * BLOCK, by * BLOCK
    top = [128] * BLOCK
    left = [128] * BLOCK
    top_left = padded[(y0 - 1) * stride + x0 - 1] if bx > 0 and by > 0 else 128
    if by > 0:
        start = (y0 - 1) * stride + x0
        top = list(padded[start:start + BLOCK])
    if bx > 0:
        left = [padded[(y0 + y) * stride + x0 - 1] for y in range(BLOCK)]
    return top, left, top_left


def _padded_channel(
    data: bytes, width: int, height: int, channels: int, ch: int, padded_w: int, padded_h: int
) -> list[int]:
    """One channel padded to whole blocks by repeating the last column and row."""
    plane = data[ch:width * height * channels:channels]
    padded: list[int] = []
    for y in range(height):
        row = list(plane[y * width:(y + 1) * width])
        padded += row + [row[-1]] * (padded_w - width)
    last_row = padded[(height - 1) * padded_w:height * padded_w]
    for _ in range(height, padded_h):
        padded += last_row
    return padded


def _block_at(padded: Sequence[int], stride: int, bx: int, by: int) -> list[int]:
    block: list[int] = []
    for y in range(BLOCK):
        start = (by * BLOCK + y) * stride + bx * BLOCK
        block += padded[start:start + BLOCK]
    return block


def compress_lossy_v3(
    config: CompressionConfig,
    data: bytes | Sequence[int],
    width: int,
    height: int,
    channels: int,
    simd_level: SimdLevel = SimdLevel.NONE,
) -> bytes:
    """Compress interleaved 8-bit samples into the block stream described above."""
    raw = bytes(data)
    _check_image(raw, width, height, channels)

    quantizer = AdaptiveQuantizer(config.quality)
    predictor = IntraPredictor(BLOCK)
    block_w = -(-width // BLOCK)
    block_h = -(-height // BLOCK)
    padded_w, padded_h = block_w * BLOCK, block_h * BLOCK
    forward = dct_8x8_simd if simd_level is not SimdLevel.NONE else dct_8x8_fast

    output = bytearray(
        (int(config.use_cabac), int(config.use_intra_prediction), int(config.use_adaptive_quant))
    )
    output += _TABLE.pack(*QuantTable.aggressive(config.quality, False).table)
    output += _TABLE.pack(*QuantTable.aggressive(config.quality, True).table)

    payload = bytearray()
    for ch in range(channels):
        is_chroma = ch > 0 and channels >= 3
        padded = _padded_channel(raw, width, height, channels, ch, padded_w, padded_h)

        modes = bytearray()
        qps = bytearray()
        blocks: list[list[int]] = []
        for by in range(block_h):
            for bx in range(block_w):
                block = _block_at(padded, padded_w, bx, by)
                top, left, top_left = block_neighbors(padded, padded_w, bx, by)

                if config.use_intra_prediction and not is_chroma:
                    mode, _ = predictor.select_best_mode_edge(
                        block, top, left, top_left, by == 0, bx == 0
                    )
                    pred = predictor.predict(mode, top, left, top_left)
                    residual = [b - p for b, p in zip(block, pred)]
                else:
                    mode = IntraMode.DC
                    residual = [b - 128 for b in block]
                modes.append(mode)

                if config.use_adaptive_quant:
                    qp = quantizer.compute_qp(quantizer.analyze_block(block, BLOCK))
                else:
                    qp = config.quality
                qps.append(qp)

                table = quantizer.get_table(qp, is_chroma)
                blocks.append(zigzag_scan(quantizer.quantize(forward(residual), table)))

        payload += _U32.pack(len(modes)) + modes
        payload += _U32.pack(len(qps)) + qps

        if config.use_cabac:
            encoder = ArithmeticEncoder()
            ctx = CABACContext(BLOCK)
            for coeffs in blocks:
                encode_coefficients(encoder, ctx, coeffs)
            coded = encoder.finish()
        else:
            flat = [c for coeffs in blocks for c in coeffs]
            coded = EntropyEncoder().encode_rle_huffman(flat)
        payload += _U32.pack(len(coded)) + coded

    compressed = compress_coefficients(payload)
    output += _U32.pack(len(compressed)) + compressed
    return bytes(output)


class _Cursor:
    """Sequential reader of length-prefixed sections of the payload."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0

    def section(self) -> bytes:
        if self.pos + _U32.size > len(self.data):
            raise DecodingError("Truncated lossy payload")
        (length,) = _U32.unpack_from(self.data, self.pos)
        self.pos += _U32.size
        if self.pos + length > len(self.data):
            raise DecodingError("Truncated lossy payload")
        chunk = self.data[self.pos:self.pos + length]
        self.pos += length
        return chunk


def decompress_lossy_v3(
    data: bytes | Sequence[int],
    width: int,
    height: int,
    channels: int,
    simd_level: SimdLevel = SimdLevel.NONE,
) -> bytes:
    """Decode a stream written by :func:`compress_lossy_v3` into interleaved samples."""
    raw = bytes(data)
    if len(raw) < HEADER_SIZE:
        raise DecodingError("Data too short")
    if width <= 0 or height <= 0 or channels <= 0:
        raise ValueError("width, height and channels must be positive")

    use_cabac = raw[0] != 0
    use_intra = raw[1] != 0
    use_adaptive = raw[2] != 0
    luma_table = _TABLE.unpack_from(raw, _FLAGS_SIZE)
    chroma_table = _TABLE.unpack_from(raw, _FLAGS_SIZE + _TABLE.size)
    (compressed_len,) = _U32.unpack_from(raw, _TABLES_END)
    payload = decompress_coefficients(raw[HEADER_SIZE:HEADER_SIZE + compressed_len])

    block_w = -(-width // BLOCK)
    block_h = -(-height // BLOCK)
    padded_w, padded_h = block_w * BLOCK, block_h * BLOCK
    blocks_per_channel = block_w * block_h
    inverse = idct_8x8_simd if simd_level is not SimdLevel.NONE else idct_8x8_fast

    predictor = IntraPredictor(BLOCK)
    cursor = _Cursor(payload)
    output = bytearray(width * height * channels)

    for ch in range(channels):
        is_chroma = ch > 0 and channels >= 3
        modes = cursor.section()
        qps = cursor.section()
        coded = cursor.section()

        if use_cabac:
            decoder = ArithmeticDecoder(coded)
            ctx = CABACContext(BLOCK)
            all_coeffs = [
                decode_coefficients(decoder, ctx, 64) for _ in range(blocks_per_channel)
            ]
        else:
            flat = EntropyDecoder().decode_rle_huffman(coded)
            all_coeffs = [flat[i:i + 64] for i in range(0, len(flat), 64)]

        padded = [128] * (padded_w * padded_h)
        for by in range(block_h):
            for bx in range(block_w):
                idx = by * block_w + bx
                if idx >= len(all_coeffs):
                    continue
                scanned = list(all_coeffs[idx][:64])
                scanned += [0] * (64 - len(scanned))
                coeffs = zigzag_unscan(scanned)

                qp = qps[idx] if idx < len(qps) else _DEFAULT_QP
                if use_adaptive:
                    steps = QuantTable.for_quality(qp, is_chroma).table
                else:
                    steps = chroma_table if is_chroma else luma_table
                residual = inverse([_wrap16(c * t) for c, t in zip(coeffs, steps)])

                if use_intra and not is_chroma:
                    mode = IntraMode.from_u8(modes[idx] if idx < len(modes) else 0)
                    top, left, top_left = block_neighbors(padded, padded_w, bx, by)
                    pred = predictor.predict(mode or IntraMode.DC, top, left, top_left)
                else:
                    pred = bytes([128]) * 64

                for y in range(BLOCK):
                    base = (by * BLOCK + y) * padded_w + bx * BLOCK
                    for x in range(BLOCK):
                        k = y * BLOCK + x
                        padded[base + x] = min(max(pred[k] + residual[k], 0), 255)

        for y in range(height):
            row = padded[y * padded_w:y * padded_w + width]
            start = y * width * channels + ch
            output[start:start + width * channels:channels] = bytes(row)

    return bytes(output)