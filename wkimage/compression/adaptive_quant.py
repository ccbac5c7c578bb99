"""Quality-scaled quantisation tables and per-block adaptive quantisation."""

from __future__ import annotations

import struct
from collections.abc import Sequence
from dataclasses import dataclass

from wkimage.compression.quantizer import (
    JPEG_CHROMINANCE_QUANT,
    JPEG_LUMINANCE_QUANT,
    quality_scale,
    scale_table,
)

JPEG_LUMA = JPEG_LUMINANCE_QUANT
JPEG_CHROMA = JPEG_CHROMINANCE_QUANT

CSF_WEIGHTS: tuple[float, ...] = (
    1.0, 0.98, 0.93, 0.85, 0.75, 0.63, 0.52, 0.42, 0.98, 0.95, 0.88, 0.78, 0.67, 0.55, 0.45, 0.36,
    0.93, 0.88, 0.80, 0.70, 0.59, 0.48, 0.39, 0.31, 0.85, 0.78, 0.70, 0.60, 0.50, 0.41, 0.33, 0.26,
    0.75, 0.67, 0.59, 0.50, 0.42, 0.34, 0.27, 0.22, 0.63, 0.55, 0.48, 0.41, 0.34, 0.28, 0.22, 0.18,
    0.52, 0.45, 0.39, 0.33, 0.27, 0.22, 0.18, 0.14, 0.42, 0.36, 0.31, 0.26, 0.22, 0.18, 0.14, 0.11,
)


def _f32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", value))[0]


def _check(values: Sequence[int], length: int = 64) -> list[int]:
    block = list(values)
    if len(block) != length:
        raise ValueError(f"expected {length} values, got {len(block)}")
    return block


def _wrap16(value: int) -> int:
    return ((value + 32768) & 0xFFFF) - 32768


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return -quotient if (a < 0) != (b < 0) else quotient


def _clamp_quality(quality: int) -> int:
    return min(max(int(quality), 1), 100)


def _base(is_chroma: bool) -> tuple[int, ...]:
    return JPEG_CHROMA if is_chroma else JPEG_LUMA


@dataclass(frozen=True)
class QuantTable:
    """Sixty-four quantisation step sizes in row-major order."""

    table: tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "table", tuple(_check(self.table)))

    @classmethod
    def for_quality(cls, quality: int, is_chroma: bool = False) -> QuantTable:
        return cls(scale_table(_base(is_chroma), quality_scale(quality)))

    @classmethod
    def optimized_for_size(cls, quality: int, is_chroma: bool = False) -> QuantTable:
        scale = max(quality_scale(quality) * 115 // 100, 15)
        return cls(scale_table(_base(is_chroma), scale))

    @classmethod
    def lossless(cls) -> QuantTable:
        return cls((1,) * 64)

    @classmethod
    def with_csf(cls, quality: int, is_chroma: bool = False) -> QuantTable:
        """Table with high frequencies coarsened by a contrast sensitivity curve."""
        scale = quality_scale(quality)
        values = []
        for base, weight in zip(_base(is_chroma), CSF_WEIGHTS):
            half = _f32(_f32(1.0 - _f32(weight)) * 0.5)
            factor = _f32(1.0 + half)
            adjusted = int(_f32(base * factor))
            values.append(min(max((adjusted * scale + 50) // 100, 1), 255))
        return cls(tuple(values))

    @classmethod
    def aggressive(cls, quality: int, is_chroma: bool = False) -> QuantTable:
        q = _clamp_quality(quality)
        if q < 50:
            scale = (5000 // q) * 11 // 10
        else:
            scale = max((200 - q * 2) * 11 // 10, 15)
        return cls(scale_table(_base(is_chroma), scale))


@dataclass
class BlockStats:
    """Luminance statistics of one square block."""

    mean: float = 0.0
    variance: float = 0.0
    contrast: float = 0.0
    edge_density: float = 0.0
    is_extreme: bool = False

    def needs_fallback(self) -> bool:
        """True when the statistics are too unusual to adapt the quantiser."""
        return (
            self.is_extreme
            or self.variance > 5000.0
            or self.variance < 1.0
            or self.mean < 5.0
            or self.mean > 250.0
        )


class AdaptiveQuantizer:
    """Chooses a per-block quality within ten steps of a base quality."""

    def __init__(self, quality: int = 85) -> None:
        base = _clamp_quality(quality)
        self.base_qp = base
        self.min_qp = max(base - 10, 1)
        self.max_qp = min(base + 10, 100)

    def analyze_block(self, block: Sequence[int], size: int) -> BlockStats:
        """Compute mean, variance, contrast and edge density of a size x size block."""
        if size < 1:
            raise ValueError("block size must be positive")
        n = size * size
        values = list(block)
        if len(values) < n:
            return BlockStats(is_extreme=True)

        window = values[:n]
        mean = sum(window) / n
        variance = sum(p * p for p in window) / n - mean * mean
        contrast = max(max(window) - min(window), 0) / 255.0

        edge_density = 0.0
        if size >= 2:
            rows = [window[y * size:(y + 1) * size] for y in range(size)]
            edge_sum = sum(
                abs(curr - left) + abs(curr - top)
                for prev, row in zip(rows, rows[1:])
                for curr, left, top in zip(row[1:], row, prev[1:])
            )
            edge_density = edge_sum / ((size - 1) * (size - 1) * 510)

        return BlockStats(
            mean=mean,
            variance=max(variance, 0.0),
            contrast=contrast,
            edge_density=edge_density,
        )

    def compute_qp(self, stats: BlockStats) -> int:
        """Quality for a block, or the base quality when statistics are unusual."""
        if stats.needs_fallback():
            return self.base_qp

        adjust = 0
        if stats.mean < 40.0:
            adjust -= 2
        elif stats.mean > 215.0:
            adjust -= 1

        if stats.variance < 50.0:
            adjust += 2
        elif stats.variance > 1500.0:
            adjust -= 2

        if stats.edge_density > 0.25:
            adjust -= 2
        elif stats.edge_density < 0.03:
            adjust += 1

        adjust = min(max(adjust, -5), 5)
        return min(max(self.base_qp + adjust, self.min_qp), self.max_qp)

    def get_table(self, qp: int, is_chroma: bool = False) -> QuantTable:
        return QuantTable.for_quality(qp, is_chroma)

    def quantize(self, block: Sequence[int], table: QuantTable) -> list[int]:
        """Divide by the step sizes, truncating toward zero."""
        values = _check(block)
        return [_wrap16(_trunc_div(v, max(t, 1))) for v, t in zip(values, table.table)]

    def dequantize(self, block: Sequence[int], table: QuantTable) -> list[int]:
        """Multiply by the step sizes, saturating to the 16-bit range."""
        values = _check(block)
        return [min(max(v * t, -32768), 32767) for v, t in zip(values, table.table)]