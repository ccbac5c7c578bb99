"""JPEG-style quantisation tables and a per-channel block quantiser."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

JPEG_LUMINANCE_QUANT: tuple[int, ...] = (
    16, 11, 10, 16, 24, 40, 51, 61, 12, 12, 14, 19, 26, 58, 60, 55, 14, 13, 16, 24, 40, 57, 69, 56,
    14, 17, 22, 29, 51, 87, 80, 62, 18, 22, 37, 56, 68, 109, 103, 77, 24, 35, 55, 64, 81, 104, 113,
    92, 49, 64, 78, 87, 103, 121, 120, 101, 72, 92, 95, 98, 112, 100, 103, 99,
)

JPEG_CHROMINANCE_QUANT: tuple[int, ...] = (
    17, 18, 24, 47, 99, 99, 99, 99, 18, 21, 26, 66, 99, 99, 99, 99, 24, 26, 56, 99, 99, 99, 99, 99,
    47, 66, 99, 99, 99, 99, 99, 99, 99, 99, 99, 99, 99, 99, 99, 99, 99, 99, 99, 99, 99, 99, 99, 99,
    99, 99, 99, 99, 99, 99, 99, 99, 99, 99, 99, 99, 99, 99, 99, 99,
)


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


def quality_scale(quality: int) -> int:
    """Percentage scale applied to the base tables for a quality of 1..100."""
    q = min(max(int(quality), 1), 100)
    return 5000 // q if q < 50 else 200 - q * 2


def scale_table(base: Sequence[int], scale: int) -> tuple[int, ...]:
    """Scale a base table by a percentage, rounding and clamping to 1..255."""
    return tuple(min(max((b * scale + 50) // 100, 1), 255) for b in base)


@dataclass(frozen=True)
class QuantizationTable:
    """Sixty-four quantisation step sizes in row-major order."""

    table: tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "table", tuple(_check(self.table)))

    @classmethod
    def for_quality(cls, quality: int, is_chroma: bool = False) -> QuantizationTable:
        base = JPEG_CHROMINANCE_QUANT if is_chroma else JPEG_LUMINANCE_QUANT
        return cls(scale_table(base, quality_scale(quality)))

    @classmethod
    def lossless(cls) -> QuantizationTable:
        return cls((1,) * 64)


class Quantizer:
    """Quantises DCT blocks with separate luma and chroma tables."""

    def __init__(self, quality: int) -> None:
        self.luma_table = QuantizationTable.for_quality(quality, False)
        self.chroma_table = QuantizationTable.for_quality(quality, True)

    @classmethod
    def lossless(cls) -> Quantizer:
        quantizer = cls(100)
        quantizer.luma_table = QuantizationTable.lossless()
        quantizer.chroma_table = QuantizationTable.lossless()
        return quantizer

    def _table(self, is_chroma: bool) -> tuple[int, ...]:
        return (self.chroma_table if is_chroma else self.luma_table).table

    def quantize(self, block: Sequence[int], is_chroma: bool = False) -> list[int]:
        """Divide by the step sizes, truncating toward zero."""
        values = _check(block)
        return [_wrap16(_trunc_div(v, t)) for v, t in zip(values, self._table(is_chroma))]

    def dequantize(self, block: Sequence[int], is_chroma: bool = False) -> list[int]:
        """Multiply by the step sizes, wrapping to 16 bits."""
        values = _check(block)
        return [_wrap16(v * t) for v, t in zip(values, self._table(is_chroma))]


def adaptive_block_quantize(
    block: Sequence[int], base_table: QuantizationTable, activity_factor: float
) -> list[int]:
    """Quantise with step sizes scaled by block activity (0.5 leaves them unchanged)."""
    values = _check(block)
    scale = 1.0 + (activity_factor - 0.5) * 0.5
    output = []
    for value, step in zip(values, base_table.table):
        q = max(int(step * scale), 1)
        output.append(_wrap16(_trunc_div(value, q)))
    return output


def calculate_block_activity(block: Sequence[int]) -> float:
    """Mean absolute AC magnitude normalised to the range 0..1."""
    values = _check(block)
    activity = sum(abs(v) for v in values[1:])
    return min(max(activity / 63.0 / 128.0, 0.0), 1.0)