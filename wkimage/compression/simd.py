"""Block transform and quantisation kernels with a separable fast path."""

from __future__ import annotations

import math
from collections.abc import Sequence
from enum import Enum

_INV_SQRT_2 = 0.7071067811865476
_COS = [[math.cos((2 * x + 1) * u * math.pi / 16.0) for x in range(8)] for u in range(8)]


class SimdLevel(Enum):
    """Vector instruction level available to the kernels."""

    NONE = "none"
    SSE42 = "sse4.2"
    AVX2 = "avx2"


def detect_simd() -> SimdLevel:
    """Report the vector level in use; these kernels always run scalar."""
    return SimdLevel.NONE


def _alpha(u: int) -> float:
    return _INV_SQRT_2 if u == 0 else 1.0


def _round_away(value: float) -> int:
    return math.floor(value + 0.5) if value >= 0 else -math.floor(-value + 0.5)


def _to_i16(value: float) -> int:
    return max(-32768, min(32767, _round_away(value)))


def _wrap16(value: int) -> int:
    return ((value + 32768) & 0xFFFF) - 32768


def _check(values: Sequence[int]) -> list[int]:
    block = list(values)
    if len(block) != 64:
        raise ValueError(f"expected 64 values, got {len(block)}")
    return block


def dct_8x8_simd(block: Sequence[int]) -> list[int]:
    """Forward 8x8 DCT computed as separate row and column passes."""
    pixels = _check(block)
    temp = [
        [sum(p * c for p, c in zip(pixels[y * 8:(y + 1) * 8], _COS[u])) for u in range(8)]
        for y in range(8)
    ]
    output = [0] * 64
    for u in range(8):
        for v in range(8):
            total = sum(temp[y][u] * _COS[v][y] for y in range(8))
            output[v * 8 + u] = _to_i16(0.25 * _alpha(u) * _alpha(v) * total)
    return output


def dct_8x8_scalar(block: Sequence[int]) -> list[int]:
    """Forward 8x8 DCT by the direct double sum."""
    pixels = _check(block)
    output = []
    for v in range(8):
        for u in range(8):
            total = 0.0
            for y in range(8):
                cv = _COS[v][y]
                for pixel, cu in zip(pixels[y * 8:(y + 1) * 8], _COS[u]):
                    total += pixel * cu * cv
            output.append(_to_i16(0.25 * _alpha(u) * _alpha(v) * total))
    return output


def idct_8x8_simd(coeffs: Sequence[int]) -> list[int]:
    """Inverse 8x8 DCT; identical to the scalar kernel."""
    return idct_8x8_scalar(coeffs)


def idct_8x8_scalar(coeffs: Sequence[int]) -> list[int]:
    """Inverse 8x8 DCT by the direct double sum."""
    values = _check(coeffs)
    output = []
    for y in range(8):
        for x in range(8):
            total = 0.0
            for v in range(8):
                cv = _COS[v][y]
                for u in range(8):
                    total += _alpha(u) * _alpha(v) * values[v * 8 + u] * _COS[u][x] * cv
            output.append(_to_i16(0.25 * total))
    return output


def _luma(r: float, g: float, b: float) -> int:
    y = 16.0 + 65.481 * r / 255.0 + 128.553 * g / 255.0 + 24.966 * b / 255.0
    return int(min(max(y, 16.0), 235.0))


def rgb_to_ycbcr_simd(rgb: bytes | Sequence[int]) -> bytes:
    """Convert packed RGB to BT.601 YCbCr, truncating each component.

    Data is handled in groups of four pixels; in a trailing partial group
    only luma is computed and both chroma components are set to 128.
    """
    data = bytes(rgb)
    output = bytearray()
    for start in range(0, len(data), 12):
        chunk = data[start:start + 12]
        pixels = zip(chunk[0::3], chunk[1::3], chunk[2::3])
        if len(chunk) == 12:
            for r, g, b in pixels:
                cb = 128.0 - 37.797 * r / 255.0 - 74.203 * g / 255.0 + 112.0 * b / 255.0
                cr = 128.0 + 112.0 * r / 255.0 - 93.786 * g / 255.0 - 18.214 * b / 255.0
                output += bytes(
                    (
                        _luma(r, g, b),
                        int(min(max(cb, 16.0), 240.0)),
                        int(min(max(cr, 16.0), 240.0)),
                    )
                )
        else:
            for r, g, b in pixels:
                output += bytes((_luma(r, g, b), 128, 128))
    return bytes(output)


def quantize_simd(block: Sequence[int], table: Sequence[int]) -> list[int]:
    """Divide each coefficient by its table entry, truncating toward zero."""
    values = _check(block)
    steps = _check(table)
    output = []
    for value, step in zip(values, steps):
        quotient = abs(value) // abs(step)
        if (value < 0) != (step < 0):
            quotient = -quotient
        output.append(_wrap16(quotient))
    return output


def dequantize_simd(block: Sequence[int], table: Sequence[int]) -> list[int]:
    """Multiply each coefficient by its table entry, wrapping to 16 bits."""
    values = _check(block)
    steps = _check(table)
    return [_wrap16(value * step) for value, step in zip(values, steps)]