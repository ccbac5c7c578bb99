"""Floating-point 8x8 discrete cosine transform and zigzag ordering."""

from __future__ import annotations

import math
from collections.abc import Sequence

_INV_SQRT_2 = 0.7071067811865475
_I16_MIN = -32768
_I16_MAX = 32767

ZIGZAG_ORDER: tuple[int, ...] = (
    0, 1, 8, 16, 9, 2, 3, 10, 17, 24, 32, 25, 18, 11, 4, 5, 12, 19, 26, 33, 40, 48, 41, 34, 27, 20,
    13, 6, 7, 14, 21, 28, 35, 42, 49, 56, 57, 50, 43, 36, 29, 22, 15, 23, 30, 37, 44, 51, 58, 59,
    52, 45, 38, 31, 39, 46, 53, 60, 61, 54, 47, 55, 62, 63,
)

_COS = [[math.cos((2 * x + 1) * u * math.pi / 16.0) for x in range(8)] for u in range(8)]
_ALPHA = [_INV_SQRT_2] + [1.0] * 7


def _to_i16(value: float) -> int:
    """Round half away from zero and saturate to the signed 16-bit range."""
    rounded = math.floor(value + 0.5) if value >= 0 else -math.floor(-value + 0.5)
    return max(_I16_MIN, min(_I16_MAX, rounded))


def _check_block(values: Sequence[int], length: int = 64) -> list[int]:
    block = list(values)
    if len(block) != length:
        raise ValueError(f"expected {length} values, got {len(block)}")
    return block


def dct_8x8(block: Sequence[int]) -> list[int]:
    """Forward 2-D DCT of an 8x8 block given in row-major order."""
    pixels = _check_block(block)
    rows = [pixels[y * 8:(y + 1) * 8] for y in range(8)]
    output = []
    for v in range(8):
        cos_v = _COS[v]
        for u in range(8):
            cos_u = _COS[u]
            total = 0.0
            for y, row in enumerate(rows):
                cv = cos_v[y]
                for pixel, cu in zip(row, cos_u):
                    total += pixel * cu * cv
            output.append(_to_i16(0.25 * _ALPHA[u] * _ALPHA[v] * total))
    return output


def idct_8x8(coeffs: Sequence[int]) -> list[int]:
    """Inverse 2-D DCT of an 8x8 coefficient block in row-major order."""
    values = _check_block(coeffs)
    output = []
    for y in range(8):
        for x in range(8):
            total = 0.0
            for v in range(8):
                cos_v = _COS[v][y]
                for u in range(8):
                    coeff = values[v * 8 + u]
                    total += _ALPHA[u] * _ALPHA[v] * coeff * _COS[u][x] * cos_v
            output.append(_to_i16(0.25 * total))
    return output


def dct_8x8_fast(block: Sequence[int]) -> list[int]:
    """Forward DCT; same result as :func:`dct_8x8`."""
    return dct_8x8(block)


def idct_8x8_fast(coeffs: Sequence[int]) -> list[int]:
    """Inverse DCT; same result as :func:`idct_8x8`."""
    return idct_8x8(coeffs)


def zigzag_scan(block: Sequence[int]) -> list[int]:
    """Reorder a row-major 8x8 block into zigzag order."""
    values = _check_block(block)
    return [values[idx] for idx in ZIGZAG_ORDER]


def zigzag_unscan(scanned: Sequence[int]) -> list[int]:
    """Restore row-major order from a zigzag-ordered block."""
    values = _check_block(scanned)
    output = [0] * 64
    for value, idx in zip(values, ZIGZAG_ORDER):
        output[idx] = value
    return output