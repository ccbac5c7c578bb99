"""DCT variants for several block sizes, including an integer 8x8 transform."""

from __future__ import annotations

import math
from collections.abc import Sequence
from enum import Enum

_INV_SQRT_2 = 0.7071067811865476

ZIGZAG_8X8: tuple[int, ...] = (
    0, 1, 8, 16, 9, 2, 3, 10, 17, 24, 32, 25, 18, 11, 4, 5, 12, 19, 26, 33, 40, 48, 41, 34, 27, 20,
    13, 6, 7, 14, 21, 28, 35, 42, 49, 56, 57, 50, 43, 36, 29, 22, 15, 23, 30, 37, 44, 51, 58, 59,
    52, 45, 38, 31, 39, 46, 53, 60, 61, 54, 47, 55, 62, 63,
)

INT_DCT_8_MATRIX: tuple[tuple[int, ...], ...] = (
    (64, 64, 64, 64, 64, 64, 64, 64),
    (89, 75, 50, 18, -18, -50, -75, -89),
    (83, 36, -36, -83, -83, -36, 36, 83),
    (75, -18, -89, -50, 50, 89, 18, -75),
    (64, -64, -64, 64, 64, -64, -64, 64),
    (50, -89, 18, 75, -75, -18, 89, -50),
    (36, -83, 83, -36, -36, 83, -83, 36),
    (18, -50, 75, -89, 89, -75, 50, -18),
)


class BlockSize(Enum):
    """Square transform block sizes."""

    B8X8 = 8
    B16X16 = 16
    B32X32 = 32

    def size(self) -> int:
        return self.value

    def coeffs(self) -> int:
        return self.value * self.value


def _cos_table(n: int) -> list[list[float]]:
    return [[math.cos((2 * x + 1) * u * math.pi / (2.0 * n)) for x in range(n)] for u in range(n)]


_COS = {8: _cos_table(8), 16: _cos_table(16)}


def _alpha(u: int) -> float:
    return _INV_SQRT_2 if u == 0 else 1.0


def _to_i16(value: float) -> int:
    rounded = math.floor(value + 0.5) if value >= 0 else -math.floor(-value + 0.5)
    return max(-32768, min(32767, rounded))


def _wrap(value: int, bits: int) -> int:
    half = 1 << (bits - 1)
    return ((value + half) & ((1 << bits) - 1)) - half


def _check_block(values: Sequence[int], length: int) -> list[int]:
    block = list(values)
    if len(block) != length:
        raise ValueError(f"expected {length} values, got {len(block)}")
    return block


def _forward(block: Sequence[int], n: int) -> list[int]:
    pixels = _check_block(block, n * n)
    cos = _COS[n]
    rows = [pixels[y * n:(y + 1) * n] for y in range(n)]
    output = []
    for v in range(n):
        for u in range(n):
            cos_u = cos[u]
            total = 0.0
            for y, row in enumerate(rows):
                cv = cos[v][y]
                for pixel, cu in zip(row, cos_u):
                    total += pixel * cu * cv
            output.append(_to_i16(0.25 * _alpha(u) * _alpha(v) * total))
    return output


def _inverse(coeffs: Sequence[int], n: int) -> list[int]:
    values = _check_block(coeffs, n * n)
    cos = _COS[n]
    output = []
    for y in range(n):
        for x in range(n):
            total = 0.0
            for v in range(n):
                cv = cos[v][y]
                for u in range(n):
                    total += _alpha(u) * _alpha(v) * values[v * n + u] * cos[u][x] * cv
            output.append(_to_i16(0.25 * total))
    return output


def dct_8x8(block: Sequence[int]) -> list[int]:
    """Forward floating-point DCT of an 8x8 block."""
    return _forward(block, 8)


def idct_8x8(coeffs: Sequence[int]) -> list[int]:
    """Inverse floating-point DCT of an 8x8 block."""
    return _inverse(coeffs, 8)


def dct_16x16(block: Sequence[int]) -> list[int]:
    """Forward floating-point DCT of a 16x16 block."""
    return _forward(block, 16)


def idct_16x16(coeffs: Sequence[int]) -> list[int]:
    """Inverse floating-point DCT of a 16x16 block."""
    return _inverse(coeffs, 16)


def int_dct_8x8(block: Sequence[int]) -> list[int]:
    """Integer 8x8 forward transform with a final 12-bit scaling shift."""
    pixels = _check_block(block, 64)
    m = INT_DCT_8_MATRIX
    temp = [0] * 64
    for y in range(8):
        row = pixels[y * 8:(y + 1) * 8]
        for u in range(8):
            temp[y * 8 + u] = _wrap(sum(p * c for p, c in zip(row, m[u])), 32)
    output = [0] * 64
    for x in range(8):
        column = temp[x::8]
        for v in range(8):
            total = sum(t * c for t, c in zip(column, m[v]))
            output[v * 8 + x] = _wrap((total + 2048) >> 12, 32)
    return output


def int_idct_8x8(coeffs: Sequence[int]) -> list[int]:
    """Integer 8x8 inverse transform with 6-bit shifts after each stage."""
    values = _check_block(coeffs, 64)
    m = INT_DCT_8_MATRIX
    temp = [0] * 64
    for y in range(8):
        row = values[y * 8:(y + 1) * 8]
        for x in range(8):
            total = sum(c * m[u][x] for u, c in enumerate(row))
            temp[y * 8 + x] = _wrap((total + 32) >> 6, 32)
    output = [0] * 64
    for x in range(8):
        column = temp[x::8]
        for y in range(8):
            total = sum(t * m[v][y] for v, t in enumerate(column))
            output[y * 8 + x] = _wrap((total + 32) >> 6, 16)
    return output


def zigzag_scan_8x8(block: Sequence[int]) -> list[int]:
    """Reorder a row-major 8x8 block into zigzag order."""
    values = _check_block(block, 64)
    return [values[idx] for idx in ZIGZAG_8X8]


def zigzag_unscan_8x8(scanned: Sequence[int]) -> list[int]:
    """Restore row-major order from a zigzag-ordered 8x8 block."""
    values = _check_block(scanned, 64)
    output = [0] * 64
    for value, idx in zip(values, ZIGZAG_8X8):
        output[idx] = value
    return output


def dct_8x8_fast(block: Sequence[int]) -> list[int]:
    return dct_8x8(block)


def idct_8x8_fast(coeffs: Sequence[int]) -> list[int]:
    return idct_8x8(coeffs)


def zigzag_scan(block: Sequence[int]) -> list[int]:
    return zigzag_scan_8x8(block)


def zigzag_unscan(scanned: Sequence[int]) -> list[int]:
    return zigzag_unscan_8x8(scanned)