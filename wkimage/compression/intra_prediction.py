"""Directional intra prediction of square blocks from their decoded neighbours."""

from __future__ import annotations

from collections.abc import Sequence
from enum import IntEnum


class IntraMode(IntEnum):
    """Prediction mode; the value is the byte stored for each block."""

    DC = 0
    HORIZONTAL = 1
    VERTICAL = 2
    DIAGONAL_DOWN_LEFT = 3
    DIAGONAL_DOWN_RIGHT = 4
    VERTICAL_RIGHT = 5
    HORIZONTAL_DOWN = 6
    VERTICAL_LEFT = 7
    HORIZONTAL_UP = 8
    PLANAR = 9
    TRUE_MOTION = 10

    @classmethod
    def from_u8(cls, v: int) -> IntraMode | None:
        """Map a stored byte to its mode, or None when the byte names no mode."""
        try:
            return cls(v)
        except ValueError:
            return None


ALL_MODES: tuple[IntraMode, ...] = tuple(IntraMode)
SAFE_EDGE_MODES: tuple[IntraMode, ...] = (
    IntraMode.DC,
    IntraMode.HORIZONTAL,
    IntraMode.VERTICAL,
)


def _clamp8(value: int) -> int:
    return min(max(value, 0), 255)


class IntraPredictor:
    """Predicts an ``size`` x ``size`` block from the row above and column to the left."""

    def __init__(self, size: int = 8) -> None:
        self.size = max(size, 1)

    def _edge(self, samples: Sequence[int]) -> list[int]:
        """Neighbour samples padded with 128 to twice the block size."""
        length = self.size * 2
        safe = list(samples)[:length]
        return safe + [128] * (length - len(safe))

    @staticmethod
    def is_edge_block(bx: int, by: int) -> bool:
        return bx == 0 or by == 0

    def predict(
        self,
        mode: IntraMode,
        top: Sequence[int],
        left: Sequence[int],
        top_left: int,
    ) -> bytes:
        """Return the row-major prediction for ``mode``."""
        n = self.size
        above = self._edge(top)
        side = self._edge(left)

        def at(samples: list[int], idx: int, default: int = 128) -> int:
            return samples[idx] if 0 <= idx < len(samples) else default

        def pixel(x: int, y: int) -> int:
            if mode is IntraMode.HORIZONTAL:
                return side[y]
            if mode is IntraMode.VERTICAL:
                return above[x]
            if mode is IntraMode.DIAGONAL_DOWN_LEFT:
                a = at(above, x + y + 1)
                b = at(above, x + y + 2, a)
                return (a + b + 1) // 2
            if mode is IntraMode.DIAGONAL_DOWN_RIGHT:
                if x > y:
                    return at(above, x - y - 1)
                if x < y:
                    return at(side, y - x - 1)
                return top_left
            if mode is IntraMode.VERTICAL_RIGHT:
                idx = x - y // 2
                return at(above, idx) if idx >= 0 else at(side, -idx - 1)
            if mode is IntraMode.HORIZONTAL_DOWN:
                idx = y - x // 2
                return at(side, idx) if idx >= 0 else at(above, -idx - 1)
            if mode is IntraMode.VERTICAL_LEFT:
                idx = x + y // 2
                a = at(above, idx)
                b = at(above, idx + 1, a)
                return a if y % 2 == 0 else (a + b + 1) // 2
            if mode is IntraMode.HORIZONTAL_UP:
                idx = y + x // 2
                a = at(side, idx)
                b = at(side, idx + 1, a)
                return a if x % 2 == 0 else (a + b + 1) // 2
            if mode is IntraMode.PLANAR:
                top_right = above[n - 1]
                bottom_left = side[n - 1]
                h = (n - 1 - x) * side[y] + (x + 1) * top_right
                v = (n - 1 - y) * above[x] + (y + 1) * bottom_left
                return _clamp8((h + v + n) // (2 * n))
            if mode is IntraMode.TRUE_MOTION:
                return _clamp8(above[x] + side[y] - top_left)
            raise ValueError(f"unknown intra mode {mode!r}")

        if mode is IntraMode.DC:
            dc = (sum(above[:n]) + sum(side[:n]) + n) // (2 * n)
            return bytes([dc]) * (n * n)
        return bytes(pixel(x, y) for y in range(n) for x in range(n))

    def select_best_mode(
        self,
        block: Sequence[int],
        top: Sequence[int],
        left: Sequence[int],
        top_left: int,
    ) -> tuple[IntraMode, int]:
        """Best mode among all modes, with its sum of absolute differences."""
        return self.select_best_mode_edge(block, top, left, top_left, False, False)

    def select_best_mode_edge(
        self,
        block: Sequence[int],
        top: Sequence[int],
        left: Sequence[int],
        top_left: int,
        is_first_row: bool,
        is_first_col: bool,
    ) -> tuple[IntraMode, int]:
        """Best mode and its SAD; blocks on the first row or column use only safe modes."""
        candidates = SAFE_EDGE_MODES if is_first_row or is_first_col else ALL_MODES
        best_mode = IntraMode.DC
        best_sad: int | None = None
        for mode in candidates:
            pred = self.predict(mode, top, left, top_left)
            sad = sum(abs(a - b) for a, b in zip(block, pred))
            if best_sad is None or sad < best_sad:
                best_mode, best_sad = mode, sad
        return best_mode, best_sad if best_sad is not None else 0

    def compute_residual(self, block: Sequence[int], prediction: Sequence[int]) -> list[int]:
        return [a - b for a, b in zip(block, prediction)]

    def reconstruct(self, prediction: Sequence[int], residual: Sequence[int]) -> bytes:
        return bytes(_clamp8(p + r) for p, r in zip(prediction, residual))