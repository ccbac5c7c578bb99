"""Block motion estimation between frames and motion-compensated prediction."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class MotionVector:
    """Displacement of a block into the reference frame, in whole pixels."""

    x: int
    y: int

    @classmethod
    def zero(cls) -> MotionVector:
        return cls(0, 0)


class SearchPattern(Enum):
    FULL_SEARCH = "full"
    DIAMOND = "diamond"
    HEXAGON = "hexagon"
    THREE_STEP = "three_step"


_LARGE_DIAMOND = ((0, 0), (-2, 0), (2, 0), (0, -2), (0, 2), (-1, -1), (1, -1), (-1, 1), (1, 1))
_SMALL_DIAMOND = ((0, 0), (-1, 0), (1, 0), (0, -1), (0, 1))
_HEXAGON = ((-2, 0), (2, 0), (-1, -2), (1, -2), (-1, 2), (1, 2))
_SQUARE = ((0, 0), (-1, 0), (1, 0), (0, -1), (0, 1), (-1, -1), (1, -1), (-1, 1), (1, 1))
_MAX_ITERATIONS = 16


def _clamp(value: int, low: int, high: int) -> int:
    return min(max(value, low), high)


class _Search:
    """One block's search: frames, block position and the SAD cost."""

    def __init__(self, current, reference, width, height, block_x, block_y, block_size):
        self.current = current
        self.reference = reference
        self.width = width
        self.height = height
        self.block_x = block_x
        self.block_y = block_y
        self.block_size = block_size

    def sad(self, dx: int, dy: int) -> int:
        w, h = self.width, self.height
        total = 0
        for y in range(self.block_size):
            cy = self.block_y + y
            if cy >= h:
                break
            ry = _clamp(cy + dy, 0, h - 1)
            for x in range(self.block_size):
                cx = self.block_x + x
                if cx >= w:
                    break
                rx = _clamp(cx + dx, 0, w - 1)
                total += abs(self.current[cy * w + cx] - self.reference[ry * w + rx])
        return total


class MotionEstimator:
    """Finds the displacement that best matches a block against a reference frame."""

    def __init__(self, search_range: int, pattern: SearchPattern = SearchPattern.DIAMOND) -> None:
        self.search_range = search_range
        self.pattern = pattern

    def _in_range(self, x: int, y: int) -> bool:
        return abs(x) <= self.search_range and abs(y) <= self.search_range

    def estimate(
        self,
        current: bytes | Sequence[int],
        reference: bytes | Sequence[int],
        width: int,
        height: int,
        block_x: int,
        block_y: int,
        block_size: int,
    ) -> MotionVector:
        """Motion vector for the block whose top-left corner is (block_x, block_y)."""
        if width <= 0 or height <= 0:
            raise ValueError("frame dimensions must be positive")
        cur, ref = bytes(current), bytes(reference)
        if len(cur) < width * height or len(ref) < width * height:
            raise ValueError("frames are smaller than width * height")
        search = _Search(cur, ref, width, height, block_x, block_y, block_size)
        strategies = {
            SearchPattern.FULL_SEARCH: self._full_search,
            SearchPattern.DIAMOND: self._diamond_search,
            SearchPattern.HEXAGON: self._hexagon_search,
            SearchPattern.THREE_STEP: self._three_step_search,
        }
        return strategies[self.pattern](search)

    def _full_search(self, search: _Search) -> MotionVector:
        r = self.search_range
        best, best_sad = MotionVector.zero(), math.inf
        for dy in range(-r, r + 1):
            for dx in range(-r, r + 1):
                sad = search.sad(dx, dy)
                if sad < best_sad:
                    best, best_sad = MotionVector(dx, dy), sad
        return best

    def _diamond_search(self, search: _Search) -> MotionVector:
        cx = cy = 0
        best_sad = math.inf
        for _ in range(_MAX_ITERATIONS):
            step_best, step_sad = (cx, cy), best_sad
            for dx, dy in _LARGE_DIAMOND:
                nx, ny = cx + dx, cy + dy
                if not self._in_range(nx, ny):
                    continue
                sad = search.sad(nx, ny)
                if sad < step_sad:
                    step_sad, step_best = sad, (nx, ny)
            if step_best == (cx, cy):
                break
            (cx, cy), best_sad = step_best, step_sad

        base_x, base_y = cx, cy
        for dx, dy in _SMALL_DIAMOND:
            nx, ny = base_x + dx, base_y + dy
            if not self._in_range(nx, ny):
                continue
            sad = search.sad(nx, ny)
            if sad < best_sad:
                best_sad, cx, cy = sad, nx, ny
        return MotionVector(cx, cy)

    def _hexagon_search(self, search: _Search) -> MotionVector:
        cx = cy = 0
        best_sad = search.sad(0, 0)
        for _ in range(_MAX_ITERATIONS):
            found = False
            for dx, dy in _HEXAGON:
                nx, ny = cx + dx, cy + dy
                if not self._in_range(nx, ny):
                    continue
                sad = search.sad(nx, ny)
                if sad < best_sad:
                    best_sad, cx, cy = sad, nx, ny
                    found = True
            if not found:
                break

        for dx, dy in _SQUARE:
            nx, ny = cx + dx, cy + dy
            if not self._in_range(nx, ny):
                continue
            sad = search.sad(nx, ny)
            if sad < best_sad:
                best_sad, cx, cy = sad, nx, ny
        return MotionVector(cx, cy)

    def _three_step_search(self, search: _Search) -> MotionVector:
        step = int(self.search_range / 2)
        cx = cy = 0
        best_sad = search.sad(0, 0)
        while step >= 1:
            for dy in (-step, 0, step):
                for dx in (-step, 0, step):
                    if dx == 0 and dy == 0:
                        continue
                    nx, ny = cx + dx, cy + dy
                    if not self._in_range(nx, ny):
                        continue
                    sad = search.sad(nx, ny)
                    if sad < best_sad:
                        best_sad, cx, cy = sad, nx, ny
            step //= 2
        return MotionVector(cx, cy)


def apply_motion_compensation(
    reference: bytes | Sequence[int],
    width: int,
    height: int,
    mvs: Sequence[MotionVector],
    block_size: int,
) -> bytes:
    """Build a predicted frame by copying each block from its displaced position."""
    if width <= 0 or height <= 0 or block_size <= 0:
        raise ValueError("dimensions and block size must be positive")
    ref = bytes(reference)
    if len(ref) < width * height:
        raise ValueError("reference frame is smaller than width * height")
    block_w = -(-width // block_size)
    block_h = -(-height // block_size)
    if len(mvs) < block_w * block_h:
        raise ValueError(f"need {block_w * block_h} motion vectors, got {len(mvs)}")

    output = bytearray(width * height)
    for py in range(height):
        by = py // block_size
        for px in range(width):
            mv = mvs[by * block_w + px // block_size]
            rx = _clamp(px + mv.x, 0, width - 1)
            ry = _clamp(py + mv.y, 0, height - 1)
            output[py * width + px] = ref[ry * width + rx]
    return bytes(output)