"""Per-row spatial prediction filters for lossless coding."""

from __future__ import annotations

from collections.abc import Sequence
from enum import IntEnum

from wkimage.compression.entropy import DecodingError


class PredictorType(IntEnum):
    """Row filter; the value is the tag byte written before each row."""

    NONE = 0
    SUB = 1
    UP = 2
    AVERAGE = 3
    PAETH = 4

    @classmethod
    def from_u8(cls, v: int) -> PredictorType:
        """Map a tag byte to a predictor; unknown tags mean no prediction."""
        try:
            return cls(v)
        except ValueError:
            return cls.NONE


def _paeth(a: int, b: int, c: int) -> int:
    p = a + b - c
    pa, pb, pc = abs(p - a), abs(p - b), abs(p - c)
    if pa <= pb and pa <= pc:
        return a
    if pb <= pc:
        return b
    return c


def _predict(kind: PredictorType, left: int, up: int, up_left: int) -> int:
    if kind is PredictorType.SUB:
        return left
    if kind is PredictorType.UP:
        return up
    if kind is PredictorType.AVERAGE:
        return (left + up) // 2
    if kind is PredictorType.PAETH:
        return _paeth(left, up, up_left)
    return 0


def _neighbours(row: bytes, prev_row: bytes | None, x: int, channels: int):
    left = row[x - channels] if x >= channels else 0
    up = prev_row[x] if prev_row is not None else 0
    up_left = prev_row[x - channels] if prev_row is not None and x >= channels else 0
    return left, up, up_left


def _filter_row(
    row: bytes, prev_row: bytes | None, channels: int, kind: PredictorType
) -> bytes:
    return bytes(
        (raw - _predict(kind, *_neighbours(row, prev_row, x, channels))) & 0xFF
        for x, raw in enumerate(row)
    )


def _rows(data: bytes, width: int, height: int, channels: int) -> list[bytes]:
    stride = width * channels
    if len(data) < stride * height:
        raise ValueError(f"need {stride * height} bytes of image data, got {len(data)}")
    return [data[y * stride:(y + 1) * stride] for y in range(height)]


def apply_predictor(
    data: bytes | Sequence[int],
    width: int,
    height: int,
    channels: int,
    predictor: PredictorType,
) -> bytes:
    """Filter every row with one predictor, each row prefixed by its tag byte."""
    raw = bytes(data)
    kind = PredictorType(predictor)
    out = bytearray()
    prev = None
    for row in _rows(raw, width, height, channels):
        out.append(kind)
        out += _filter_row(row, prev, channels, kind)
        prev = row
    out += bytes(len(raw) + height - len(out))
    return bytes(out)


def reverse_predictor(
    filtered: bytes | Sequence[int], width: int, height: int, channels: int
) -> bytes:
    """Undo row filtering, reading each row's predictor from its tag byte."""
    raw = bytes(filtered)
    stride = width * channels
    if len(raw) < (stride + 1) * height:
        raise DecodingError("Filtered data too short")

    data = bytearray()
    prev: bytes | None = None
    pos = 0
    for _ in range(height):
        kind = PredictorType.from_u8(raw[pos])
        deltas = raw[pos + 1:pos + 1 + stride]
        pos += stride + 1
        row = bytearray()
        for x, delta in enumerate(deltas):
            prediction = _predict(kind, *_neighbours(row, prev, x, channels))
            row.append((delta + prediction) & 0xFF)
        data += row
        prev = bytes(row)
    return bytes(data)


def select_optimal_predictor(
    row: bytes | Sequence[int], prev_row: bytes | Sequence[int] | None, channels: int
) -> PredictorType:
    """Pick the predictor with the smallest sum of absolute signed residuals."""
    current = bytes(row)
    previous = bytes(prev_row) if prev_row is not None else None
    best = PredictorType.NONE
    best_score: int | None = None
    for kind in PredictorType:
        score = 0
        for delta in _filter_row(current, previous, channels, kind):
            score += 256 - delta if delta > 127 else delta
        if best_score is None or score < best_score:
            best, best_score = kind, score
    return best


def apply_optimal_predictor(
    data: bytes | Sequence[int], width: int, height: int, channels: int
) -> bytes:
    """Filter each row with whichever predictor suits it best."""
    raw = bytes(data)
    out = bytearray()
    prev = None
    for row in _rows(raw, width, height, channels):
        kind = select_optimal_predictor(row, prev, channels)
        out.append(kind)
        out += _filter_row(row, prev, channels, kind)
        prev = row
    out += bytes(len(raw) + height - len(out))
    return bytes(out)