"""RGB/YCbCr colour conversion and 4:2:0 chroma resampling."""

from __future__ import annotations

import math
from collections.abc import Sequence
from enum import Enum


class ColorSpace(Enum):
    RGB = "rgb"
    YCBCR601 = "ycbcr601"
    YCBCR709 = "ycbcr709"
    YCBCR2020 = "ycbcr2020"


class ChromaSubsampling(Enum):
    YUV444 = "4:4:4"
    YUV420 = "4:2:0"
    YUV422 = "4:2:2"


# Rows: Y, Cb, Cr; each row holds the R, G, B weights (in units of 1/255).
_FORWARD = {
    ColorSpace.YCBCR601: (
        (65.481, 128.553, 24.966),
        (-37.797, -74.203, 112.0),
        (112.0, -93.786, -18.214),
    ),
    ColorSpace.YCBCR709: (
        (46.742, 157.243, 15.874),
        (-25.765, -86.674, 112.439),
        (112.439, -102.129, -10.310),
    ),
    ColorSpace.YCBCR2020: (
        (46.559, 156.629, 16.812),
        (-25.494, -85.723, 111.217),
        (111.217, -101.370, -9.847),
    ),
}

# (Cr->R, Cb->G, Cr->G, Cb->B)
_INVERSE = {
    ColorSpace.YCBCR601: (1.402, 0.344136, 0.714136, 1.772),
    ColorSpace.YCBCR709: (1.5748, 0.1873, 0.4681, 1.8556),
    ColorSpace.YCBCR2020: (1.4746, 0.1646, 0.5714, 1.8814),
}


def _round_clamp(value: float, low: float, high: float) -> int:
    rounded = math.floor(value + 0.5) if value >= 0 else -math.floor(-value + 0.5)
    return int(min(max(rounded, low), high))


def rgb_to_ycbcr(r: int, g: int, b: int, space: ColorSpace) -> tuple[int, int, int]:
    """Convert one pixel to studio-range YCbCr in the given colour space."""
    if space is ColorSpace.RGB:
        return (r, g, b)
    (yr, yg, yb), (br, bg, bb), (rr, rg, rb) = _FORWARD[space]
    y = 16.0 + yr * r / 255.0 + yg * g / 255.0 + yb * b / 255.0
    cb = 128.0 + br * r / 255.0 + bg * g / 255.0 + bb * b / 255.0
    cr = 128.0 + rr * r / 255.0 + rg * g / 255.0 + rb * b / 255.0
    return (
        _round_clamp(y, 16.0, 235.0),
        _round_clamp(cb, 16.0, 240.0),
        _round_clamp(cr, 16.0, 240.0),
    )


def ycbcr_to_rgb(y: int, cb: int, cr: int, space: ColorSpace) -> tuple[int, int, int]:
    """Convert one studio-range YCbCr pixel back to full-range RGB."""
    if space is ColorSpace.RGB:
        return (y, cb, cr)
    cr_r, cb_g, cr_g, cb_b = _INVERSE[space]
    y1 = (y - 16.0) * 255.0 / 219.0
    cb1 = (cb - 128.0) * 255.0 / 224.0
    cr1 = (cr - 128.0) * 255.0 / 224.0
    r = y1 + cr_r * cr1
    g = y1 - cb_g * cb1 - cr_g * cr1
    b = y1 + cb_b * cb1
    return (
        _round_clamp(r, 0.0, 255.0),
        _round_clamp(g, 0.0, 255.0),
        _round_clamp(b, 0.0, 255.0),
    )


def convert_rgb_to_ycbcr_image(
    rgb: bytes | Sequence[int], width: int, height: int, space: ColorSpace
) -> tuple[bytes, bytes, bytes]:
    """Split packed RGB into separate Y, Cb and Cr planes."""
    n = width * height
    data = bytes(rgb)
    if len(data) < n * 3:
        raise ValueError(f"need {n * 3} bytes of RGB data, got {len(data)}")
    data = data[:n * 3]
    y_plane, cb_plane, cr_plane = bytearray(), bytearray(), bytearray()
    for r, g, b in zip(data[0::3], data[1::3], data[2::3]):
        yv, cbv, crv = rgb_to_ycbcr(r, g, b, space)
        y_plane.append(yv)
        cb_plane.append(cbv)
        cr_plane.append(crv)
    return bytes(y_plane), bytes(cb_plane), bytes(cr_plane)


def convert_ycbcr_to_rgb_image(
    y: bytes | Sequence[int],
    cb: bytes | Sequence[int],
    cr: bytes | Sequence[int],
    width: int,
    height: int,
    space: ColorSpace,
) -> bytes:
    """Merge Y, Cb and Cr planes into packed RGB."""
    n = width * height
    planes = [bytes(p) for p in (y, cb, cr)]
    if any(len(p) < n for p in planes):
        raise ValueError(f"each plane needs {n} samples")
    output = bytearray()
    for yv, cbv, crv in zip(*(p[:n] for p in planes)):
        output += bytes(ycbcr_to_rgb(yv, cbv, crv, space))
    return bytes(output)


def downsample_420(data: bytes | Sequence[int], width: int, height: int) -> bytes:
    """Halve a plane in both directions by rounded 2x2 averaging."""
    plane = bytes(data)
    if len(plane) < width * height:
        raise ValueError("plane is smaller than width * height")
    out = bytearray()
    for y in range((height + 1) // 2):
        rows = [min(y * 2 + dy, height - 1) for dy in (0, 1)]
        for x in range((width + 1) // 2):
            cols = [min(x * 2 + dx, width - 1) for dx in (0, 1)]
            total = sum(plane[yy * width + xx] for yy in rows for xx in cols)
            out.append((total + 2) // 4)
    return bytes(out)


def upsample_420(
    data: bytes | Sequence[int], small_w: int, small_h: int, full_w: int, full_h: int
) -> bytes:
    """Enlarge a half-resolution plane to full size by bilinear interpolation."""
    if full_w * full_h == 0:
        return b""
    plane = bytes(data)
    if small_w <= 0 or small_h <= 0 or len(plane) < small_w * small_h:
        raise ValueError("source plane is empty or smaller than small_w * small_h")
    out = bytearray()
    for y in range(full_h):
        sy = y // 2
        fy = (y % 2) * 0.5
        y0 = min(sy, small_h - 1)
        y1 = min(sy + 1, small_h - 1)
        for x in range(full_w):
            sx = x // 2
            fx = (x % 2) * 0.5
            x0 = min(sx, small_w - 1)
            x1 = min(sx + 1, small_w - 1)
            v00 = plane[y0 * small_w + x0]
            v10 = plane[y0 * small_w + x1]
            v01 = plane[y1 * small_w + x0]
            v11 = plane[y1 * small_w + x1]
            v0 = v00 * (1.0 - fx) + v10 * fx
            v1 = v01 * (1.0 - fx) + v11 * fx
            out.append(_round_clamp(v0 * (1.0 - fy) + v1 * fy, 0.0, 255.0))
    return bytes(out)