import random

import pytest

from wkimage.compression.color import (
    ColorSpace,
    convert_rgb_to_ycbcr_image,
    convert_ycbcr_to_rgb_image,
    downsample_420,
    rgb_to_ycbcr,
    upsample_420,
    ycbcr_to_rgb,
)

YCC_SPACES = [ColorSpace.YCBCR601, ColorSpace.YCBCR709, ColorSpace.YCBCR2020]


@pytest.mark.parametrize("space", YCC_SPACES)
def test_black_maps_to_studio_black(space):
    assert rgb_to_ycbcr(0, 0, 0, space) == (16, 128, 128)


def test_white_maps_to_studio_white_601():
    assert rgb_to_ycbcr(255, 255, 255, ColorSpace.YCBCR601) == (235, 128, 128)


@pytest.mark.parametrize("space", YCC_SPACES)
def test_studio_black_maps_to_rgb_black(space):
    assert ycbcr_to_rgb(16, 128, 128, space) == (0, 0, 0)


def test_rgb_space_passthrough():
    assert rgb_to_ycbcr(12, 34, 56, ColorSpace.RGB) == (12, 34, 56)
    assert ycbcr_to_rgb(12, 34, 56, ColorSpace.RGB) == (12, 34, 56)


def test_outputs_stay_in_studio_range():
    rng = random.Random(2)
    for _ in range(50):
        y, cb, cr = rgb_to_ycbcr(
            rng.randint(0, 255), rng.randint(0, 255), rng.randint(0, 255), ColorSpace.YCBCR709
        )
        assert 16 <= y <= 235 and 16 <= cb <= 240 and 16 <= cr <= 240


def test_image_conversion_matches_pixel_conversion():
    rng = random.Random(5)
    width, height = 3, 2
    data = bytes(rng.randint(0, 255) for _ in range(width * height * 3))
    y, cb, cr = convert_rgb_to_ycbcr_image(data, width, height, ColorSpace.YCBCR601)
    pixels = [
        rgb_to_ycbcr(data[i], data[i + 1], data[i + 2], ColorSpace.YCBCR601)
        for i in range(0, len(data), 3)
    ]
    assert list(zip(y, cb, cr)) == pixels


def test_short_image_raises():
    with pytest.raises(ValueError):
        convert_rgb_to_ycbcr_image(b"\x00" * 5, 2, 1, ColorSpace.YCBCR601)


def test_downsample_averages_block():
    assert downsample_420(bytes([10, 20, 30, 40]), 2, 2) == bytes([25])


@pytest.mark.parametrize("width, height", [(4, 4), (5, 3), (1, 1), (7, 2)])
def test_downsample_size_and_constant(width, height):
    out = downsample_420(bytes([77] * (width * height)), width, height)
    assert len(out) == ((width + 1) // 2) * ((height + 1) // 2)
    assert set(out) == {77}


def test_upsample_constant_plane():
    out = upsample_420(bytes([90] * 6), 3, 2, 6, 4)
    assert out == bytes([90] * 24)


def test_down_then_up_of_constant_is_identity():
    width, height = 5, 5
    plane = bytes([140] * (width * height))
    small = downsample_420(plane, width, height)
    assert upsample_420(small, 3, 3, width, height) == plane


def test_upsample_values_between_neighbours():
    out = upsample_420(bytes([0, 200]), 2, 1, 4, 2)
    assert out[0] == 0
    assert all(0 <= v <= 200 for v in out)


def test_upsample_empty_source_raises():
    with pytest.raises(ValueError):
        upsample_420(b"", 0, 0, 2, 2)