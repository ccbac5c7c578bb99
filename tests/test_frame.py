from dataclasses import replace

from wkimage.animation.frame import AnimationConfig, AnimationFrame, BlendMode, DisposeMode


def test_frame_defaults():
    frame = AnimationFrame(4, 3, b"\x00" * 12)
    assert frame.delay_ms == 100
    assert (frame.x_offset, frame.y_offset) == (0, 0)
    assert frame.blend_mode is BlendMode.SOURCE
    assert frame.dispose_mode is DisposeMode.NONE
    assert frame.is_keyframe is True


def test_frame_keeps_data_and_size():
    frame = AnimationFrame(2, 2, b"\x01\x02\x03\x04")
    assert (frame.width, frame.height, frame.data) == (2, 2, b"\x01\x02\x03\x04")


def test_frame_options_by_replace():
    base = AnimationFrame(2, 2, b"\x00" * 4)
    changed = replace(
        base,
        delay_ms=40,
        x_offset=3,
        y_offset=5,
        blend_mode=BlendMode.OVER,
        dispose_mode=DisposeMode.PREVIOUS,
    )
    assert changed.delay_ms == 40
    assert (changed.x_offset, changed.y_offset) == (3, 5)
    assert changed.blend_mode is BlendMode.OVER
    assert changed.dispose_mode is DisposeMode.PREVIOUS
    assert base.delay_ms == 100


def test_config_defaults():
    config = AnimationConfig()
    assert config.loop_count == 0
    assert config.background_color == (0, 0, 0, 0)