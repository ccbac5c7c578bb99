"""Frames of an animated image and the settings shared by all frames."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class BlendMode(Enum):
    """How a frame is combined with the canvas."""

    SOURCE = "source"
    OVER = "over"


class DisposeMode(Enum):
    """What happens to a frame's area before the next frame is drawn."""

    NONE = "none"
    BACKGROUND = "background"
    PREVIOUS = "previous"


@dataclass
class AnimationConfig:
    """Loop count (0 loops forever) and RGBA background colour."""

    loop_count: int = 0
    background_color: tuple[int, int, int, int] = (0, 0, 0, 0)


@dataclass
class AnimationFrame:
    """One frame: its pixel data, placement, timing and compositing rules."""

    width: int
    height: int
    data: bytes = field(default=b"", repr=False)
    delay_ms: int = 100
    x_offset: int = 0
    y_offset: int = 0
    blend_mode: BlendMode = BlendMode.SOURCE
    dispose_mode: DisposeMode = DisposeMode.NONE
    is_keyframe: bool = True