"""An ordered sequence of animation frames with loop settings."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from wkimage.animation.frame import AnimationConfig, AnimationFrame


class FrameType(Enum):
    """Whether a frame stands alone or is predicted from an earlier one."""

    I_FRAME = "i"
    P_FRAME = "p"


@dataclass
class Animation:
    """Frames shown in order, with looping and background settings."""

    config: AnimationConfig = field(default_factory=AnimationConfig)
    frames: list[AnimationFrame] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.frames)

    def add_frame(self, frame: AnimationFrame) -> None:
        self.frames.append(frame)

    def add_keyframe(self, frame: AnimationFrame) -> None:
        """Append a copy of ``frame`` marked as a keyframe."""
        self.frames.append(replace(frame, is_keyframe=True))

    def add_delta_frame(self, frame: AnimationFrame) -> None:
        """Append a copy of ``frame`` marked as depending on earlier frames."""
        self.frames.append(replace(frame, is_keyframe=False))

    def total_duration_ms(self) -> int:
        return sum(frame.delay_ms for frame in self.frames)

    def is_animated(self) -> bool:
        return len(self.frames) > 1

    def keyframe_count(self) -> int:
        return sum(1 for frame in self.frames if frame.is_keyframe)

    def keyframe_before(self, index: int) -> int | None:
        """Index of the last keyframe at or before ``index``, or None if there is none."""
        if index < 0:
            raise ValueError("frame index must not be negative")
        last = min(index, len(self.frames) - 1)
        return next(
            (i for i in range(last, -1, -1) if self.frames[i].is_keyframe),
            None,
        )