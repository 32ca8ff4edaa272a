"""Pure SMPTE timecode helpers.

The displayed timecode is never accumulated from timer ticks. It is always
derived from ``wall clock + offset`` so that sleep/wake, suspended timers and
frame-rate switches cannot introduce drift.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Optional, Tuple

from ...errors import TakeNoteError

SUPPORTED_FRAME_RATES: Tuple[float, ...] = (23.976, 24.0, 25.0, 29.97, 30.0, 50.0, 59.94, 60.0)
DROP_FRAME_RATES: Tuple[float, ...] = (29.97, 59.94)
DEFAULT_FRAME_RATE = 25.0

_TIMECODE_RE = re.compile(r"^\s*(\d{1,2}):(\d{2}):(\d{2})[:;.](\d{2})\s*$")


class TimecodeError(TakeNoteError, ValueError):
    """Raised for malformed timecodes or unsupported frame rates."""


def validate_frame_rate(fps: float) -> float:
    """Return the canonical value for ``fps`` or raise ``TimecodeError``."""

    try:
        value = float(fps)
    except (TypeError, ValueError) as exc:
        raise TimecodeError(f"Invalid frame rate: {fps!r}") from exc
    for rate in SUPPORTED_FRAME_RATES:
        if abs(rate - value) < 1e-6:
            return rate
    supported = ", ".join(f"{rate:g}" for rate in SUPPORTED_FRAME_RATES)
    raise TimecodeError(f"Unsupported frame rate {value:g}; expected one of {supported}")


def is_drop_frame(fps: float) -> bool:
    return any(abs(rate - float(fps)) < 1e-6 for rate in DROP_FRAME_RATES)


def max_frame(fps: float) -> int:
    """Highest frame number displayed at ``fps``."""

    return math.ceil(float(fps) - 1e-9) - 1


def nominal_rate(fps: float) -> int:
    """Integer frames per timecode second (30 for 29.97 and so on)."""

    return max_frame(fps) + 1


def frame_millis(frame: int, fps: float) -> int:
    """Smallest millisecond offset within a second that displays ``frame``."""

    return math.ceil(frame * 1000 / float(fps))


def format_timecode(hours: int, minutes: int, seconds: int, frames: int, fps: float) -> str:
    separator = ";" if is_drop_frame(fps) else ":"
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}{separator}{frames:02d}"


@dataclass(frozen=True)
class Timecode:
    hours: int
    minutes: int
    seconds: int
    frames: int
    fps: float

    def format(self) -> str:
        return format_timecode(self.hours, self.minutes, self.seconds, self.frames, self.fps)

    def total_frames(self) -> int:
        """Frame count since midnight, counted at the nominal rate."""

        total_seconds = (self.hours * 60 + self.minutes) * 60 + self.seconds
        return total_seconds * nominal_rate(self.fps) + self.frames

    def with_fps(self, fps: float) -> "Timecode":
        """Rebind to another rate, clamping the frame field to its new maximum."""

        return Timecode(self.hours, self.minutes, self.seconds, min(self.frames, max_frame(fps)), fps)

    def __str__(self) -> str:
        return self.format()


def parse_timecode(text: str, fps: float, *, clamp: bool = False) -> Timecode:
    """Parse ``HH:MM:SS:FF`` (``;`` or ``.`` also accepted before frames).

    With ``clamp`` a frame number above the rate's maximum (a note logged
    before a frame-rate switch) is pulled down instead of rejected.
    """

    fps = validate_frame_rate(fps)
    match = _TIMECODE_RE.match(text or "")
    if not match:
        raise TimecodeError(f"Malformed timecode: {text!r}")
    hours, minutes, seconds, frames = (int(part) for part in match.groups())
    if clamp:
        frames = min(frames, max_frame(fps))
    check_fields(hours, minutes, seconds, frames, fps)
    return Timecode(hours, minutes, seconds, frames, fps)


def timecode_from_frames(total_frames: int, fps: float) -> Timecode:
    """Inverse of ``Timecode.total_frames``, wrapping at 24 hours."""

    rate = nominal_rate(fps)
    total_frames %= 24 * 3600 * rate
    total_seconds, frames = divmod(total_frames, rate)
    minutes_total, seconds = divmod(total_seconds, 60)
    hours, minutes = divmod(minutes_total, 60)
    return Timecode(hours, minutes, seconds, frames, fps)


def check_fields(hours: int, minutes: int, seconds: int, frames: int, fps: float) -> None:
    if not 0 <= hours < 24:
        raise TimecodeError(f"Hours out of range: {hours}")
    if not 0 <= minutes < 60:
        raise TimecodeError(f"Minutes out of range: {minutes}")
    if not 0 <= seconds < 60:
        raise TimecodeError(f"Seconds out of range: {seconds}")
    if not 0 <= frames <= max_frame(fps):
        raise TimecodeError(f"Frames out of range for {fps:g} fps: {frames}")


def _calendar(epoch_seconds: int, tz: Optional[tzinfo]) -> datetime:
    return datetime.fromtimestamp(epoch_seconds, tz)


def derive_timecode(
    wall_clock_millis: int,
    offset_millis: int,
    fps: float,
    tz: Optional[tzinfo] = None,
) -> Timecode:
    """Timecode shown at ``wall_clock_millis`` for a session offset.

    Hours, minutes and seconds are the calendar fields of ``wall + offset`` in
    ``tz`` (local time when ``None``) so the clock wraps every 24 hours. The
    frame is the millisecond fraction scaled by ``fps``.
    """

    tc_millis = int(wall_clock_millis) + int(offset_millis)
    epoch_seconds, millis = divmod(tc_millis, 1000)
    moment = _calendar(epoch_seconds, tz)
    frames = math.floor(millis * float(fps) / 1000)
    frames = min(max(frames, 0), max_frame(fps))
    return Timecode(moment.hour, moment.minute, moment.second, frames, fps)


def offset_for(
    hours: int,
    minutes: int,
    seconds: int,
    frames: int,
    fps: float,
    now_millis: int,
    tz: Optional[tzinfo] = None,
) -> int:
    """Offset that makes ``derive_timecode(now_millis, offset)`` show the fields.

    The target is placed on the calendar day of ``now_millis``.
    """

    check_fields(hours, minutes, seconds, frames, fps)
    today = _calendar(int(now_millis) // 1000, tz)
    target = today.replace(hour=hours, minute=minutes, second=seconds, microsecond=0)
    target_millis = int(round(target.timestamp())) * 1000 + frame_millis(frames, fps)
    return target_millis - int(now_millis)


__all__ = [
    "DEFAULT_FRAME_RATE",
    "DROP_FRAME_RATES",
    "SUPPORTED_FRAME_RATES",
    "Timecode",
    "TimecodeError",
    "check_fields",
    "derive_timecode",
    "format_timecode",
    "frame_millis",
    "is_drop_frame",
    "max_frame",
    "nominal_rate",
    "offset_for",
    "parse_timecode",
    "timecode_from_frames",
    "validate_frame_rate",
]
