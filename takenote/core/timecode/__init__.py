"""Timecode derivation and the running clock."""

from .engine import TimecodeEngine
from .smpte import (
    DROP_FRAME_RATES,
    SUPPORTED_FRAME_RATES,
    Timecode,
    TimecodeError,
    derive_timecode,
    format_timecode,
    parse_timecode,
)

__all__ = [
    "DROP_FRAME_RATES",
    "SUPPORTED_FRAME_RATES",
    "Timecode",
    "TimecodeEngine",
    "TimecodeError",
    "derive_timecode",
    "format_timecode",
    "parse_timecode",
]
