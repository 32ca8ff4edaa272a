"""Time-based identifiers for sessions, notes and metadata fields."""

from __future__ import annotations

from typing import Optional

from .timing import Clock, now_millis


class IdGenerator:
    """Produce ``<prefix>_<epoch-ms>`` ids that never repeat within a process.

    Two ids requested within the same millisecond get consecutive values, so
    ordering by id follows creation order.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock = clock or now_millis
        self._last = 0

    def next(self, prefix: str) -> str:
        value = max(int(self._clock()), self._last + 1)
        self._last = value
        return f"{prefix}_{value}"


__all__ = ["IdGenerator"]
