"""Wall-clock, ISO timestamp and timer scheduling helpers."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol

Clock = Callable[[], int]


def now_millis() -> int:
    """Milliseconds since the Unix epoch."""

    return time.time_ns() // 1_000_000


def iso_from_millis(millis: int) -> str:
    """UTC ISO-8601 string with millisecond precision and a ``Z`` suffix."""

    seconds, remainder = divmod(int(millis), 1000)
    moment = datetime.fromtimestamp(seconds, tz=timezone.utc).replace(microsecond=remainder * 1000)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso_millis(value: Optional[str]) -> int:
    """Epoch milliseconds for an ISO string; missing or unparsable gives 0."""

    if not value:
        return 0
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        return 0
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(round(moment.timestamp() * 1000))


class TimerHandle(Protocol):
    def cancel(self) -> Any: ...


class Scheduler(Protocol):
    """Anything with ``call_later``; an ``asyncio`` event loop qualifies."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


__all__ = [
    "Clock",
    "Scheduler",
    "TimerHandle",
    "iso_from_millis",
    "now_millis",
    "parse_iso_millis",
]
