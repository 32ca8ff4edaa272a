"""Running timecode clock owned by a session view."""

from __future__ import annotations

from datetime import tzinfo
from typing import TYPE_CHECKING, Callable, List, Optional

from ...logging import get_logger
from ...utils.timing import Clock, Scheduler, TimerHandle, now_millis
from .smpte import (
    DEFAULT_FRAME_RATE,
    Timecode,
    TimecodeError,
    check_fields,
    derive_timecode,
    offset_for,
    validate_frame_rate,
)

if TYPE_CHECKING:
    from ...data.storage import LocalCache

LOGGER = get_logger(__name__)

OFFSET_CACHE_KEY = "tcOffset"

TickListener = Callable[[str], None]


class TimecodeEngine:
    """Virtual SMPTE clock derived from ``clock() + offset_millis``.

    The engine is in one of three states: editing (fields frozen and directly
    settable), running (derived on every refresh) or stopped (last value held).
    It starts in editing mode showing the current time of day.
    """

    def __init__(
        self,
        fps: float = DEFAULT_FRAME_RATE,
        offset_millis: Optional[int] = None,
        *,
        clock: Optional[Clock] = None,
        scheduler: Optional[Scheduler] = None,
        cache: Optional["LocalCache"] = None,
        tz: Optional[tzinfo] = None,
    ) -> None:
        self._clock = clock or now_millis
        self._scheduler = scheduler
        self._cache = cache
        self._tz = tz
        self._frame_rate = validate_frame_rate(fps)
        if offset_millis is None:
            offset_millis = self._load_offset()
        self._offset = int(offset_millis)
        self._running = False
        self._editing = True
        self._disposed = False
        self._timer: Optional[TimerHandle] = None
        self._listeners: List[TickListener] = []
        self._fields = self._derive()
        self._display = self._fields

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def frame_rate(self) -> float:
        return self._frame_rate

    @property
    def offset_millis(self) -> int:
        return self._offset

    @property
    def running(self) -> bool:
        return self._running

    @property
    def editing(self) -> bool:
        return self._editing

    def add_listener(self, listener: TickListener) -> None:
        self._listeners.append(listener)

    def current(self) -> Timecode:
        if self._editing:
            return self._fields
        if self._running:
            self._display = self._derive()
        return self._display

    def current_string(self) -> str:
        return self.current().format()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def edit(self) -> None:
        """Freeze the clock and expose the fields for direct editing."""

        self._fields = self.current()
        self._editing = True
        self._running = False
        self._cancel_timer()

    def set_fields(
        self,
        *,
        hours: Optional[int] = None,
        minutes: Optional[int] = None,
        seconds: Optional[int] = None,
        frames: Optional[int] = None,
    ) -> Timecode:
        if not self._editing:
            raise TimecodeError("Timecode fields can only be changed while editing")
        current = self._fields
        updated = Timecode(
            current.hours if hours is None else int(hours),
            current.minutes if minutes is None else int(minutes),
            current.seconds if seconds is None else int(seconds),
            current.frames if frames is None else int(frames),
            self._frame_rate,
        )
        check_fields(updated.hours, updated.minutes, updated.seconds, updated.frames, self._frame_rate)
        self._fields = updated
        return updated

    def set_frame_rate(self, fps: float) -> None:
        if not self._editing:
            raise TimecodeError("Frame rate can only be changed while editing")
        self._frame_rate = validate_frame_rate(fps)
        self._fields = self._fields.with_fps(self._frame_rate)
        self._display = self._display.with_fps(self._frame_rate)

    def commit(self) -> int:
        """Turn the edited fields into an offset and start running."""

        if not self._editing:
            raise TimecodeError("Timecode can only be committed while editing")
        fields = self._fields
        self._offset = offset_for(
            fields.hours,
            fields.minutes,
            fields.seconds,
            fields.frames,
            self._frame_rate,
            self._clock(),
            self._tz,
        )
        self._save_offset()
        LOGGER.info("Timecode set to %s (offset %d ms)", fields.format(), self._offset)
        self._editing = False
        self._resume()
        return self._offset

    def start(self) -> None:
        if self._disposed:
            return
        if self._editing:
            self.commit()
        elif not self._running:
            self._resume()

    def run(self) -> None:
        """Start running on the current offset, discarding edited fields."""

        self._editing = False
        self._resume()

    def stop(self) -> None:
        if self._running:
            self._display = self._derive()
        self._running = False
        self._cancel_timer()

    def toggle(self) -> None:
        if self._running:
            self.stop()
        else:
            self.start()

    def sync_to_now(self) -> None:
        """Drop the offset so the display follows the wall clock."""

        self._offset = 0
        self._save_offset()
        self._editing = False
        self._resume()

    def restore(self, fps: float, offset_millis: int) -> None:
        """Apply a loaded session's frame rate and offset."""

        self._frame_rate = validate_frame_rate(fps)
        self._offset = int(offset_millis)
        self._save_offset()
        self._display = self._derive()
        if self._editing:
            self._fields = self._display

    def on_visible(self) -> None:
        """Recompute immediately; host timers may have been suspended."""

        if self._running and not self._disposed:
            self._cancel_timer()
            self._tick()

    def dispose(self) -> None:
        self._disposed = True
        self._running = False
        self._cancel_timer()
        self._listeners.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _derive(self) -> Timecode:
        return derive_timecode(self._clock(), self._offset, self._frame_rate, self._tz)

    def _resume(self) -> None:
        if self._disposed:
            return
        self._running = True
        self._cancel_timer()
        self._tick()

    def _tick(self) -> None:
        self._timer = None
        if self._disposed or not self._running:
            return
        self._display = self._derive()
        text = self._display.format()
        for listener in list(self._listeners):
            listener(text)
        if self._scheduler is not None:
            self._timer = self._scheduler.call_later(1.0 / self._frame_rate, self._tick)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _load_offset(self) -> int:
        if self._cache is None:
            return 0
        raw = self._cache.get(OFFSET_CACHE_KEY)
        try:
            return int(raw) if raw is not None else 0
        except ValueError:
            LOGGER.debug("Ignoring unreadable cached offset %r", raw)
            return 0

    def _save_offset(self) -> None:
        if self._cache is not None:
            self._cache.set(OFFSET_CACHE_KEY, str(self._offset))


__all__ = ["OFFSET_CACHE_KEY", "TimecodeEngine"]
