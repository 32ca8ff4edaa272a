"""Shared fakes: a controllable wall clock and a manual timer scheduler."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

import pytest

from takenote.config import Settings
from takenote.core.session import SessionWorkspace
from takenote.data.storage import MemoryCache
from takenote.services.entitlements import StaticEntitlements
from takenote.services.remote import MemorySessionStore

# 2025-03-14 09:00:00.000 UTC
START_MILLIS = int(datetime(2025, 3, 14, 9, 0, 0, tzinfo=timezone.utc).timestamp() * 1000)


class FakeClock:
    def __init__(self, now: int = START_MILLIS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


class _Timer:
    def __init__(self, when: int, callback: Callable[..., Any], args: tuple) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """``call_later`` driven by ``FakeClock``; nothing fires until ``advance``."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.timers: List[_Timer] = []

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> _Timer:
        timer = _Timer(self.clock.now + int(round(delay * 1000)), callback, args)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> List[_Timer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def _next_due(self, limit: int) -> Optional[_Timer]:
        due = [t for t in self.pending if t.when <= limit]
        return min(due, key=lambda t: t.when) if due else None

    def advance(self, millis: int) -> None:
        target = self.clock.now + millis
        while True:
            timer = self._next_due(target)
            if timer is None:
                break
            self.clock.now = max(self.clock.now, timer.when)
            timer.fired = True
            timer.callback(*timer.args)
        self.clock.now = target

    def run_ready(self) -> None:
        self.advance(0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler(clock: FakeClock) -> ManualScheduler:
    return ManualScheduler(clock)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_path=tmp_path / "takenote.db",
        cache_path=tmp_path / "cache.db",
        user_id="user-1",
    )


@pytest.fixture
def store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def make_workspace(clock, scheduler, settings, store):
    def _make(pro: bool = False, **kwargs: Any) -> SessionWorkspace:
        options = dict(
            user_id="user-1",
            store=store,
            entitlements=StaticEntitlements(default=pro),
            scheduler=scheduler,
            settings=settings,
            cache=MemoryCache(),
            clock=clock,
            tz=timezone.utc,
        )
        options.update(kwargs)
        return SessionWorkspace(**options)

    return _make
