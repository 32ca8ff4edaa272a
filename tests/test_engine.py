from datetime import timezone

import pytest

from takenote.core.timecode import TimecodeEngine, TimecodeError
from takenote.core.timecode.engine import OFFSET_CACHE_KEY
from takenote.data.storage import MemoryCache


def _engine(clock, scheduler, **kwargs):
    kwargs.setdefault("offset_millis", 0)
    return TimecodeEngine(25, clock=clock, scheduler=scheduler, tz=timezone.utc, **kwargs)


def test_starts_editing_with_frozen_time_of_day(clock, scheduler):
    engine = _engine(clock, scheduler)

    assert engine.editing
    assert not engine.running
    assert engine.current_string() == "09:00:00:00"

    clock.advance(5000)
    assert engine.current_string() == "09:00:00:00"
    assert scheduler.pending == []


def test_commit_turns_fields_into_offset_and_runs(clock, scheduler):
    engine = _engine(clock, scheduler)
    seen = []
    engine.add_listener(seen.append)

    engine.set_fields(hours=10, minutes=0, seconds=0, frames=0)
    offset = engine.commit()

    assert offset == 3_600_000
    assert engine.running and not engine.editing
    assert seen == ["10:00:00:00"]

    scheduler.advance(1000)
    assert seen[-1] == "10:00:01:00"
    assert len(seen) == 26
    assert len(scheduler.pending) == 1


def test_display_is_derived_not_accumulated(clock, scheduler):
    engine = _engine(clock, scheduler)
    engine.set_fields(hours=10)
    engine.commit()

    # timers suspended while the host slept
    clock.advance(5 * 60 * 1000 + 80)

    assert engine.current_string() == "10:05:00:02"


def test_on_visible_refreshes_immediately(clock, scheduler):
    engine = _engine(clock, scheduler)
    seen = []
    engine.add_listener(seen.append)
    engine.sync_to_now()

    clock.advance(60_000)
    engine.on_visible()

    assert seen[-1] == "09:01:00:00"
    assert len(scheduler.pending) == 1


def test_set_fields_rejected_while_running(clock, scheduler):
    engine = _engine(clock, scheduler)
    engine.commit()

    with pytest.raises(TimecodeError):
        engine.set_fields(hours=1)
    with pytest.raises(TimecodeError):
        engine.set_frame_rate(24)


def test_set_fields_validates_frames(clock, scheduler):
    engine = _engine(clock, scheduler)

    with pytest.raises(TimecodeError):
        engine.set_fields(frames=25)
    assert engine.current().frames == 0


def test_frame_rate_change_clamps_and_keeps_offset(clock, scheduler):
    engine = _engine(clock, scheduler, offset_millis=1234)
    engine.set_fields(frames=24)

    engine.set_frame_rate(24)

    assert engine.frame_rate == 24.0
    assert engine.current().frames == 23
    assert engine.offset_millis == 1234


def test_drop_frame_display(clock, scheduler):
    engine = _engine(clock, scheduler)
    engine.set_frame_rate(29.97)
    engine.set_fields(hours=1, frames=15)
    engine.commit()

    assert engine.current_string() == "01:00:00;15"


def test_stop_holds_last_value(clock, scheduler):
    engine = _engine(clock, scheduler)
    engine.sync_to_now()
    engine.stop()

    clock.advance(3000)

    assert engine.current_string() == "09:00:00:00"
    assert scheduler.pending == []

    engine.toggle()
    assert engine.current_string() == "09:00:03:00"


def test_run_keeps_existing_offset(clock, scheduler):
    engine = _engine(clock, scheduler, offset_millis=60_000)
    engine.set_fields(hours=3)

    engine.run()

    assert engine.offset_millis == 60_000
    assert engine.current_string() == "09:01:00:00"


def test_dispose_cancels_refresh_timer(clock, scheduler):
    engine = _engine(clock, scheduler)
    engine.commit()
    assert scheduler.pending

    engine.dispose()
    engine.start()

    assert scheduler.pending == []
    assert not engine.running


def test_offset_is_cached_and_reloaded(clock, scheduler):
    cache = MemoryCache()
    engine = TimecodeEngine(25, clock=clock, scheduler=scheduler, cache=cache, tz=timezone.utc)
    engine.set_fields(hours=9, minutes=30)
    engine.commit()

    assert cache.get(OFFSET_CACHE_KEY) == str(30 * 60 * 1000)

    reloaded = TimecodeEngine(25, clock=clock, cache=cache, tz=timezone.utc)
    assert reloaded.offset_millis == 30 * 60 * 1000
    assert reloaded.current_string() == "09:30:00:00"


def test_restore_applies_session_offset_while_editing(clock, scheduler):
    engine = _engine(clock, scheduler)

    engine.restore(29.97, 2000)

    assert engine.frame_rate == 29.97
    assert engine.current_string() == "09:00:02;00"


def test_commit_requires_editing(clock, scheduler):
    engine = _engine(clock, scheduler)
    engine.set_fields(hours=10)
    engine.commit()
    clock.advance(60_000)

    with pytest.raises(TimecodeError):
        engine.commit()

    assert engine.offset_millis == 3_600_000
    assert engine.current_string() == "10:01:00:00"
