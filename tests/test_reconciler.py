from takenote.core.sync import SessionReconciler
from takenote.data.models import Note, Session
from takenote.services.remote import MemorySessionStore


def _note(note_id, deleted=False):
    return Note(
        id=note_id,
        timecode_in="09:00:00:00",
        timecode_out="09:00:00:00",
        text=note_id,
        timestamp="2025-03-14T09:00:00.000Z",
        deleted=deleted,
    )


def _session(notes, updated_at="2025-03-14T09:00:00.000Z"):
    return Session(id="session_1", name="Day", created_at="2025-03-14T09:00:00.000Z", updated_at=updated_at, notes=notes)


def test_failed_fetch_leaves_local_untouched(clock):
    store = MemorySessionStore()
    store.available = False
    reconciler = SessionReconciler(store, user_id="user-1", clock=clock)
    local = _session([_note("a")])

    outcome = reconciler.reconcile_on_reconnect("session_1", local)

    assert not outcome.ok
    assert outcome.session is local
    assert not outcome.persisted
    assert store.put_count == 0


def test_reconcile_reports_notes_brought_in_from_remote(clock):
    store = MemorySessionStore()
    store.put("user-1", _session([_note("remote")]))
    reconciler = SessionReconciler(store, user_id="user-1", clock=clock)

    outcome = reconciler.reconcile_on_reconnect("session_1", _session([_note("local")]))

    assert outcome.ok and outcome.persisted
    assert outcome.notice is not None
    assert outcome.notice.note_ids == ["remote"]
    stored = store.get("session_1").session
    assert sorted(note.id for note in stored.notes) == ["local", "remote"]


def test_reconcile_without_new_notes_has_no_notice(clock):
    store = MemorySessionStore()
    store.put("user-1", _session([_note("a")]))
    reconciler = SessionReconciler(store, user_id="user-1", clock=clock)

    outcome = reconciler.reconcile_on_reconnect("session_1", _session([_note("a", deleted=True)]), {"a"})

    assert outcome.notice is None
    assert store.get("session_1").session.find_note("a").deleted


def test_reconcile_against_missing_remote_uploads_local(clock):
    store = MemorySessionStore()
    reconciler = SessionReconciler(store, user_id="user-1", clock=clock)

    outcome = reconciler.reconcile_on_reconnect("session_1", _session([_note("a")]))

    assert outcome.persisted
    assert outcome.session.notes[0].id == "a"
    assert store.list("user-1").sessions[0].id == "session_1"


def test_persist_failure_is_returned_not_raised(clock):
    store = MemorySessionStore()
    store.available = False
    reconciler = SessionReconciler(store, user_id="user-1", clock=clock)

    result = reconciler.persist(_session([]))

    assert not result.ok
    assert "unavailable" in str(result.error)
