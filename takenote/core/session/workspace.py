"""Session workspace: the owner of one user's current session.

All state changes happen synchronously inside the handler of the event that
caused them (a user action, a timer, a connectivity or visibility change).
Saving is debounced with a single cancel-and-reschedule timer, so a burst of
edits produces one write.
"""

from __future__ import annotations

import json
from datetime import datetime, tzinfo
from typing import Callable, Dict, List, Optional, Set

from ...config import Settings, get_settings
from ...data.models import MetadataField, MicAssignment, MicChannel, Note, NoteKind, Session, default_metadata
from ...data.storage import LocalCache, MemoryCache
from ...export import EXPORTERS, render_export, snapshot_from_session
from ...logging import get_logger
from ...services.entitlements import EntitlementProvider
from ...services.remote.base import RemoteSessionStore, StoreResult
from ...utils.ids import IdGenerator
from ...utils.timing import Clock, Scheduler, TimerHandle, iso_from_millis, now_millis
from ..sync.merge import merge_sessions, same_content
from ..sync.reconciler import MergeConflictNotice, ReconcileOutcome, SessionReconciler
from ..timecode.engine import TimecodeEngine
from ..timecode.smpte import TimecodeError, parse_timecode
from .outcomes import ActionOutcome
from .tiers import Tier, can_create_note, can_create_session, can_export, tier_for

LOGGER = get_logger(__name__)

NoticeListener = Callable[[MergeConflictNotice], None]


class SessionWorkspace:
    """Current session, its timecode engine and its sync state for one user."""

    def __init__(
        self,
        *,
        user_id: str,
        store: RemoteSessionStore,
        entitlements: EntitlementProvider,
        scheduler: Optional[Scheduler] = None,
        settings: Optional[Settings] = None,
        cache: Optional[LocalCache] = None,
        clock: Optional[Clock] = None,
        tz: Optional[tzinfo] = None,
        online: bool = True,
    ) -> None:
        self.settings = settings or get_settings()
        self.user_id = user_id
        self.entitlements = entitlements
        self._clock = clock or now_millis
        self._scheduler = scheduler
        self._cache: LocalCache = cache if cache is not None else MemoryCache()
        self._tz = tz
        self._ids = IdGenerator(self._clock)
        self.reconciler = SessionReconciler(store, user_id=user_id, clock=self._clock)
        self.engine = TimecodeEngine(
            self.settings.default_fps,
            clock=self._clock,
            scheduler=scheduler,
            cache=self._cache,
            tz=tz,
        )

        self.sessions: List[Session] = []
        self.current: Optional[Session] = None
        self._deleted: Dict[str, Set[str]] = {}
        self._online = online
        self._dirty = False
        self._needs_sync = False
        self._disposed = False
        self._save_timer: Optional[TimerHandle] = None
        self._reconcile_timer: Optional[TimerHandle] = None
        self._long_note_in: Optional[str] = None
        self._notice_listeners: List[NoticeListener] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def tier(self) -> Tier:
        return tier_for(self.entitlements.is_pro(self.user_id))

    @property
    def online(self) -> bool:
        return self._online

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def save_pending(self) -> bool:
        return self._save_timer is not None

    def visible_notes(self) -> List[Note]:
        return self.current.active_notes() if self.current else []

    def deleted_ids(self, session_id: Optional[str] = None) -> Set[str]:
        """Ids tombstoned in a session; consulted by every merge, never pruned."""

        session_id = session_id or (self.current.id if self.current else None)
        if session_id is None:
            return set()
        if session_id not in self._deleted:
            raw = self._cache.get(f"deleted:{session_id}")
            try:
                loaded = set(json.loads(raw)) if raw else set()
            except ValueError:
                LOGGER.debug("Ignoring unreadable deleted-id cache for %s", session_id)
                loaded = set()
            self._deleted[session_id] = loaded
        return self._deleted[session_id]

    def add_notice_listener(self, listener: NoticeListener) -> None:
        self._notice_listeners.append(listener)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------
    def open(self, session_id: Optional[str] = None) -> ActionOutcome:
        """Load the user's sessions and open one.

        Without ``session_id`` the newest session is opened, and a first
        session is created for a user who has none.
        """

        listed = self.reconciler.store.list(self.user_id)
        if not listed.ok:
            LOGGER.warning("Could not list sessions: %s", listed.error)
            return ActionOutcome.failed(str(listed.error))
        self.sessions = sorted(listed.sessions, key=lambda s: s.created_at, reverse=True)
        if session_id is not None:
            return self.load_session(session_id)
        if self.sessions:
            return self.load_session(self.sessions[0].id)
        return self.create_session()

    def create_session(self, name: Optional[str] = None) -> ActionOutcome:
        if not can_create_session(self.tier, len(self.sessions), self.settings.free_session_limit):
            return ActionOutcome.upgrade(
                f"Free tier is limited to {self.settings.free_session_limit} session(s). "
                "Upgrade to Pro for unlimited sessions."
            )

        now = self._clock()
        stamp = iso_from_millis(now)
        if not (name or "").strip():
            day = datetime.fromtimestamp(now / 1000, self._tz).strftime("%Y-%m-%d")
            name = f"Session {len(self.sessions) + 1} - {day}"
        metadata = [field.model_copy() for field in self.current.metadata] if self.current else default_metadata()
        session = Session(
            id=self._ids.next(self.settings.session_prefix),
            name=name.strip(),
            created_at=stamp,
            updated_at=stamp,
            user_id=self.user_id,
            metadata=metadata,
            fps=self.engine.frame_rate,
            tc_offset=self.engine.offset_millis,
        )

        # creation is user-initiated, so a failed write is reported
        result = self.reconciler.persist(session)
        if not result.ok:
            return ActionOutcome.failed(f"Could not create session: {result.error}")

        self.flush()
        self.sessions.insert(0, session)
        self._activate(session)
        LOGGER.info("Created session %s (%s)", session.id, session.name)
        return ActionOutcome.success(session)

    def load_session(self, session_id: str) -> ActionOutcome:
        """Switch sessions, saving the outgoing one first."""

        if self.current is not None and self.current.id == session_id:
            return ActionOutcome.success(self.current)
        self.flush()

        listed = next((s for s in self.sessions if s.id == session_id), None)
        fetched = self.reconciler.fetch(session_id)
        base = fetched.session if fetched.ok and fetched.session is not None else listed
        local_copy = self._read_local_copy(session_id)

        if base is None and local_copy is None:
            LOGGER.warning("Session %s not found", session_id)
            self._deactivate()
            return ActionOutcome.failed(f"Session {session_id} not found")

        self._needs_sync = False
        session = base or local_copy
        if base is not None and local_copy is not None:
            # the local copy may hold offline edits whatever its stamp says
            session = merge_sessions(local_copy, base, self.deleted_ids(session_id), now=self._clock())
            self._needs_sync = not same_content(session, base)
        elif base is None and fetched.ok:
            # never reached the store
            self._needs_sync = True

        if listed is None:
            self.sessions.insert(0, session)
        else:
            self.sessions = [session if s.id == session_id else s for s in self.sessions]
        self._activate(session)
        self._push_pending()
        return ActionOutcome.success(session)

    def delete_session(self, session_id: str) -> ActionOutcome:
        result = self.reconciler.store.delete(session_id)
        if not result.ok:
            return ActionOutcome.failed(f"Could not delete session: {result.error}")
        self.sessions = [s for s in self.sessions if s.id != session_id]
        if self.current is not None and self.current.id == session_id:
            self._deactivate()
            if self.sessions:
                self.load_session(self.sessions[0].id)
        return ActionOutcome.success()

    def rename_session(self, name: str) -> ActionOutcome:
        if self.current is None:
            return ActionOutcome.invalid("No session is open")
        if not name.strip():
            return ActionOutcome.invalid("Session name is empty")
        self.current.name = name.strip()
        self._mark_dirty()
        return ActionOutcome.success(self.current)

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------
    def add_note(self, text: str) -> ActionOutcome:
        """Quick note at the current timecode, appended in creation order."""

        blocked = self._check_note_allowed(text)
        if blocked is not None:
            return blocked
        timecode = self.engine.current_string()
        return self._append_note(self._new_note(text, timecode, timecode, NoteKind.QUICK))

    def begin_long_note(self) -> ActionOutcome:
        if self.current is None:
            return ActionOutcome.invalid("No session is open")
        self._long_note_in = self.engine.current_string()
        return ActionOutcome.success(self._long_note_in)

    def commit_long_note(self, text: str) -> ActionOutcome:
        """Long note spanning from ``begin_long_note`` to now."""

        blocked = self._check_note_allowed(text)
        if blocked is not None:
            return blocked
        timecode_out = self.engine.current_string()
        timecode_in = self._long_note_in or timecode_out
        self._long_note_in = None
        return self._append_note(self._new_note(text, timecode_in, timecode_out, NoteKind.LONG))

    def insert_note_at(self, text: str, timecode: str) -> ActionOutcome:
        """Retroactive note; the collection is re-sorted by timecode."""

        blocked = self._check_note_allowed(text)
        if blocked is not None:
            return blocked
        try:
            parsed = parse_timecode(timecode, self.current.fps).format()
        except TimecodeError as exc:
            return ActionOutcome.invalid(str(exc))
        note = self._new_note(text, parsed, parsed, NoteKind.CUSTOM)
        self.current.notes.append(note)
        self.current.notes.sort(key=lambda n: n.timecode_in)
        self._mark_dirty()
        return ActionOutcome.success(note)

    def update_note(self, note_id: str, text: str) -> ActionOutcome:
        note = self.current.find_note(note_id) if self.current else None
        if note is None or note.deleted:
            return ActionOutcome.invalid(f"No note {note_id}")
        if not text.strip():
            return ActionOutcome.invalid("Note text is empty")
        note.text = text.strip()
        self._mark_dirty()
        return ActionOutcome.success(note)

    def delete_note(self, note_id: str) -> ActionOutcome:
        """Tombstone a note; the id is remembered for every later merge."""

        note = self.current.find_note(note_id) if self.current else None
        if note is None:
            return ActionOutcome.invalid(f"No note {note_id}")
        note.deleted = True
        self.deleted_ids().add(note_id)
        self._save_deleted_ids(self.current.id)
        self._mark_dirty()
        return ActionOutcome.success(note)

    def _check_note_allowed(self, text: str) -> Optional[ActionOutcome]:
        if self.current is None:
            return ActionOutcome.invalid("No session is open")
        if not can_create_note(self.tier, len(self.current.active_notes()), self.settings.free_note_limit):
            return ActionOutcome.upgrade(
                f"Free tier is limited to {self.settings.free_note_limit} notes per session. "
                "Upgrade to Pro for unlimited notes."
            )
        if not (text or "").strip():
            return ActionOutcome.invalid("Note text is empty")
        return None

    def _new_note(self, text: str, timecode_in: str, timecode_out: str, kind: NoteKind) -> Note:
        return Note(
            id=self._ids.next(self.settings.note_prefix),
            timecode_in=timecode_in,
            timecode_out=timecode_out,
            text=text.strip(),
            kind=kind,
            timestamp=iso_from_millis(self._clock()),
        )

    def _append_note(self, note: Note) -> ActionOutcome:
        self.current.notes.append(note)
        self._mark_dirty()
        return ActionOutcome.success(note)

    # ------------------------------------------------------------------
    # Mics and metadata
    # ------------------------------------------------------------------
    def add_mic(self, frequency: str = "") -> ActionOutcome:
        if self.current is None:
            return ActionOutcome.invalid("No session is open")
        number = max((mic.number for mic in self.current.mics), default=0) + 1
        mic = MicChannel(number=number, frequency=frequency.strip())
        self.current.mics.append(mic)
        self._mark_dirty()
        return ActionOutcome.success(mic)

    def remove_mic(self, number: int) -> ActionOutcome:
        mic = self.current.find_mic(number) if self.current else None
        if mic is None:
            return ActionOutcome.invalid(f"No mic channel {number}")
        self.current.mics.remove(mic)
        self._mark_dirty()
        return ActionOutcome.success(mic)

    def set_mic_frequency(self, number: int, frequency: str) -> ActionOutcome:
        mic = self.current.find_mic(number) if self.current else None
        if mic is None:
            return ActionOutcome.invalid(f"No mic channel {number}")
        mic.frequency = frequency.strip()
        self._mark_dirty()
        return ActionOutcome.success(mic)

    def assign_mic(self, number: int, person_name: str, photo_ref: Optional[str] = None) -> ActionOutcome:
        """Hand a channel to someone; changes after the first record the timecode."""

        mic = self.current.find_mic(number) if self.current else None
        if mic is None:
            return ActionOutcome.invalid(f"No mic channel {number}")
        if not person_name.strip():
            return ActionOutcome.invalid("Person name is empty")
        timecode = self.engine.current_string() if mic.assignments else None
        mic.assignments.append(MicAssignment(person_name=person_name.strip(), timecode=timecode, photo_ref=photo_ref))
        self._mark_dirty()
        return ActionOutcome.success(mic)

    def add_metadata_field(self, label: str = "", placeholder: str = "") -> ActionOutcome:
        if self.current is None:
            return ActionOutcome.invalid("No session is open")
        field = MetadataField(id=self._ids.next("field"), label=label, placeholder=placeholder)
        self.current.metadata.append(field)
        self._mark_dirty()
        return ActionOutcome.success(field)

    def update_metadata_field(
        self, field_id: str, *, label: Optional[str] = None, value: Optional[str] = None
    ) -> ActionOutcome:
        field = self.current.find_field(field_id) if self.current else None
        if field is None:
            return ActionOutcome.invalid(f"No metadata field {field_id}")
        if label is not None:
            field.label = label
        if value is not None:
            field.value = value
        self._mark_dirty()
        return ActionOutcome.success(field)

    def remove_metadata_field(self, field_id: str) -> ActionOutcome:
        field = self.current.find_field(field_id) if self.current else None
        if field is None:
            return ActionOutcome.invalid(f"No metadata field {field_id}")
        self.current.metadata.remove(field)
        self._mark_dirty()
        return ActionOutcome.success(field)

    # ------------------------------------------------------------------
    # Timecode
    # ------------------------------------------------------------------
    def edit_timecode(self) -> None:
        self.engine.edit()

    def set_timecode_fields(self, **fields: int) -> ActionOutcome:
        try:
            return ActionOutcome.success(self.engine.set_fields(**fields))
        except TimecodeError as exc:
            return ActionOutcome.invalid(str(exc))

    def set_frame_rate(self, fps: float) -> ActionOutcome:
        try:
            self.engine.set_frame_rate(fps)
        except TimecodeError as exc:
            return ActionOutcome.invalid(str(exc))
        if self.current is not None:
            self.current.fps = self.engine.frame_rate
            self._mark_dirty()
        return ActionOutcome.success(self.engine.frame_rate)

    def commit_timecode(self) -> ActionOutcome:
        """Leave editing mode; the entered fields become the session offset."""

        try:
            offset = self.engine.commit()
        except TimecodeError as exc:
            return ActionOutcome.invalid(str(exc))
        self._store_offset(offset)
        return ActionOutcome.success(self.engine.current_string())

    def sync_to_now(self) -> ActionOutcome:
        self.engine.sync_to_now()
        self._store_offset(0)
        return ActionOutcome.success(self.engine.current_string())

    def _store_offset(self, offset: int) -> None:
        if self.current is not None and self.current.tc_offset != offset:
            self.current.tc_offset = offset
            self._mark_dirty()

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def export(self, fmt: str) -> ActionOutcome:
        if self.current is None:
            return ActionOutcome.invalid("No session is open")
        fmt = fmt.lower()
        if fmt not in EXPORTERS:
            return ActionOutcome.invalid(f"Unknown export format: {fmt}")
        if not can_export(self.tier, fmt):
            return ActionOutcome.upgrade(f"{fmt.upper()} export is a Pro feature.")
        return ActionOutcome.success(render_export(fmt, snapshot_from_session(self.current)))

    # ------------------------------------------------------------------
    # Persistence and events
    # ------------------------------------------------------------------
    def persist(self) -> StoreResult:
        """Save now. Offline, only the local durable copy is updated."""

        self._cancel_save()
        session = self.current
        if session is None:
            return StoreResult(ok=True)
        session.updated_at = iso_from_millis(self._clock())
        self._write_local_copy(session)
        self._dirty = False
        if not self._online:
            LOGGER.info("Offline; session %s kept locally until reconnect", session.id)
            self._needs_sync = True
            return StoreResult(ok=True, queued=True)
        result = self.reconciler.persist(session)
        self._needs_sync = not result.ok
        return result

    def flush(self) -> Optional[StoreResult]:
        """Run a pending debounced save immediately (tab hide, exit, switch)."""

        if not self._dirty:
            self._cancel_save()
            return None
        return self.persist()

    def reconcile(self) -> Optional[ReconcileOutcome]:
        """Merge the current session with the remote copy and save the result."""

        self._reconcile_timer = None
        session = self.current
        if self._disposed or session is None:
            return None
        outcome = self.reconciler.reconcile_on_reconnect(session.id, session, self.deleted_ids(session.id))
        if self.current is not session:
            # switched sessions while the fetch was in flight
            return outcome
        if outcome.ok and not same_content(outcome.session, session):
            # remote additions or deletions the local view does not show yet
            self._apply_merged(outcome.session)
        if outcome.notice is not None:
            for listener in list(self._notice_listeners):
                listener(outcome.notice)
        if outcome.ok:
            self._needs_sync = False
        return outcome

    def on_online(self) -> None:
        """Reconcile after reconnecting, or retry a save that did not reach the store."""

        if self._online and not self._needs_sync:
            return
        if not self._online:
            LOGGER.info("Connectivity restored")
        self._online = True
        if self.current is None:
            return
        if self._scheduler is None:
            self.reconcile()
            return
        if self._reconcile_timer is not None:
            self._reconcile_timer.cancel()
        self._reconcile_timer = self._scheduler.call_later(0, self.reconcile)

    def on_offline(self) -> None:
        if self._online:
            LOGGER.info("Connectivity lost; saving locally")
        self._online = False

    def on_visibility(self, visible: bool) -> None:
        if visible:
            self.engine.on_visible()
        else:
            self.flush()

    def dispose(self, *, flush: bool = True) -> None:
        """Tear down: optionally save, then cancel every timer."""

        if self._disposed:
            return
        if flush:
            self.flush()
        self._disposed = True
        self._cancel_save()
        if self._reconcile_timer is not None:
            self._reconcile_timer.cancel()
            self._reconcile_timer = None
        self.engine.dispose()
        self._notice_listeners.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _mark_dirty(self) -> None:
        self._dirty = True
        self._cancel_save()
        if self._scheduler is not None and not self._disposed:
            self._save_timer = self._scheduler.call_later(self.settings.save_debounce_seconds, self._on_save_timer)

    def _on_save_timer(self) -> None:
        self._save_timer = None
        if self._disposed or not self._dirty:
            return
        self.persist()

    def _cancel_save(self) -> None:
        if self._save_timer is not None:
            self._save_timer.cancel()
            self._save_timer = None

    def _activate(self, session: Session) -> None:
        self._cancel_save()
        self._dirty = False
        self._long_note_in = None
        self.current = session
        self.engine.restore(session.fps, session.tc_offset)

    def _deactivate(self) -> None:
        self._cancel_save()
        self._dirty = False
        self._long_note_in = None
        self.current = None

    def _push_pending(self) -> None:
        if self._needs_sync and self._online and self.current is not None and not self._disposed:
            self.reconcile()

    def _apply_merged(self, merged: Session) -> None:
        self.current = merged
        tombstoned = {note.id for note in merged.notes if note.deleted}
        deleted = self.deleted_ids(merged.id)
        if not tombstoned <= deleted:
            deleted.update(tombstoned)
            self._save_deleted_ids(merged.id)
        self.sessions = [merged if s.id == merged.id else s for s in self.sessions]
        self._write_local_copy(merged)
        if merged.fps != self.engine.frame_rate or merged.tc_offset != self.engine.offset_millis:
            self.engine.restore(merged.fps, merged.tc_offset)

    def _save_deleted_ids(self, session_id: str) -> None:
        self._cache.set(f"deleted:{session_id}", json.dumps(sorted(self.deleted_ids(session_id))))

    def _write_local_copy(self, session: Session) -> None:
        self._cache.set(f"session:{session.id}", session.model_dump_json(by_alias=True))

    def _read_local_copy(self, session_id: str) -> Optional[Session]:
        raw = self._cache.get(f"session:{session_id}")
        if not raw:
            return None
        try:
            return Session.model_validate_json(raw)
        except ValueError:
            LOGGER.debug("Ignoring unreadable local copy of %s", session_id)
            return None


__all__ = ["SessionWorkspace"]
