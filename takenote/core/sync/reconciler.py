"""Persist and reconcile sessions against the remote store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ...data.models import Session
from ...errors import StorageError
from ...logging import get_logger
from ...services.remote.base import FetchResult, RemoteSessionStore, StoreResult
from ...utils.timing import Clock, now_millis
from .merge import introduced_note_ids, merge_sessions

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class MergeConflictNotice:
    """The merge brought in notes the local view did not have."""

    session_id: str
    note_ids: List[str] = field(default_factory=list)


@dataclass
class ReconcileOutcome:
    session: Session
    notice: Optional[MergeConflictNotice] = None
    error: Optional[StorageError] = None
    persisted: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


class SessionReconciler:
    """Bridge between the local session copy and the remote store."""

    def __init__(self, store: RemoteSessionStore, *, user_id: str, clock: Optional[Clock] = None) -> None:
        self.store = store
        self.user_id = user_id
        self._clock = clock or now_millis

    def persist(self, session: Session) -> StoreResult:
        """Write the complete record; failures are returned, not raised."""

        result = self.store.put(self.user_id, session)
        if result.ok:
            LOGGER.debug("Saved session %s", session.id)
        else:
            LOGGER.warning("Saving session %s failed: %s", session.id, result.error)
        return result

    def fetch(self, session_id: str) -> FetchResult:
        result = self.store.get(session_id)
        if not result.ok:
            LOGGER.warning("Fetching session %s failed: %s", session_id, result.error)
        return result

    def reconcile_on_reconnect(
        self,
        session_id: str,
        local: Session,
        deleted_ids: Iterable[str] = (),
    ) -> ReconcileOutcome:
        """Fetch the remote copy, merge it with ``local`` and save the result.

        A failed fetch leaves ``local`` untouched; calling again on the next
        reconnect is safe.
        """

        fetched = self.fetch(session_id)
        if not fetched.ok:
            return ReconcileOutcome(session=local, error=fetched.error)

        merged = merge_sessions(local, fetched.session, deleted_ids, now=self._clock())
        new_ids = introduced_note_ids(local, merged)
        notice = None
        if new_ids:
            LOGGER.info("Merge of session %s added %d note(s)", session_id, len(new_ids))
            notice = MergeConflictNotice(session_id=session_id, note_ids=new_ids)

        saved = self.persist(merged)
        return ReconcileOutcome(session=merged, notice=notice, error=saved.error, persisted=saved.ok)


__all__ = ["MergeConflictNotice", "ReconcileOutcome", "SessionReconciler"]
