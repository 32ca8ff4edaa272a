"""In-memory session store for tests and offline usage."""

from __future__ import annotations

from typing import Dict

from ...data.models import Session
from .base import FetchResult, ListResult, RemoteSessionStore, StoreResult


class MemorySessionStore(RemoteSessionStore):
    """Dictionary-backed store; set ``available = False`` to simulate an outage."""

    def __init__(self) -> None:
        self._records: Dict[str, dict] = {}
        self.available = True
        self.put_count = 0

    def get(self, session_id: str) -> FetchResult:
        if not self.available:
            return FetchResult.failure("remote store unavailable")
        record = self._records.get(session_id)
        if record is None:
            return FetchResult(ok=True)
        return FetchResult(ok=True, session=Session.model_validate(record))

    def put(self, user_id: str, session: Session) -> StoreResult:
        if not self.available:
            return StoreResult.failure("remote store unavailable")
        record = session.to_record()
        record["userId"] = user_id
        self._records[session.id] = record
        self.put_count += 1
        return StoreResult(ok=True)

    def list(self, user_id: str) -> ListResult:
        if not self.available:
            return ListResult.failure("remote store unavailable")
        owned = [Session.model_validate(r) for r in self._records.values() if r.get("userId") == user_id]
        owned.sort(key=lambda s: s.created_at, reverse=True)
        return ListResult(ok=True, sessions=owned)

    def delete(self, session_id: str) -> StoreResult:
        if not self.available:
            return StoreResult.failure("remote store unavailable")
        self._records.pop(session_id, None)
        return StoreResult(ok=True)


__all__ = ["MemorySessionStore"]
