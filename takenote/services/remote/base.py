"""Remote session store abstraction.

Every operation reports failure through its result instead of raising, so
background saves can be retried on the next debounce or reconnect.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import List, Optional

from ...data.models import Session
from ...errors import StorageError


@dataclass
class StoreResult:
    ok: bool
    error: Optional[StorageError] = None
    queued: bool = False

    @classmethod
    def failure(cls, message: str) -> "StoreResult":
        return cls(ok=False, error=StorageError(message))


@dataclass
class FetchResult:
    ok: bool
    session: Optional[Session] = None
    error: Optional[StorageError] = None

    @classmethod
    def failure(cls, message: str) -> "FetchResult":
        return cls(ok=False, error=StorageError(message))


@dataclass
class ListResult:
    ok: bool
    sessions: List[Session] = field(default_factory=list)
    error: Optional[StorageError] = None

    @classmethod
    def failure(cls, message: str) -> "ListResult":
        return cls(ok=False, error=StorageError(message))


class RemoteSessionStore(abc.ABC):
    """Key-value store of complete session records keyed by session id."""

    @abc.abstractmethod
    def get(self, session_id: str) -> FetchResult:
        """Fetch one session; a missing record is ``ok`` with ``session=None``."""

    @abc.abstractmethod
    def put(self, user_id: str, session: Session) -> StoreResult:
        """Upsert the complete record, owned by ``user_id``."""

    @abc.abstractmethod
    def list(self, user_id: str) -> ListResult:
        """All sessions owned by ``user_id``, newest ``created_at`` first."""

    @abc.abstractmethod
    def delete(self, session_id: str) -> StoreResult:
        """Remove a session record."""


__all__ = ["FetchResult", "ListResult", "RemoteSessionStore", "StoreResult"]
