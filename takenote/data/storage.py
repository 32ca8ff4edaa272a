"""SQLite storage for session records and the local durable cache."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Dict, Optional, Protocol

from pydantic import ValidationError

from ..logging import get_logger
from ..services.remote.base import FetchResult, ListResult, RemoteSessionStore, StoreResult
from .models import Session

LOGGER = get_logger(__name__)


class SessionStore(RemoteSessionStore):
    """Session records kept as whole JSON documents in SQLite."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.path)

    def initialize(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT,
                    payload TEXT NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_sessions_user ON sessions(user_id, created_at)")
            conn.commit()

    def get(self, session_id: str) -> FetchResult:
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT payload FROM sessions WHERE id = ?", (session_id,)).fetchone()
        except sqlite3.Error as exc:
            LOGGER.warning("Failed to fetch session %s: %s", session_id, exc)
            return FetchResult.failure(str(exc))
        if not row:
            return FetchResult(ok=True)
        try:
            return FetchResult(ok=True, session=Session.model_validate_json(row[0]))
        except ValidationError as exc:
            LOGGER.warning("Stored session %s is unreadable: %s", session_id, exc)
            return FetchResult.failure(f"corrupt record for {session_id}")

    def put(self, user_id: str, session: Session) -> StoreResult:
        record = session.to_record()
        record["userId"] = user_id
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO sessions (id, user_id, name, created_at, updated_at, payload)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        session.id,
                        user_id,
                        session.name,
                        session.created_at,
                        session.updated_at,
                        json.dumps(record),
                    ),
                )
                conn.commit()
        except sqlite3.Error as exc:
            LOGGER.warning("Failed to save session %s: %s", session.id, exc)
            return StoreResult.failure(str(exc))
        return StoreResult(ok=True)

    def list(self, user_id: str) -> ListResult:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT id, payload FROM sessions WHERE user_id = ? ORDER BY created_at DESC",
                    (user_id,),
                ).fetchall()
        except sqlite3.Error as exc:
            LOGGER.warning("Failed to list sessions for %s: %s", user_id, exc)
            return ListResult.failure(str(exc))
        sessions = []
        for session_id, payload in rows:
            try:
                sessions.append(Session.model_validate_json(payload))
            except ValidationError:
                LOGGER.warning("Skipping unreadable session %s", session_id)
        return ListResult(ok=True, sessions=sessions)

    def delete(self, session_id: str) -> StoreResult:
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
                conn.commit()
        except sqlite3.Error as exc:
            LOGGER.warning("Failed to delete session %s: %s", session_id, exc)
            return StoreResult.failure(str(exc))
        return StoreResult(ok=True)


class LocalCache(Protocol):
    """Best-effort string storage; implementations never raise on write."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryCache:
    def __init__(self) -> None:
        self.values: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value


class SQLiteLocalCache:
    """Key/value table on the device, used for offsets and offline copies."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _connect(self) -> sqlite3.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.path)
        conn.execute("CREATE TABLE IF NOT EXISTS cache (key TEXT PRIMARY KEY, value TEXT NOT NULL)")
        return conn

    def get(self, key: str) -> Optional[str]:
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT value FROM cache WHERE key = ?", (key,)).fetchone()
        except (sqlite3.Error, OSError) as exc:
            LOGGER.debug("Cache read of %s failed: %s", key, exc)
            return None
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        try:
            with self._connect() as conn:
                conn.execute("INSERT OR REPLACE INTO cache (key, value) VALUES (?, ?)", (key, value))
                conn.commit()
        except (sqlite3.Error, OSError) as exc:
            LOGGER.debug("Cache write of %s failed: %s", key, exc)


__all__ = ["LocalCache", "MemoryCache", "SQLiteLocalCache", "SessionStore"]
