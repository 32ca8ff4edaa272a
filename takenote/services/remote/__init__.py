"""Remote session stores."""

from .base import FetchResult, ListResult, RemoteSessionStore, StoreResult
from .memory import MemorySessionStore

__all__ = ["FetchResult", "ListResult", "MemorySessionStore", "RemoteSessionStore", "StoreResult"]
