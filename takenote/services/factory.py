"""Factories for runtime service selection."""

from __future__ import annotations

from typing import Optional

from ..config import Settings, get_settings
from ..data.storage import SessionStore
from .entitlements import EntitlementProvider, StaticEntitlements
from .remote import MemorySessionStore, RemoteSessionStore


class ServiceConfigurationError(ValueError):
    """Raised when an unknown backend is requested."""


def _normalise(name: Optional[str]) -> str:
    if not name:
        return "sqlite"
    return name.strip().lower()


def resolve_remote_store(name: Optional[str] = None, settings: Optional[Settings] = None) -> RemoteSessionStore:
    settings = settings or get_settings()
    backend = _normalise(name if name is not None else settings.remote_backend)
    if backend == "sqlite":
        store = SessionStore(settings.database_path)
        store.initialize()
        return store
    if backend == "memory":
        return MemorySessionStore()
    raise ServiceConfigurationError(f"Unknown remote backend: {name or settings.remote_backend}")


def resolve_entitlements(settings: Optional[Settings] = None) -> EntitlementProvider:
    settings = settings or get_settings()
    return StaticEntitlements(default=settings.pro)


__all__ = [
    "ServiceConfigurationError",
    "resolve_entitlements",
    "resolve_remote_store",
]
