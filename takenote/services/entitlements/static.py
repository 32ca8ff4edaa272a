"""Entitlement providers backed by in-process state."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

from .base import EntitlementProvider

ACTIVE_SUBSCRIPTION_STATUSES = {"active", "trialing"}


class StaticEntitlements(EntitlementProvider):
    """Everyone gets ``default``; ids in ``pro_users`` are always Pro."""

    def __init__(self, default: bool = False, pro_users: Iterable[str] = ()) -> None:
        self.default = default
        self.pro_users = set(pro_users)

    def is_pro(self, user_id: str) -> bool:
        return self.default or user_id in self.pro_users


def profile_is_pro(profile: Optional[Mapping[str, Any]]) -> bool:
    """Pro when the user document says ``tier: pro`` or has a live subscription."""

    if not profile:
        return False
    if profile.get("tier") == "pro":
        return True
    return profile.get("subscriptionStatus") in ACTIVE_SUBSCRIPTION_STATUSES


class ProfileEntitlements(EntitlementProvider):
    """Reads cached user documents, updated as subscription events arrive."""

    def __init__(self, profiles: Optional[Dict[str, Mapping[str, Any]]] = None) -> None:
        self._profiles: Dict[str, Mapping[str, Any]] = dict(profiles or {})

    def update(self, user_id: str, profile: Mapping[str, Any]) -> None:
        self._profiles[user_id] = profile

    def is_pro(self, user_id: str) -> bool:
        return profile_is_pro(self._profiles.get(user_id))


__all__ = ["ProfileEntitlements", "StaticEntitlements", "profile_is_pro"]
