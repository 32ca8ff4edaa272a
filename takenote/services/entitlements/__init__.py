"""Tier entitlement providers."""

from .base import EntitlementProvider
from .static import ProfileEntitlements, StaticEntitlements, profile_is_pro

__all__ = ["EntitlementProvider", "ProfileEntitlements", "StaticEntitlements", "profile_is_pro"]
