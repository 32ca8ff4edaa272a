"""Free/Pro tier gates, checked before any mutation."""

from __future__ import annotations

from enum import Enum

FREE_SESSION_LIMIT = 1
FREE_NOTE_LIMIT = 20
FREE_EXPORT_FORMATS = frozenset({"csv"})


class Tier(str, Enum):
    FREE = "free"
    PRO = "pro"


def tier_for(is_pro: bool) -> Tier:
    return Tier.PRO if is_pro else Tier.FREE


def can_create_session(tier: Tier, current_count: int, limit: int = FREE_SESSION_LIMIT) -> bool:
    return tier is Tier.PRO or current_count < limit


def can_create_note(tier: Tier, current_note_count: int, limit: int = FREE_NOTE_LIMIT) -> bool:
    return tier is Tier.PRO or current_note_count < limit


def can_export(tier: Tier, fmt: str) -> bool:
    """NLE formats (EDL, FCPXML, TSV, ALE) need Pro; CSV is open to all."""

    return tier is Tier.PRO or fmt.lower() in FREE_EXPORT_FORMATS


__all__ = [
    "FREE_EXPORT_FORMATS",
    "FREE_NOTE_LIMIT",
    "FREE_SESSION_LIMIT",
    "Tier",
    "can_create_note",
    "can_create_session",
    "can_export",
    "tier_for",
]
