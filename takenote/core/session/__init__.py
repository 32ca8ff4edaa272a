"""Session lifecycle: tier gates, action outcomes and the workspace."""

from .outcomes import ActionOutcome, OutcomeStatus
from .tiers import Tier, can_create_note, can_create_session, can_export, tier_for
from .workspace import SessionWorkspace

__all__ = [
    "ActionOutcome",
    "OutcomeStatus",
    "SessionWorkspace",
    "Tier",
    "can_create_note",
    "can_create_session",
    "can_export",
    "tier_for",
]
