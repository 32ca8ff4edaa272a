"""Results returned by user-facing session actions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ...errors import SessionValidationError, StorageError, UpgradeRequiredError


class OutcomeStatus(str, Enum):
    OK = "ok"
    UPGRADE_REQUIRED = "upgrade_required"
    INVALID = "invalid"
    FAILED = "failed"


_ERRORS = {
    OutcomeStatus.UPGRADE_REQUIRED: UpgradeRequiredError,
    OutcomeStatus.INVALID: SessionValidationError,
    OutcomeStatus.FAILED: StorageError,
}


@dataclass(frozen=True)
class ActionOutcome:
    """``UPGRADE_REQUIRED`` and ``INVALID`` guarantee nothing was mutated."""

    status: OutcomeStatus
    value: Any = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.OK

    def raise_for_status(self) -> Any:
        """Return ``value`` or raise the error matching the status."""

        if self.ok:
            return self.value
        raise _ERRORS[self.status](self.message)

    @classmethod
    def success(cls, value: Any = None) -> "ActionOutcome":
        return cls(OutcomeStatus.OK, value)

    @classmethod
    def upgrade(cls, message: str) -> "ActionOutcome":
        return cls(OutcomeStatus.UPGRADE_REQUIRED, message=message)

    @classmethod
    def invalid(cls, message: str) -> "ActionOutcome":
        return cls(OutcomeStatus.INVALID, message=message)

    @classmethod
    def failed(cls, message: str) -> "ActionOutcome":
        return cls(OutcomeStatus.FAILED, message=message)


__all__ = ["ActionOutcome", "OutcomeStatus"]
