"""Outcome models for inspection, backup and execution.

This module defines the immutable results produced while reconciling a
single desired state item.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

INSPECTION_ERROR_PREFIX = "<inspection error: "


class OutcomeStatus(str, Enum):
    """Final status of one item in a run.

    Attributes:
        APPLIED: The item was not satisfied and the action converged it.
        ALREADY_SATISFIED: The system already matched; nothing was done.
        SKIPPED: The item was not processed (out of scope or dry-run).
        FAILED: The item could not be brought to the desired state.
    """

    APPLIED = "applied"
    ALREADY_SATISFIED = "already_satisfied"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class InspectionResult:
    """Observed state of one item.

    Attributes:
        satisfied: Whether the system already matches the desired state.
        current_value: Observed value, for diagnostics and reporting.
    """

    satisfied: bool
    current_value: str | None = None

    @classmethod
    def from_error(cls, error: Exception | str) -> "InspectionResult":
        """Create an unsatisfied result that carries a read error."""
        return cls(satisfied=False, current_value=f"{INSPECTION_ERROR_PREFIX}{error}>")

    @property
    def is_error(self) -> bool:
        """Check if this result records a failed read."""
        return self.current_value is not None and self.current_value.startswith(
            INSPECTION_ERROR_PREFIX
        )


@dataclass(frozen=True, slots=True)
class BackupRecord:
    """A copy of a file taken before it was overwritten.

    Attributes:
        original_path: Path of the file that was backed up.
        backup_path: Path of the timestamped copy.
        created_at: ISO 8601 UTC timestamp of the copy.
    """

    original_path: str
    backup_path: str
    created_at: str

    def to_dict(self) -> dict[str, str]:
        """Serialize to dictionary for JSON storage."""
        return {
            "original_path": self.original_path,
            "backup_path": self.backup_path,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BackupRecord":
        """Deserialize from dictionary."""
        return cls(
            original_path=data["original_path"],
            backup_path=data["backup_path"],
            created_at=data["created_at"],
        )


@dataclass(frozen=True, slots=True)
class ActionOutcome:
    """Final result for one item in a run.

    Attributes:
        item_id: Identifier of the desired state item.
        status: Final status.
        attempts: Number of execution attempts made (0 if none).
        error: Error text, present only when status is FAILED.
        error_kind: Error taxonomy name when status is FAILED.
        current_value: Last observed value of the item.
        backup: Backup taken before the action, if any.
        duration_seconds: Wall time spent on the item.
    """

    item_id: str
    status: OutcomeStatus
    attempts: int = 0
    error: str | None = None
    error_kind: str | None = None
    current_value: str | None = None
    backup: BackupRecord | None = None
    duration_seconds: float = 0.0

    def __post_init__(self) -> None:
        """Validate outcome data after initialization."""
        if self.attempts < 0:
            msg = f"Attempts cannot be negative, got {self.attempts}"
            raise ValueError(msg)
        if self.status == OutcomeStatus.FAILED and not self.error:
            msg = f"Failed outcome for {self.item_id} must carry an error"
            raise ValueError(msg)
        if self.status != OutcomeStatus.FAILED and self.error is not None:
            msg = f"Only failed outcomes carry an error ({self.item_id})"
            raise ValueError(msg)

    @property
    def failed(self) -> bool:
        """Check if the item failed."""
        return self.status == OutcomeStatus.FAILED

    @property
    def changed(self) -> bool:
        """Check if the item changed the system."""
        return self.status == OutcomeStatus.APPLIED

    def with_changes(self, **changes: Any) -> "ActionOutcome":
        """Return a copy with some fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        result: dict[str, Any] = {
            "item_id": self.item_id,
            "status": self.status.value,
            "attempts": self.attempts,
            "duration_seconds": round(self.duration_seconds, 3),
        }
        if self.error is not None:
            result["error"] = self.error
        if self.error_kind is not None:
            result["error_kind"] = self.error_kind
        if self.current_value is not None:
            result["current_value"] = self.current_value
        if self.backup is not None:
            result["backup"] = self.backup.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActionOutcome":
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If status or field values are invalid.
        """
        backup = data.get("backup")
        return cls(
            item_id=data["item_id"],
            status=OutcomeStatus(data["status"]),
            attempts=data.get("attempts", 0),
            error=data.get("error"),
            error_kind=data.get("error_kind"),
            current_value=data.get("current_value"),
            backup=BackupRecord.from_dict(backup) if backup else None,
            duration_seconds=data.get("duration_seconds", 0.0),
        )
