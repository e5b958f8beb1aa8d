"""Run report models.

A RunReport is owned by the reconciliation loop for the duration of one
run and collects the outcome of every processed item. A RunSummary is
its finalized, serializable aggregate.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from provctl.models.outcome import ActionOutcome, OutcomeStatus


def _utc_now() -> str:
    return datetime.now(UTC).isoformat(timespec="seconds")


@dataclass
class RunReport:
    """Mutable record of a single reconciliation run.

    Attributes:
        platform: Short description of the probed platform.
        run_id: Unique identifier (12-character hex string from UUID).
        started_at: ISO 8601 UTC timestamp of the run start.
        outcomes: Outcomes in processing order.
        finished_at: ISO 8601 UTC timestamp, set by finish().
        incomplete: True if the run stopped before processing every item.
        abort_reason: Why the run stopped early, if it did.
        dry_run: Whether mutations were suppressed.
    """

    platform: str
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    started_at: str = field(default_factory=_utc_now)
    outcomes: list[ActionOutcome] = field(default_factory=lambda: [])
    finished_at: str | None = None
    incomplete: bool = False
    abort_reason: str | None = None
    dry_run: bool = False

    def append(self, outcome: ActionOutcome) -> None:
        """Record the outcome of one item.

        Raises:
            RuntimeError: If the report was already finished.
        """
        if self.finished_at is not None:
            msg = f"Run {self.run_id} is already finalized"
            raise RuntimeError(msg)
        self.outcomes.append(outcome)

    def mark_incomplete(self, reason: str) -> None:
        """Flag the run as stopped early. The first reason wins."""
        self.incomplete = True
        if self.abort_reason is None:
            self.abort_reason = reason

    def finish(self) -> None:
        """Stamp the finish time. Calling twice keeps the first stamp."""
        if self.finished_at is None:
            self.finished_at = _utc_now()

    @property
    def is_finished(self) -> bool:
        """Check if finish() has been called."""
        return self.finished_at is not None

    @property
    def has_failures(self) -> bool:
        """Check if any item failed."""
        return any(o.failed for o in self.outcomes)

    def count(self, status: OutcomeStatus) -> int:
        """Count outcomes with the given status."""
        return sum(1 for o in self.outcomes if o.status == status)


@dataclass(frozen=True, slots=True)
class RunSummary:
    """Finalized aggregate of a run.

    Attributes:
        run_id: Identifier of the run.
        started_at: ISO 8601 UTC timestamp of the run start.
        finished_at: ISO 8601 UTC timestamp of the run end.
        platform: Short description of the probed platform.
        applied: Number of items changed.
        already_satisfied: Number of items that needed no change.
        skipped: Number of items not processed.
        failed: Number of items that failed.
        items: Outcomes in processing order.
        incomplete: True if the run stopped early.
        abort_reason: Why the run stopped early, if it did.
        dry_run: Whether mutations were suppressed.
    """

    run_id: str
    started_at: str
    finished_at: str
    platform: str
    applied: int
    already_satisfied: int
    skipped: int
    failed: int
    items: tuple[ActionOutcome, ...]
    incomplete: bool = False
    abort_reason: str | None = None
    dry_run: bool = False

    @classmethod
    def from_report(cls, report: RunReport) -> RunSummary:
        """Aggregate a finished report.

        Raises:
            ValueError: If the report has not been finished.
        """
        if report.finished_at is None:
            msg = f"Run {report.run_id} has not been finished"
            raise ValueError(msg)
        return cls(
            run_id=report.run_id,
            started_at=report.started_at,
            finished_at=report.finished_at,
            platform=report.platform,
            applied=report.count(OutcomeStatus.APPLIED),
            already_satisfied=report.count(OutcomeStatus.ALREADY_SATISFIED),
            skipped=report.count(OutcomeStatus.SKIPPED),
            failed=report.count(OutcomeStatus.FAILED),
            items=tuple(report.outcomes),
            incomplete=report.incomplete,
            abort_reason=report.abort_reason,
            dry_run=report.dry_run,
        )

    @property
    def failures(self) -> tuple[ActionOutcome, ...]:
        """Failed outcomes in processing order."""
        return tuple(o for o in self.items if o.failed)

    @property
    def success(self) -> bool:
        """True if no item failed."""
        return self.failed == 0

    @property
    def total(self) -> int:
        """Number of items recorded."""
        return len(self.items)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "run_id": self.run_id,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "platform": self.platform,
            "summary": {
                "applied": self.applied,
                "already_satisfied": self.already_satisfied,
                "skipped": self.skipped,
                "failed": self.failed,
            },
            "incomplete": self.incomplete,
            "abort_reason": self.abort_reason,
            "dry_run": self.dry_run,
            "items": [o.to_dict() for o in self.items],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RunSummary:
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If outcome data is invalid.
        """
        counts = data["summary"]
        return cls(
            run_id=data["run_id"],
            started_at=data["started_at"],
            finished_at=data["finished_at"],
            platform=data["platform"],
            applied=counts["applied"],
            already_satisfied=counts["already_satisfied"],
            skipped=counts["skipped"],
            failed=counts["failed"],
            items=tuple(ActionOutcome.from_dict(o) for o in data.get("items", [])),
            incomplete=data.get("incomplete", False),
            abort_reason=data.get("abort_reason"),
            dry_run=data.get("dry_run", False),
        )

    def to_json_line(self) -> str:
        """Serialize to a single JSON line (no trailing newline)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json_line(cls, line: str) -> RunSummary:
        """Deserialize from a JSON line.

        Raises:
            json.JSONDecodeError: If line is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
        """
        return cls.from_dict(json.loads(line.strip()))
