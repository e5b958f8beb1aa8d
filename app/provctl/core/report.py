"""Report generation for finished runs.

This module provides the ReportGenerator that finalizes a RunReport,
writes the human-readable report artifact and records the run in the
history file.
"""

import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile

from provctl.core.paths import get_report_path
from provctl.core.state import RunHistory
from provctl.models.outcome import ActionOutcome, OutcomeStatus
from provctl.models.report import RunReport, RunSummary

logger = logging.getLogger(__name__)

_STATUS_LABELS: dict[OutcomeStatus, str] = {
    OutcomeStatus.APPLIED: "applied",
    OutcomeStatus.ALREADY_SATISFIED: "ok",
    OutcomeStatus.SKIPPED: "skipped",
    OutcomeStatus.FAILED: "FAILED",
}


def _outcome_line(outcome: ActionOutcome) -> str:
    line = f"  [{_STATUS_LABELS[outcome.status]:>7}] {outcome.item_id}"
    details: list[str] = []
    if outcome.attempts:
        details.append(f"attempts: {outcome.attempts}")
    if outcome.backup is not None:
        details.append(f"backup: {outcome.backup.backup_path}")
    if details:
        line += f" ({', '.join(details)})"
    return line


def render_report(summary: RunSummary) -> str:
    """Render a run summary as plain text.

    Args:
        summary: Finalized run summary.

    Returns:
        Report text ending with a newline.
    """
    status = "complete"
    if summary.incomplete:
        status = f"INCOMPLETE ({summary.abort_reason or 'unknown reason'})"

    lines = [
        "provctl run report",
        "==================",
        f"Run:       {summary.run_id}",
        f"Started:   {summary.started_at}",
        f"Finished:  {summary.finished_at}",
        f"Platform:  {summary.platform}",
        f"Mode:      {'dry-run' if summary.dry_run else 'apply'}",
        f"Status:    {status}",
        "",
        (
            f"Summary: {summary.applied} applied, {summary.already_satisfied} already satisfied, "
            f"{summary.skipped} skipped, {summary.failed} failed"
        ),
    ]

    if summary.items:
        lines.extend(["", "Items:"])
        lines.extend(_outcome_line(o) for o in summary.items)

    if summary.failures:
        lines.extend(["", "Failed items:"])
        for outcome in summary.failures:
            kind = f" [{outcome.error_kind}]" if outcome.error_kind else ""
            lines.append(f"  - {outcome.item_id} (attempts: {outcome.attempts}){kind}")
            for error_line in (outcome.error or "").splitlines():
                lines.append(f"      {error_line}")

    return "\n".join(lines) + "\n"


def write_report(text: str, path: Path) -> None:
    """Write the report artifact atomically.

    Raises:
        OSError: If the file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            f.write(text)
        os.replace(str(tmp_path), str(path))
    except OSError:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise


class ReportGenerator:
    """Finalizes runs into summaries and persists them.

    A summary is produced for every run, including aborted, cancelled
    and crashed ones. Failures to write the artifact or the history are
    logged and never raised, so they cannot mask the run's own error.

    Example:
        >>> generator = ReportGenerator()
        >>> summary = generator.finalize(report)
        >>> print(f"{summary.failed} item(s) failed")
    """

    def __init__(
        self,
        report_path: Path | None = None,
        history: RunHistory | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            report_path: Artifact location.
                Default: ~/.local/state/provctl/last-run.txt
            history: Run history to append to; None disables history.
        """
        self.report_path = report_path if report_path is not None else get_report_path()
        self.history = history

    def finalize(self, report: RunReport) -> RunSummary:
        """Finish a report, write the artifact and record the run.

        Args:
            report: The run's report. It is finished if it is not already.

        Returns:
            The run summary.
        """
        report.finish()
        summary = RunSummary.from_report(report)

        try:
            write_report(render_report(summary), self.report_path)
            logger.info("Run report written to %s", self.report_path)
        except OSError as e:
            logger.error("Failed to write run report to %s: %s", self.report_path, e)

        if self.history is not None:
            try:
                self.history.record(summary)
            except OSError as e:
                logger.warning("Failed to record run history: %s", e)

        return summary
