"""Shared Rich display functions for inspections and run outcomes.

Provides reusable table builders and summary printers for the check,
apply and history commands.
"""

from rich.table import Table

from provctl.models.item import DesiredStateItem
from provctl.models.outcome import ActionOutcome, InspectionResult, OutcomeStatus
from provctl.models.report import RunSummary
from provctl.utils.formatting import (
    console,
    print_error,
    print_info,
    print_success,
    print_warning,
)

# Rich style and label per outcome status
STATUS_STYLES: dict[OutcomeStatus, tuple[str, str]] = {
    OutcomeStatus.APPLIED: ("applied", "applied"),
    OutcomeStatus.ALREADY_SATISFIED: ("satisfied", "ok"),
    OutcomeStatus.SKIPPED: ("skipped", "skipped"),
    OutcomeStatus.FAILED: ("failed", "FAILED"),
}

# Longest current value shown in tables
_VALUE_WIDTH = 40


def _short(value: str | None) -> str:
    if value is None:
        return ""
    if len(value) > _VALUE_WIDTH:
        return value[: _VALUE_WIDTH - 3] + "..."
    return value


def create_inspection_table(
    rows: list[tuple[DesiredStateItem, InspectionResult | None]],
) -> Table:
    """Create a Rich table showing the inspected state of items.

    Args:
        rows: Items with their inspection result; None marks an item that
            is out of scope for this platform.

    Returns:
        Rich Table configured for inspection display.
    """
    table = Table(
        title="Current State",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("State", width=9, justify="center")
    table.add_column("Item", no_wrap=True)
    table.add_column("Current")

    for item, result in rows:
        if result is None:
            state = "[skipped]n/a[/skipped]"
        elif result.satisfied:
            state = "[satisfied]ok[/satisfied]"
        elif result.is_error:
            state = "[error]error[/error]"
        else:
            state = "[warning]change[/warning]"

        current = _short(result.current_value) if result else ""
        table.add_row(state, item.id, f"[muted]{current}[/muted]")

    return table


def create_outcomes_table(outcomes: tuple[ActionOutcome, ...] | list[ActionOutcome]) -> Table:
    """Create a Rich table displaying the outcome of each item.

    Args:
        outcomes: Outcomes in processing order.

    Returns:
        Rich Table configured for outcome display.
    """
    table = Table(
        title="Results",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=9, justify="center")
    table.add_column("Item", no_wrap=True)
    table.add_column("Tries", justify="right")
    table.add_column("Details")

    for outcome in outcomes:
        style, label = STATUS_STYLES[outcome.status]
        if outcome.failed:
            details = f"[error]{outcome.error}[/error]"
        elif outcome.backup is not None:
            details = f"[muted]backup: {outcome.backup.backup_path}[/muted]"
        else:
            details = f"[muted]{_short(outcome.current_value)}[/muted]"

        table.add_row(
            f"[{style}]{label}[/{style}]",
            outcome.item_id,
            str(outcome.attempts) if outcome.attempts else "",
            details,
        )

    return table


def print_run_summary(summary: RunSummary) -> None:
    """Print the totals of a run and its completion status.

    Args:
        summary: Finalized run summary.
    """
    prefix = "Dry run: " if summary.dry_run else ""
    console.print(
        f"{prefix}[applied]{summary.applied} applied[/], "
        f"[satisfied]{summary.already_satisfied} already satisfied[/], "
        f"[skipped]{summary.skipped} skipped[/], "
        f"[failed]{summary.failed} failed[/]"
    )

    if summary.incomplete:
        print_warning(f"Run incomplete: {summary.abort_reason or 'unknown reason'}")
    if summary.failed:
        print_error(f"{summary.failed} item(s) failed.")
    elif summary.dry_run:
        print_info("No changes were made (dry run).")
    elif not summary.incomplete:
        print_success("System matches the catalogue.")
