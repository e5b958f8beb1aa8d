"""History command for viewing past runs.

This module provides the `provctl history` command for viewing the
summaries of past reconciliation runs.
"""

import json
from datetime import datetime
from typing import Annotated

import typer
from rich.table import Table

from provctl.core.state import RunHistory
from provctl.models.report import RunSummary
from provctl.utils.formatting import console, print_info

app = typer.Typer(
    name="history",
    help="View history of past runs.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            min=1,
            help="Maximum number of runs to show.",
        ),
    ] = 20,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show summaries of past runs, newest first.

    Examples:
        provctl history              # Show last 20 runs
        provctl history -n 5         # Show last 5 runs
        provctl history --json       # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    summaries = RunHistory().get_history(limit=limit)

    if not summaries:
        print_info("No runs recorded yet.")
        return

    if json_output:
        _print_json(summaries)
    else:
        _print_table(summaries)


def _print_table(summaries: list[RunSummary]) -> None:
    """Print run summaries as Rich table.

    Args:
        summaries: Run summaries to display.
    """
    table = Table(title="Run History", header_style="bold_header", border_style="border")
    table.add_column("Run", style="dim", no_wrap=True)
    table.add_column("Finished", style="cyan")
    table.add_column("Platform")
    table.add_column("Applied", justify="right", style="applied")
    table.add_column("OK", justify="right", style="satisfied")
    table.add_column("Skipped", justify="right", style="skipped")
    table.add_column("Failed", justify="right", style="failed")
    table.add_column("Status")

    for summary in summaries:
        if summary.incomplete:
            status = f"[warning]incomplete[/] [muted]{summary.abort_reason or ''}[/]"
        elif summary.failed:
            status = "[error]failed[/]"
        else:
            status = "[success]ok[/]"
        if summary.dry_run:
            status += " [muted](dry run)[/]"

        table.add_row(
            summary.run_id,
            _format_timestamp(summary.finished_at),
            summary.platform,
            str(summary.applied),
            str(summary.already_satisfied),
            str(summary.skipped),
            str(summary.failed),
            status,
        )

    console.print(table)


def _format_timestamp(iso_timestamp: str) -> str:
    """Format ISO timestamp for display (YYYY-MM-DD HH:MM)."""
    dt = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
    return dt.strftime("%Y-%m-%d %H:%M")


def _print_json(summaries: list[RunSummary]) -> None:
    """Print run summaries as JSON for scripting."""
    output = [summary.to_dict() for summary in summaries]
    typer.echo(json.dumps(output, indent=2))
