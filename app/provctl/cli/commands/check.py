"""Check command implementation.

Inspects every item of the catalogue and shows which ones would change,
without modifying the system.
"""

from pathlib import Path
from typing import Annotated

import typer

from provctl.cli.display import create_inspection_table
from provctl.cli.types import ExitCode, get_config, require_items, require_platform
from provctl.core.context import ExecutionContext
from provctl.core.inspector import StateInspector
from provctl.models.item import DesiredStateItem
from provctl.models.outcome import InspectionResult
from provctl.utils.formatting import console, print_info, print_success, print_warning

app = typer.Typer(
    help="Show what apply would change.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def check(
    ctx: typer.Context,
    catalog: Annotated[
        Path | None,
        typer.Option(
            "--catalog",
            "-c",
            help="Catalogue file (default: ~/.config/provctl/catalog.toml).",
        ),
    ] = None,
) -> None:
    """Inspect the system against the catalogue.

    Nothing is installed or written. Exits with code 1 if any in-scope
    item is not yet in its desired state.

    Examples:
        provctl check
        provctl check --catalog ./workstation.toml
    """
    if ctx.invoked_subcommand is not None:
        return

    config = get_config(ctx)
    items = require_items(catalog)
    platform = require_platform()

    if not items:
        print_info("Catalogue is empty.")
        return

    inspector = StateInspector(
        platform,
        ExecutionContext(dry_run=True, use_sudo=config.use_sudo),
    )

    rows: list[tuple[DesiredStateItem, InspectionResult | None]] = []
    for item in items:
        if item.applies_to(platform.variant):
            rows.append((item, inspector.inspect(item)))
        else:
            rows.append((item, None))

    console.print(create_inspection_table(rows))

    pending = [item for item, result in rows if result is not None and not result.satisfied]
    if pending:
        print_warning(f"{len(pending)} item(s) would change. Run 'provctl apply' to converge.")
        raise typer.Exit(code=ExitCode.FAILED)

    print_success("System matches the catalogue.")
