"""Detect command implementation.

Probes the host and prints the detected platform.
"""

import json
from typing import Annotated

import typer
from rich.table import Table

from provctl.cli.types import require_platform
from provctl.utils.formatting import console

app = typer.Typer(
    help="Detect the current platform.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def detect_command(
    ctx: typer.Context,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Detect the operating system and package manager.

    Exits with code 2 if the platform is not supported.

    Examples:
        provctl detect
        provctl detect --json
    """
    if ctx.invoked_subcommand is not None:
        return

    platform = require_platform()

    if json_output:
        typer.echo(json.dumps(platform.to_dict(), indent=2))
        return

    table = Table(show_header=False, border_style="border")
    table.add_column("Field", style="bold_header")
    table.add_column("Value")
    for key, value in platform.to_dict().items():
        table.add_row(key.replace("_", " "), value or "[muted]-[/muted]")
    console.print(table)

    expected = platform.expected_package_manager
    if platform.package_manager is None:
        console.print(
            f"[warning]{expected.value} was not found; package items will fail.[/warning]"
        )
