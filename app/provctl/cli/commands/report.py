"""Report command implementation.

Prints the report artifact of the last run.
"""

import typer

from provctl.cli.types import ExitCode, get_config
from provctl.utils.formatting import console, print_error, print_info

app = typer.Typer(
    help="Show the report of the last run.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def show_report(ctx: typer.Context) -> None:
    """Print the report written by the last 'provctl apply'.

    Examples:
        provctl report
    """
    if ctx.invoked_subcommand is not None:
        return

    report_path = get_config(ctx).effective_report_path

    if not report_path.exists():
        print_info(f"No run report found at {report_path}.")
        return

    try:
        text = report_path.read_text(encoding="utf-8")
    except OSError as e:
        print_error(f"Failed to read report: {e}")
        raise typer.Exit(code=ExitCode.FAILED) from e

    console.print(text, markup=False, highlight=False, end="")
