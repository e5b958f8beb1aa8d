"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from typing import Annotated

import typer

from provctl import __version__
from provctl.cli.commands import apply, check, detect, history, init, report
from provctl.cli.types import require_config
from provctl.core.logging import setup_logging

# Create main Typer app
app = typer.Typer(
    name="provctl",
    help="Idempotent workstation provisioning for macOS, Ubuntu, WSL and Windows.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"provctl version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """provctl - Idempotent workstation provisioning.

    Describe packages, files and settings in a catalogue and converge
    the machine to it. Running it again changes nothing.
    """
    config = require_config()

    if verbose:
        console_level = "DEBUG"
    elif quiet:
        console_level = "ERROR"
    else:
        console_level = "WARNING"
    setup_logging(console_level, config.effective_log_file, config.log_level)

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config"] = config


# Register commands
app.add_typer(detect.app, name="detect")
app.add_typer(check.app, name="check")
app.add_typer(apply.app, name="apply")
app.add_typer(init.app, name="init")
app.add_typer(report.app, name="report")
app.add_typer(history.app, name="history")


if __name__ == "__main__":
    app()
