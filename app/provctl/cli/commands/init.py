"""Init command implementation.

Creates a starter catalog.toml for the detected platform.
"""

from pathlib import Path
from typing import Annotated

import typer

from provctl.cli.types import ExitCode, require_platform
from provctl.core.catalog import save_catalog, starter_catalog
from provctl.core.errors import CatalogError
from provctl.core.paths import get_catalog_path
from provctl.models.catalog import Catalog
from provctl.utils.formatting import (
    console,
    print_error,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="Create a starter catalogue.",
    invoke_without_command=True,
)


def _show_catalog_summary(catalog: Catalog, output_path: Path) -> None:
    """Display a summary of the created catalogue.

    Args:
        catalog: The catalogue to summarize.
        output_path: Path where the catalogue will be saved.
    """
    console.print()
    console.print("[bold]Catalogue Summary[/bold]")
    console.print(f"  Profile: [info]{catalog.meta.name}[/info]")
    console.print(f"  Output: [muted]{output_path}[/muted]")
    console.print()
    console.print(f"  Packages: [bold]{len(catalog.packages)}[/bold]")
    console.print(f"  Files: [bold]{len(catalog.files)}[/bold]")
    console.print(f"  Settings: [bold]{len(catalog.settings)}[/bold]")
    console.print()


@app.callback(invoke_without_command=True)
def init_catalog(
    ctx: typer.Context,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output path for catalogue file.",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite existing catalogue without prompting.",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would be created without writing files.",
        ),
    ] = False,
) -> None:
    """Create a starter catalogue for this platform.

    The catalogue lists a few common packages and settings. Edit it to
    describe your workstation, then run 'provctl apply'.

    Examples:
        provctl init                    # Create catalogue in default location
        provctl init --output my.toml   # Create catalogue at custom path
        provctl init --force            # Overwrite existing catalogue
    """
    if ctx.invoked_subcommand is not None:
        return

    output_path = output or get_catalog_path()

    if output_path.exists():
        if dry_run:
            print_warning(f"Catalogue already exists: {output_path}")
            print_info("Would be overwritten with --force.")
        elif not force:
            print_error(f"Catalogue already exists: {output_path}")
            print_info("Use --force to overwrite or specify a different path with --output.")
            raise typer.Exit(code=ExitCode.FAILED)
        else:
            print_warning(f"Overwriting existing catalogue: {output_path}")

    platform = require_platform()
    catalog = starter_catalog(platform)

    _show_catalog_summary(catalog, output_path)

    if dry_run:
        print_info("[DRY-RUN] No files were written.")
        return

    try:
        saved_path = save_catalog(catalog, output_path)
    except CatalogError as e:
        print_error(str(e))
        raise typer.Exit(code=ExitCode.FAILED) from e

    print_success(f"Catalogue created: {saved_path}")
