"""CLI package for provctl.

This package contains the Typer application and all subcommands.
"""

from provctl.cli.main import app

__all__ = ["app"]
