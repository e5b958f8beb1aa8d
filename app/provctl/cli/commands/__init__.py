"""CLI commands for provctl.

This package contains all subcommand implementations.
"""

from provctl.cli.commands import apply, check, detect, history, init, report

__all__ = ["apply", "check", "detect", "history", "init", "report"]
