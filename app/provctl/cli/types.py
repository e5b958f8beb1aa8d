"""Shared types and utilities for CLI commands.

This module provides the exit codes and the helpers that commands use to
load configuration, probe the platform and build the engine, so that
error handling stays the same across commands.
"""

from enum import IntEnum
from pathlib import Path

import typer

from provctl.core.catalog import catalog_to_items, load_catalog
from provctl.core.config import EngineConfig, load_config
from provctl.core.errors import (
    CatalogError,
    CatalogNotFoundError,
    ConfigError,
    UnsupportedPlatformError,
)
from provctl.core.paths import get_catalog_path
from provctl.core.platform import detect
from provctl.models.item import DesiredStateItem
from provctl.models.platform import PlatformInfo
from provctl.utils.formatting import print_error, print_info


class ExitCode(IntEnum):
    """Process exit codes."""

    OK = 0
    FAILED = 1
    UNSUPPORTED_PLATFORM = 2
    INTERRUPTED = 130


def get_config(ctx: typer.Context) -> EngineConfig:
    """Return the engine config loaded by the main callback.

    Falls back to loading it when a command is invoked without the
    callback having run (e.g. in tests).
    """
    obj = ctx.find_root().obj
    if isinstance(obj, dict) and isinstance(obj.get("config"), EngineConfig):
        return obj["config"]
    return require_config()


def require_config(path: Path | None = None) -> EngineConfig:
    """Load the engine config, exiting with code 1 on error."""
    try:
        return load_config(path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=ExitCode.FAILED) from None


def require_platform() -> PlatformInfo:
    """Probe the platform, exiting with code 2 if it is unsupported."""
    try:
        return detect()
    except UnsupportedPlatformError as e:
        print_error(str(e))
        raise typer.Exit(code=ExitCode.UNSUPPORTED_PLATFORM) from None


def require_items(catalog_path: Path | None = None) -> list[DesiredStateItem]:
    """Load the catalogue as desired state items, exiting with code 1 on error."""
    path = catalog_path or get_catalog_path()
    try:
        catalog = load_catalog(path)
        return catalog_to_items(catalog, base_dir=path.parent)
    except CatalogNotFoundError:
        print_error(f"Catalogue not found: {path}")
        print_info("Run 'provctl init' to create a starter catalogue.")
        raise typer.Exit(code=ExitCode.FAILED) from None
    except CatalogError as e:
        print_error(str(e))
        raise typer.Exit(code=ExitCode.FAILED) from None


def is_quiet(ctx: typer.Context) -> bool:
    """Check if the global --quiet flag was given."""
    obj = ctx.find_root().obj
    return bool(isinstance(obj, dict) and obj.get("quiet"))
