"""XDG-compliant path management for provctl.

This module provides standardized paths following the XDG Base Directory
Specification for configuration and state storage.

XDG defaults:
- Config: ~/.config/provctl/
- State: ~/.local/state/provctl/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "provctl"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/provctl/ (or XDG_CONFIG_HOME/provctl/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes the run log, the last run report and the run
    history that should persist between runs but is not configuration.

    Returns:
        Path to ~/.local/state/provctl/ (or XDG_STATE_HOME/provctl/).
    """
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state")


def get_catalog_path() -> Path:
    """Get the default catalogue file path.

    Returns:
        Path to ~/.config/provctl/catalog.toml.
    """
    return get_config_dir() / "catalog.toml"


def get_config_path() -> Path:
    """Get the engine configuration file path.

    Returns:
        Path to ~/.config/provctl/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_log_path() -> Path:
    """Get the append-only run log path.

    Returns:
        Path to ~/.local/state/provctl/provctl.log.
    """
    return get_state_dir() / "provctl.log"


def get_report_path() -> Path:
    """Get the well-known path of the last run report.

    Returns:
        Path to ~/.local/state/provctl/last-run.txt.
    """
    return get_state_dir() / "last-run.txt"


def get_history_path() -> Path:
    """Get the run history file path.

    Returns:
        Path to ~/.local/state/provctl/runs.jsonl.
    """
    return get_state_dir() / "runs.jsonl"


def expand_path(path: str) -> Path:
    """Expand ``~`` and environment variables in a catalogue path."""
    return Path(os.path.expandvars(os.path.expanduser(path)))


def _ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_config_dir() -> Path:
    """Create the configuration directory if it doesn't exist.

    Returns:
        Path to the configuration directory.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_config_dir(), "config")


def ensure_state_dir() -> Path:
    """Create the state directory if it doesn't exist.

    Returns:
        Path to the state directory.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_state_dir(), "state")
