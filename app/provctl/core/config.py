"""Engine configuration and settings.

This module provides the configuration model and I/O functions for the
reconciliation engine.

Configuration is stored in ~/.config/provctl/config.toml. A missing file
means all defaults.
"""

import tomllib
from pathlib import Path
from typing import Annotated, Literal

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from provctl.core.errors import ConfigError
from provctl.core.paths import expand_path, get_config_path, get_log_path, get_report_path

# Log level type alias
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class EngineConfig(BaseModel):
    """Configuration for the reconciliation engine.

    Attributes:
        max_attempts: Attempts per action before giving up (1-10).
        retry_delay: Base delay in seconds between attempts (0-300).
        retry_backoff: "fixed" or "linear" growth of the retry delay.
        workers: Concurrent file writes (1 = sequential).
        use_sudo: Prefix privileged commands with sudo.
        report_path: Report artifact location (None = default).
        log_file: Log file location (None = default).
        log_level: Level written to the log file.
    """

    model_config = ConfigDict(extra="forbid")

    max_attempts: Annotated[
        int,
        Field(ge=1, le=10, description="Attempts per action (1-10)"),
    ] = 3
    retry_delay: Annotated[
        float,
        Field(ge=0, le=300, description="Base retry delay in seconds (0-300)"),
    ] = 2.0
    retry_backoff: Annotated[
        Literal["fixed", "linear"],
        Field(description="Retry delay growth"),
    ] = "linear"
    workers: Annotated[
        int,
        Field(ge=1, le=16, description="Concurrent file writes (1-16)"),
    ] = 1
    use_sudo: Annotated[
        bool,
        Field(description="Prefix privileged commands with sudo"),
    ] = True
    report_path: Annotated[
        str | None,
        Field(description="Report artifact location (None = default)"),
    ] = None
    log_file: Annotated[
        str | None,
        Field(description="Log file location (None = default)"),
    ] = None
    log_level: Annotated[
        LogLevel,
        Field(description="Log file level"),
    ] = "INFO"

    @property
    def effective_report_path(self) -> Path:
        """Report artifact path, falling back to the state directory."""
        if self.report_path:
            return expand_path(self.report_path)
        return get_report_path()

    @property
    def effective_log_file(self) -> Path:
        """Log file path, falling back to the state directory."""
        if self.log_file:
            return expand_path(self.log_file)
        return get_log_path()


def load_config(path: Path | None = None) -> EngineConfig:
    """Load engine configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses default config path.

    Returns:
        Validated EngineConfig; defaults if the file doesn't exist.

    Raises:
        ConfigError: If the file cannot be read, parsed or validated.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        return EngineConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return EngineConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def save_config(config: EngineConfig, path: Path | None = None) -> Path:
    """Save engine configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The EngineConfig object to save.
        path: Path to save the config. If None, uses default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    import os
    from tempfile import NamedTemporaryFile

    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    # TOML has no null; unset paths are omitted
    data = config.model_dump(exclude_none=True)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path
