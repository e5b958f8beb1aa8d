"""Abstract base class for setting backends.

A setting backend reads and writes one family of system preferences
through its native tool (``defaults``, ``git config``, ``reg``). Setting
targets are written as ``<backend>:<key>``.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from provctl.core.context import ExecutionContext
from provctl.core.errors import FatalExecutionError, InspectionError, TransientExecutionError
from provctl.operators.base import COMMON_TRANSIENT_MARKERS
from provctl.utils.shell import CommandResult, command_exists, run_command, truncate_output

logger = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def normalize_value(value: str, value_type: str) -> str:
    """Normalize a setting value for comparison.

    Values that cannot be converted to ``value_type`` are returned
    unchanged so that they compare unequal to any valid value.

    Args:
        value: Raw value, as written in the catalogue or read back.
        value_type: One of "string", "bool", "int", "float".

    Returns:
        Canonical string form of the value.
    """
    text = value.strip()
    if value_type == "bool":
        lowered = text.lower()
        if lowered in _TRUE_VALUES:
            return "true"
        if lowered in _FALSE_VALUES:
            return "false"
        return text
    if value_type == "int":
        try:
            return str(int(text, 0))
        except ValueError:
            return text
    if value_type == "float":
        try:
            return str(float(text))
        except ValueError:
            return text
    return value


class SettingBackend(ABC):
    """Abstract base class for all setting backends.

    Reads never mutate anything. Writes raise TransientExecutionError or
    FatalExecutionError so the executor can decide whether to retry.
    """

    # Timeout for read and write commands
    _COMMAND_TIMEOUT: float = 60.0

    def __init__(self, context: ExecutionContext | None = None) -> None:
        """Initialize the backend.

        Args:
            context: Execution context (environment, PATH overrides).
        """
        self._context = context or ExecutionContext()

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the backend prefix used in setting targets."""

    @property
    @abstractmethod
    def executable(self) -> str:
        """Return the executable this backend drives."""

    @abstractmethod
    def read(self, key: str) -> str | None:
        """Read the current value of a setting.

        Args:
            key: Backend-specific key.

        Returns:
            The raw value, or None if the setting is not set.

        Raises:
            InspectionError: If the value cannot be read.
        """

    @abstractmethod
    def build_write_command(self, key: str, value: str, value_type: str) -> list[str]:
        """Return the command line that writes a setting."""

    def backing_file(self, key: str) -> Path | None:
        """Return the file the setting is stored in, if there is one."""
        return None

    def is_available(self) -> bool:
        """Check if the backend's tool is available on the system."""
        return command_exists(self.executable, path=self._context.search_path)

    def _run(self, args: list[str]) -> CommandResult:
        return run_command(args, timeout=self._COMMAND_TIMEOUT, env=self._context.environment())

    def _run_read(self, args: list[str]) -> CommandResult:
        """Run a read command, converting launch failures to InspectionError."""
        if not self.is_available():
            msg = f"{self.executable} is not available on this system"
            raise InspectionError(msg)
        try:
            return self._run(args)
        except (OSError, subprocess.TimeoutExpired) as e:
            msg = f"{self.executable} failed: {e}"
            raise InspectionError(msg) from e

    def write(self, key: str, value: str, value_type: str = "string") -> CommandResult:
        """Write a setting.

        Args:
            key: Backend-specific key.
            value: Value to write.
            value_type: Type of the value.

        Returns:
            CommandResult of the successful write command.

        Raises:
            FatalExecutionError: If the tool is missing or the write fails.
            TransientExecutionError: If the failure may succeed on retry.
        """
        if not self.is_available():
            msg = f"{self.executable} is not available on this system"
            raise FatalExecutionError(msg)

        args = self.build_write_command(key, value, value_type)
        logger.info("Writing %s setting %s", self.name, key)

        try:
            result = self._run(args)
        except subprocess.TimeoutExpired as e:
            msg = f"{self.executable} timed out writing {key}"
            raise TransientExecutionError(msg) from e

        if result.success:
            return result

        output = result.output
        msg = f"{self.executable} exited with {result.returncode} writing {key}"
        if any(marker in output.lower() for marker in COMMON_TRANSIENT_MARKERS):
            raise TransientExecutionError(msg, output=truncate_output(output))
        raise FatalExecutionError(msg, output=truncate_output(output))
