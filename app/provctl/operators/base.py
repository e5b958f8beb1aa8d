"""Abstract base class for package operators.

This module defines the Operator interface that all package management
operators must implement, and the shared classification of failed
package manager runs into transient and fatal failures.
"""

import logging
import subprocess
from abc import ABC, abstractmethod

from provctl.core.context import ExecutionContext
from provctl.core.errors import FatalExecutionError, TransientExecutionError
from provctl.models.platform import PackageManagerKind
from provctl.utils.shell import CommandResult, command_exists, run_command, truncate_output

logger = logging.getLogger(__name__)

# Output fragments that mean "try again later" for any package manager
COMMON_TRANSIENT_MARKERS: tuple[str, ...] = (
    "timed out",
    "timeout",
    "temporary failure",
    "connection reset",
    "connection refused",
    "could not resolve host",
    "network is unreachable",
    "resource temporarily unavailable",
    "resource busy",
)


class Operator(ABC):
    """Abstract base class for all package operators.

    Operators are responsible for installing packages for a specific
    package manager. A failed install is raised as either a
    TransientExecutionError (worth retrying) or a FatalExecutionError.

    Example:
        >>> operator = AptOperator(ExecutionContext())
        >>> if operator.is_available():
        ...     operator.install("htop")
    """

    # Timeout for install commands (10 minutes)
    _INSTALL_TIMEOUT: float = 600.0

    # Manager-specific output fragments meaning the failure is transient
    TRANSIENT_MARKERS: tuple[str, ...] = ()

    # Manager-specific exit codes meaning the failure is transient
    TRANSIENT_EXIT_CODES: frozenset[int] = frozenset()

    # Exit codes that mean success (e.g. "reboot required")
    SUCCESS_EXIT_CODES: frozenset[int] = frozenset({0})

    def __init__(self, context: ExecutionContext | None = None) -> None:
        """Initialize the operator.

        Args:
            context: Execution context (sudo, environment, timeouts).
        """
        self._context = context or ExecutionContext()

    @property
    @abstractmethod
    def source(self) -> PackageManagerKind:
        """Return the package manager this operator handles."""

    @property
    @abstractmethod
    def executable(self) -> str:
        """Return the executable this operator drives."""

    @abstractmethod
    def build_install_command(self, name: str, version: str | None = None) -> list[str]:
        """Return the command line that installs a package.

        Args:
            name: Package name.
            version: Version constraint from the catalogue, if any.
        """

    def is_available(self) -> bool:
        """Check if this package manager is available on the system."""
        return command_exists(self.executable, path=self._context.search_path)

    def install(self, name: str, version: str | None = None) -> CommandResult:
        """Install a package.

        Args:
            name: Package name.
            version: Version constraint from the catalogue, if any.

        Returns:
            CommandResult of the successful install command.

        Raises:
            FatalExecutionError: If the package manager is missing or the
                failure cannot be fixed by retrying.
            TransientExecutionError: If the failure may succeed on retry.
        """
        if not self.is_available():
            msg = f"{self.source.value} package manager is not available on this system"
            raise FatalExecutionError(msg)

        args = self.build_install_command(name, version)
        logger.info("Executing %s install for %s", self.source.value, name)

        try:
            result = run_command(
                args,
                timeout=min(self._INSTALL_TIMEOUT, self._context.command_timeout),
                env=self._context.environment(),
            )
        except subprocess.TimeoutExpired as e:
            msg = f"{self.executable} timed out installing {name}"
            raise TransientExecutionError(msg) from e

        if result.returncode in self.SUCCESS_EXIT_CODES:
            return result

        raise self.classify_failure(name, result)

    def classify_failure(
        self, name: str, result: CommandResult
    ) -> TransientExecutionError | FatalExecutionError:
        """Turn a failed command into the matching execution error.

        Args:
            name: Package that was being installed.
            result: Failed command result.

        Returns:
            The exception to raise; it is not raised here.
        """
        output = result.output
        lowered = output.lower()
        msg = f"{self.executable} exited with {result.returncode} installing {name}"

        if result.returncode in self.TRANSIENT_EXIT_CODES or any(
            marker in lowered for marker in (*self.TRANSIENT_MARKERS, *COMMON_TRANSIENT_MARKERS)
        ):
            return TransientExecutionError(msg, output=truncate_output(output))
        return FatalExecutionError(msg, output=truncate_output(output))
