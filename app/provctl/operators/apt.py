"""APT package operator implementation.

Executes package installation using apt-get.
"""

import logging
import subprocess

from provctl.core.context import ExecutionContext
from provctl.core.errors import TransientExecutionError
from provctl.models.platform import PackageManagerKind
from provctl.operators.base import Operator
from provctl.utils.shell import CommandResult, run_command, truncate_output

logger = logging.getLogger(__name__)


def exact_version(constraint: str | None) -> str | None:
    """Return the pinned version of an ``==X`` constraint, else None."""
    if constraint and constraint.strip().startswith("==") and "," not in constraint:
        pinned = constraint.strip()[2:].strip()
        if pinned and "*" not in pinned:
            return pinned
    return None


class AptOperator(Operator):
    """Operator for APT/dpkg packages.

    Uses apt-get to install packages. Requires sudo privileges unless the
    process runs as root. The package index is refreshed once per operator
    before the first install.
    """

    TRANSIENT_MARKERS = (
        "could not get lock",
        "unable to acquire the dpkg frontend lock",
        "is another process using it",
        "failed to fetch",
        "hash sum mismatch",
        "unable to lock directory",
    )

    # Timeout for apt-get update (5 minutes)
    _UPDATE_TIMEOUT: float = 300.0

    def __init__(self, context: ExecutionContext | None = None) -> None:
        super().__init__(context)
        self._index_refreshed = False

    @property
    def source(self) -> PackageManagerKind:
        """Return APT as the package source."""
        return PackageManagerKind.APT

    @property
    def executable(self) -> str:
        """Return apt-get as the driven executable."""
        return "apt-get"

    def _apt(self, *args: str) -> list[str]:
        return self._context.privileged(
            ["env", "DEBIAN_FRONTEND=noninteractive", "apt-get", *args]
        )

    def build_install_command(self, name: str, version: str | None = None) -> list[str]:
        """Build ``apt-get install -y``, pinning ``==`` constraints."""
        pinned = exact_version(version)
        target = f"{name}={pinned}" if pinned else name
        return self._apt("install", "-y", "-q", "--no-install-recommends", target)

    def refresh_index(self) -> None:
        """Run ``apt-get update`` once per operator.

        Raises:
            TransientExecutionError: If the index cannot be refreshed.
        """
        if self._index_refreshed:
            return

        logger.info("Updating package lists")
        try:
            result: CommandResult = run_command(
                self._apt("update", "-q"),
                timeout=self._UPDATE_TIMEOUT,
                env=self._context.environment(),
            )
        except subprocess.TimeoutExpired as e:
            msg = "apt-get update timed out"
            raise TransientExecutionError(msg) from e

        if not result.success:
            msg = f"apt-get update exited with {result.returncode}"
            raise TransientExecutionError(msg, output=truncate_output(result.output))
        self._index_refreshed = True

    def install(self, name: str, version: str | None = None) -> CommandResult:
        """Refresh the package index if needed, then install."""
        if self.is_available():
            self.refresh_index()
        return super().install(name, version)
