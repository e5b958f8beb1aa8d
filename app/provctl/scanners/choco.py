"""Chocolatey package scanner implementation.

Queries locally installed packages using ``choco list``.
"""

import logging
import subprocess

from provctl.core.errors import InspectionError
from provctl.models.package import InstalledPackage
from provctl.models.platform import PackageManagerKind
from provctl.scanners.base import Scanner
from provctl.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)


class ChocoScanner(Scanner):
    """Scanner for Chocolatey packages.

    Uses ``--limit-output`` so every result line is ``name|version``.
    ``choco list`` only lists local packages since Chocolatey 2.0, which
    removed the ``--local-only`` switch.
    """

    @property
    def source(self) -> PackageManagerKind:
        """Return Chocolatey as the package source."""
        return PackageManagerKind.CHOCO

    def is_available(self) -> bool:
        """Check if choco is available."""
        return command_exists("choco", path=self._context.search_path)

    def query(self, name: str) -> InstalledPackage | None:
        """Look up a package with choco list.

        Args:
            name: Package id.

        Returns:
            InstalledPackage if installed, None otherwise.

        Raises:
            InspectionError: If choco is missing or fails.
        """
        if not self.is_available():
            msg = "Chocolatey is not available on this system"
            raise InspectionError(msg)

        try:
            result = run_command(
                ["choco", "list", "--exact", "--limit-output", name],
                timeout=self._QUERY_TIMEOUT,
                env=self._context.environment(),
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            msg = f"choco list failed: {e}"
            raise InspectionError(msg) from e

        if not result.success:
            msg = f"choco list failed: {result.output or 'unknown error'}"
            raise InspectionError(msg)

        for line in result.stdout.strip().split("\n"):
            package, sep, version = line.strip().partition("|")
            if sep and package.lower() == name.lower() and version:
                return InstalledPackage(
                    name=name, version=version, source=PackageManagerKind.CHOCO
                )
        return None
