"""APT package scanner implementation.

Queries installed packages using dpkg-query.
"""

import logging
import subprocess

from provctl.core.errors import InspectionError
from provctl.models.package import InstalledPackage
from provctl.models.platform import PackageManagerKind
from provctl.scanners.base import Scanner
from provctl.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)


class AptScanner(Scanner):
    """Scanner for APT/dpkg packages.

    A package counts as installed only when dpkg reports the status
    "install ok installed"; removed packages that left configuration files
    behind ("deinstall ok config-files") do not.
    """

    # dpkg-query format string: Status, Version
    _DPKG_FORMAT = "${Status}\\t${Version}\\n"

    @property
    def source(self) -> PackageManagerKind:
        """Return APT as the package source."""
        return PackageManagerKind.APT

    def is_available(self) -> bool:
        """Check if dpkg-query is available."""
        return command_exists("dpkg-query", path=self._context.search_path)

    def query(self, name: str) -> InstalledPackage | None:
        """Look up a package with dpkg-query.

        Args:
            name: Package name.

        Returns:
            InstalledPackage if installed, None otherwise.

        Raises:
            InspectionError: If dpkg-query is missing or fails unexpectedly.
        """
        if not self.is_available():
            msg = "APT package manager is not available on this system"
            raise InspectionError(msg)

        try:
            result = run_command(
                ["dpkg-query", "-W", "-f", self._DPKG_FORMAT, name],
                timeout=self._QUERY_TIMEOUT,
                env=self._context.environment(),
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            msg = f"dpkg-query failed: {e}"
            raise InspectionError(msg) from e

        if not result.success:
            # dpkg-query exits 1 for packages it has never seen
            if "no packages found" in result.stderr.lower():
                return None
            msg = f"dpkg-query failed: {result.stderr.strip() or 'unknown error'}"
            raise InspectionError(msg)

        return self._parse_status_line(name, result.stdout)

    def _parse_status_line(self, name: str, output: str) -> InstalledPackage | None:
        """Parse the status/version line printed by dpkg-query.

        Args:
            name: Package name that was queried.
            output: dpkg-query standard output.

        Returns:
            InstalledPackage if the status is "installed", None otherwise.
        """
        line = output.strip().split("\n")[0] if output.strip() else ""
        parts = line.split("\t")
        if len(parts) < 2:
            logger.debug("Unexpected dpkg-query output for %s: %r", name, line[:100])
            return None

        status, version = parts[0].strip(), parts[1].strip()
        if not status.endswith(" installed") or not version:
            return None

        return InstalledPackage(name=name, version=version, source=PackageManagerKind.APT)
