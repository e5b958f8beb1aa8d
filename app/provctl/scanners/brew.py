"""Homebrew package scanner implementation.

Queries installed formulae and casks using ``brew list --versions``.
"""

import logging
import subprocess

from provctl.core.errors import InspectionError
from provctl.models.package import InstalledPackage
from provctl.models.platform import PackageManagerKind
from provctl.scanners.base import Scanner
from provctl.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

# Prefix marking a cask in catalogue package names (e.g. "cask:iterm2")
CASK_PREFIX = "cask:"


def split_cask(name: str) -> tuple[str, bool]:
    """Split a catalogue package name into (brew name, is_cask)."""
    if name.startswith(CASK_PREFIX):
        return name[len(CASK_PREFIX) :], True
    return name, False


class BrewScanner(Scanner):
    """Scanner for Homebrew formulae and casks.

    Casks are addressed with a ``cask:`` prefix in the catalogue so that
    formula and cask names cannot collide.
    """

    @property
    def source(self) -> PackageManagerKind:
        """Return Homebrew as the package source."""
        return PackageManagerKind.BREW

    def is_available(self) -> bool:
        """Check if brew is available."""
        return command_exists("brew", path=self._context.search_path)

    def query(self, name: str) -> InstalledPackage | None:
        """Look up a formula or cask.

        Args:
            name: Formula name, or ``cask:<name>`` for a cask.

        Returns:
            InstalledPackage if installed, None otherwise.

        Raises:
            InspectionError: If brew is missing or cannot be run.
        """
        if not self.is_available():
            msg = "Homebrew is not available on this system"
            raise InspectionError(msg)

        brew_name, is_cask = split_cask(name)
        args = ["brew", "list", "--versions"]
        if is_cask:
            args.append("--cask")
        args.append(brew_name)

        try:
            result = run_command(args, timeout=self._QUERY_TIMEOUT, env=self._context.environment())
        except (OSError, subprocess.TimeoutExpired) as e:
            msg = f"brew list failed: {e}"
            raise InspectionError(msg) from e

        # brew list --versions exits 1 with empty output for missing packages
        if not result.success or not result.stdout.strip():
            if result.stderr.strip() and "no such" not in result.stderr.lower():
                logger.debug("brew list stderr for %s: %s", name, result.stderr.strip())
            return None

        # Output: "<name> <version> [<older version>...]"
        fields = result.stdout.strip().split("\n")[0].split()
        if len(fields) < 2:
            logger.debug("Unexpected brew output for %s: %r", name, result.stdout[:100])
            return None

        return InstalledPackage(name=name, version=fields[-1], source=PackageManagerKind.BREW)
