"""Package scanners for different package managers.

This module exports the scanner classes for querying installed packages.
"""

from provctl.core.context import ExecutionContext
from provctl.models.platform import PackageManagerKind
from provctl.scanners.apt import AptScanner
from provctl.scanners.base import Scanner
from provctl.scanners.brew import BrewScanner
from provctl.scanners.choco import ChocoScanner

SCANNERS: dict[PackageManagerKind, type[Scanner]] = {
    PackageManagerKind.APT: AptScanner,
    PackageManagerKind.BREW: BrewScanner,
    PackageManagerKind.CHOCO: ChocoScanner,
}


def get_scanner(kind: PackageManagerKind, context: ExecutionContext | None = None) -> Scanner:
    """Create the scanner for a package manager."""
    return SCANNERS[kind](context)


__all__ = ["AptScanner", "BrewScanner", "ChocoScanner", "SCANNERS", "Scanner", "get_scanner"]
