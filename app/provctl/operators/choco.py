"""Chocolatey package operator implementation.

Executes package installation using choco.
"""

from provctl.models.platform import PackageManagerKind
from provctl.operators.apt import exact_version
from provctl.operators.base import Operator


class ChocoOperator(Operator):
    """Operator for Chocolatey packages.

    Must run from an elevated shell; there is no sudo on Windows.
    Exit codes 1641 and 3010 mean success with a pending reboot.
    Exit code 1618 means another MSI installation is in progress.
    """

    TRANSIENT_MARKERS = (
        "being used by another process",
        "another installation is in progress",
        "unable to connect to the remote server",
    )
    TRANSIENT_EXIT_CODES = frozenset({1618})
    SUCCESS_EXIT_CODES = frozenset({0, 1641, 3010})

    @property
    def source(self) -> PackageManagerKind:
        """Return Chocolatey as the package source."""
        return PackageManagerKind.CHOCO

    @property
    def executable(self) -> str:
        """Return choco as the driven executable."""
        return "choco"

    def build_install_command(self, name: str, version: str | None = None) -> list[str]:
        """Build ``choco install -y``, pinning ``==`` constraints."""
        args = ["choco", "install", name, "-y", "--no-progress"]
        pinned = exact_version(version)
        if pinned:
            args.extend(["--version", pinned])
        return args
