"""Homebrew package operator implementation.

Executes formula and cask installation using brew.
"""

from provctl.models.platform import PackageManagerKind
from provctl.operators.base import Operator
from provctl.scanners.brew import split_cask


class BrewOperator(Operator):
    """Operator for Homebrew formulae and casks.

    Homebrew refuses to run as root, so commands are never prefixed
    with sudo. Version constraints are not passed to brew; the
    post-install inspection verifies them.
    """

    TRANSIENT_MARKERS = (
        "another active homebrew process",
        "already locked",
        "curl: (6)",
        "curl: (7)",
        "curl: (28)",
        "curl: (35)",
        "curl: (56)",
    )

    @property
    def source(self) -> PackageManagerKind:
        """Return Homebrew as the package source."""
        return PackageManagerKind.BREW

    @property
    def executable(self) -> str:
        """Return brew as the driven executable."""
        return "brew"

    def build_install_command(self, name: str, version: str | None = None) -> list[str]:
        """Build ``brew install``, adding ``--cask`` for cask names."""
        brew_name, is_cask = split_cask(name)
        args = ["brew", "install"]
        if is_cask:
            args.append("--cask")
        args.append(brew_name)
        return args
