"""Package models for installed-state queries."""

from dataclasses import dataclass

from provctl.models.platform import PackageManagerKind


@dataclass(frozen=True, slots=True)
class InstalledPackage:
    """A package reported as installed by a package manager.

    Attributes:
        name: Package name (e.g. 'git', 'visualstudiocode').
        version: Installed version string as reported by the manager.
        source: Package manager that reported this package.
    """

    name: str
    version: str
    source: PackageManagerKind

    def __post_init__(self) -> None:
        """Validate package data after initialization."""
        if not self.name:
            msg = "Package name cannot be empty"
            raise ValueError(msg)
        if not self.version:
            msg = "Package version cannot be empty"
            raise ValueError(msg)
