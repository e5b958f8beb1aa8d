"""Abstract base class for package scanners.

This module defines the Scanner interface that all package manager
scanners must implement. Scanners only read state; installing is the
job of operators.
"""

from abc import ABC, abstractmethod

from provctl.core.context import ExecutionContext
from provctl.models.package import InstalledPackage
from provctl.models.platform import PackageManagerKind


class Scanner(ABC):
    """Abstract base class for all package scanners.

    Scanners are responsible for asking a package manager whether a
    package is installed and at which version.

    Example:
        >>> scanner = AptScanner(ExecutionContext())
        >>> if scanner.is_available():
        ...     pkg = scanner.query("git")
        ...     print(pkg.version if pkg else "not installed")
    """

    # Timeout for read-only queries
    _QUERY_TIMEOUT: float = 60.0

    def __init__(self, context: ExecutionContext | None = None) -> None:
        """Initialize the scanner.

        Args:
            context: Execution context providing environment overrides.
        """
        self._context = context or ExecutionContext()

    @property
    @abstractmethod
    def source(self) -> PackageManagerKind:
        """Return the package manager this scanner handles."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this package manager is available on the system.

        Returns:
            True if the package manager can be queried, False otherwise.
        """

    @abstractmethod
    def query(self, name: str) -> InstalledPackage | None:
        """Look up a single package.

        Args:
            name: Package name.

        Returns:
            InstalledPackage if installed, None if not installed.

        Raises:
            InspectionError: If the package manager cannot be queried.
        """

    def is_installed(self, name: str) -> bool:
        """Check if a package is installed.

        Raises:
            InspectionError: If the package manager cannot be queried.
        """
        return self.query(name) is not None
