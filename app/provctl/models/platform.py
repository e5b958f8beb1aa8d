"""Platform models for host detection.

This module defines the data structures describing the host operating
system, its provisioning variant and the package manager available on it.
"""

from dataclasses import dataclass, field
from enum import Enum

from provctl.utils.shell import command_exists


class OperatingSystem(str, Enum):
    """Operating system family reported by the kernel."""

    MACOS = "macos"
    LINUX = "linux"
    WINDOWS = "windows"


class Platform(str, Enum):
    """Provisioning target a catalogue item can be scoped to.

    Attributes:
        MACOS: macOS (Darwin kernel).
        UBUNTU: Ubuntu Server running on a native Linux kernel.
        WSL: Ubuntu running under the Windows Subsystem for Linux.
        WINDOWS: Native Windows.
    """

    MACOS = "macos"
    UBUNTU = "ubuntu"
    WSL = "wsl"
    WINDOWS = "windows"


class PackageManagerKind(str, Enum):
    """Package managers the engine knows how to drive."""

    BREW = "brew"
    APT = "apt"
    CHOCO = "choco"


# Package manager each platform is provisioned with
PLATFORM_PACKAGE_MANAGERS: dict[Platform, PackageManagerKind] = {
    Platform.MACOS: PackageManagerKind.BREW,
    Platform.UBUNTU: PackageManagerKind.APT,
    Platform.WSL: PackageManagerKind.APT,
    Platform.WINDOWS: PackageManagerKind.CHOCO,
}


@dataclass(frozen=True, slots=True)
class PlatformInfo:
    """Result of probing the host.

    Attributes:
        os: Operating system family.
        variant: Provisioning platform (macOS, Ubuntu, WSL, Windows).
        package_manager: Package manager found on the host, None if absent.
        version: OS version string if known (e.g. "24.04", "14.5").
        arch: Machine architecture (e.g. "x86_64", "arm64").
        search_path: PATH used for capability queries. None means the
            current process PATH.
    """

    os: OperatingSystem
    variant: Platform
    package_manager: PackageManagerKind | None
    version: str | None = None
    arch: str | None = None
    search_path: str | None = field(default=None, compare=False)

    def has_command(self, name: str) -> bool:
        """Check whether a command is available on this host.

        Args:
            name: Executable name to look up.

        Returns:
            True if the command resolves on the platform's search path.
        """
        return command_exists(name, path=self.search_path)

    @property
    def expected_package_manager(self) -> PackageManagerKind:
        """Package manager this platform is provisioned with."""
        return PLATFORM_PACKAGE_MANAGERS[self.variant]

    def describe(self) -> str:
        """Return a short human-readable description."""
        parts = [self.variant.value]
        if self.version:
            parts.append(self.version)
        if self.arch:
            parts.append(f"({self.arch})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, str | None]:
        """Serialize to a dictionary for JSON output."""
        return {
            "os": self.os.value,
            "variant": self.variant.value,
            "package_manager": self.package_manager.value if self.package_manager else None,
            "version": self.version,
            "arch": self.arch,
        }
