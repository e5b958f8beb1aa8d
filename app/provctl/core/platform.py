"""Platform probe.

Identifies the host platform and the package manager available on it.
Detection order matters: WSL kernels also ship an Ubuntu release file,
so the WSL markers are checked before the release file is read.
"""

import logging
import platform as _platform
from pathlib import Path

from provctl.core.errors import UnsupportedPlatformError
from provctl.models.platform import (
    PLATFORM_PACKAGE_MANAGERS,
    OperatingSystem,
    PackageManagerKind,
    Platform,
    PlatformInfo,
)
from provctl.utils.shell import command_exists

logger = logging.getLogger(__name__)

PROC_VERSION_PATH = Path("/proc/version")
OS_RELEASE_PATH = Path("/etc/os-release")

# Kernel version markers written by WSL1 ("Microsoft") and WSL2 ("microsoft-standard-WSL2")
WSL_MARKERS: tuple[str, ...] = ("microsoft", "wsl")

# Executable probed for each package manager
PACKAGE_MANAGER_COMMANDS: dict[PackageManagerKind, str] = {
    PackageManagerKind.BREW: "brew",
    PackageManagerKind.APT: "apt-get",
    PackageManagerKind.CHOCO: "choco",
}


def parse_os_release(text: str) -> dict[str, str]:
    """Parse the KEY=value lines of an os-release file.

    Args:
        text: Content of /etc/os-release.

    Returns:
        Dictionary of keys to unquoted values.
    """
    data: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        data[key.strip()] = value.strip().strip("\"'")
    return data


def _read_text(path: Path) -> str | None:
    """Read a marker file, returning None if it cannot be read."""
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug("Cannot read %s: %s", path, e)
        return None


def is_wsl(kernel_release: str, proc_version: str | None) -> bool:
    """Check whether kernel strings carry a WSL signature."""
    haystacks = [kernel_release.lower()]
    if proc_version:
        haystacks.append(proc_version.lower())
    return any(marker in text for text in haystacks for marker in WSL_MARKERS)


def is_ubuntu(os_release: dict[str, str]) -> bool:
    """Check whether an os-release mapping describes Ubuntu or a derivative."""
    if os_release.get("ID", "").lower() == "ubuntu":
        return True
    return "ubuntu" in os_release.get("ID_LIKE", "").lower().split()


def detect_package_manager(
    variant: Platform,
    search_path: str | None = None,
) -> PackageManagerKind | None:
    """Return the platform's package manager if its command is available."""
    kind = PLATFORM_PACKAGE_MANAGERS[variant]
    if command_exists(PACKAGE_MANAGER_COMMANDS[kind], path=search_path):
        return kind
    logger.warning("%s is not available on this %s host", kind.value, variant.value)
    return None


def detect(
    *,
    system: str | None = None,
    release: str | None = None,
    machine: str | None = None,
    proc_version_path: Path = PROC_VERSION_PATH,
    os_release_path: Path = OS_RELEASE_PATH,
    search_path: str | None = None,
) -> PlatformInfo:
    """Detect the host platform.

    All inputs default to the running host and can be overridden for tests.

    Args:
        system: Kernel name (``uname -s``), e.g. "Darwin" or "Linux".
        release: Kernel release (``uname -r``).
        machine: Machine architecture (``uname -m``).
        proc_version_path: Location of the kernel version file.
        os_release_path: Location of the distribution release file.
        search_path: PATH used to look up package managers.

    Returns:
        PlatformInfo for the detected platform.

    Raises:
        UnsupportedPlatformError: If no known platform matches.
    """
    system = system if system is not None else _platform.system()
    release = release if release is not None else _platform.release()
    machine = machine if machine is not None else _platform.machine()

    os_family: OperatingSystem
    variant: Platform
    version: str | None = None

    if system == "Darwin":
        os_family, variant = OperatingSystem.MACOS, Platform.MACOS
        version = _platform.mac_ver()[0] or None
    elif system == "Windows":
        os_family, variant = OperatingSystem.WINDOWS, Platform.WINDOWS
        version = release or None
    elif system == "Linux":
        os_family = OperatingSystem.LINUX
        os_release = parse_os_release(_read_text(os_release_path) or "")
        version = os_release.get("VERSION_ID")
        if is_wsl(release, _read_text(proc_version_path)):
            variant = Platform.WSL
        elif is_ubuntu(os_release):
            variant = Platform.UBUNTU
        else:
            distro = os_release.get("ID", "unknown")
            msg = f"Unsupported Linux distribution: {distro}"
            raise UnsupportedPlatformError(msg)
    else:
        msg = f"Unsupported operating system: {system or 'unknown'}"
        raise UnsupportedPlatformError(msg)

    info = PlatformInfo(
        os=os_family,
        variant=variant,
        package_manager=detect_package_manager(variant, search_path),
        version=version,
        arch=machine or None,
        search_path=search_path,
    )
    logger.info("Detected platform: %s", info.describe())
    return info
