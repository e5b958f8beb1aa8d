"""Unit tests for the platform probe."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from provctl.core.errors import UnsupportedPlatformError
from provctl.core.platform import detect, is_ubuntu, is_wsl, parse_os_release
from provctl.models.platform import OperatingSystem, PackageManagerKind, Platform

UBUNTU_RELEASE = 'NAME="Ubuntu"\nVERSION_ID="24.04"\nID=ubuntu\nID_LIKE=debian\n'
WSL_KERNEL = "Linux version 5.15.153.1-microsoft-standard-WSL2 (root@1c602f52c2e4)"
NATIVE_KERNEL = "Linux version 6.8.0-45-generic (buildd@lcy02-amd64-075)"


@pytest.fixture
def release_files(tmp_path: Path) -> tuple[Path, Path]:
    """Write an Ubuntu os-release and a native kernel version file."""
    os_release = tmp_path / "os-release"
    os_release.write_text(UBUNTU_RELEASE, encoding="utf-8")
    proc_version = tmp_path / "version"
    proc_version.write_text(NATIVE_KERNEL, encoding="utf-8")
    return os_release, proc_version


class TestParsing:
    """Tests for the marker parsers."""

    def test_parse_os_release(self) -> None:
        """Quotes, comments and blank lines are handled."""
        data = parse_os_release(f"# comment\n\n{UBUNTU_RELEASE}PRETTY_NAME='Ubuntu 24.04'\n")
        assert data["ID"] == "ubuntu"
        assert data["VERSION_ID"] == "24.04"
        assert data["PRETTY_NAME"] == "Ubuntu 24.04"

    def test_is_wsl_from_kernel_release(self) -> None:
        """WSL2 kernel releases carry a marker."""
        assert is_wsl("5.15.153.1-microsoft-standard-WSL2", None)
        assert not is_wsl("6.8.0-45-generic", NATIVE_KERNEL)

    def test_is_wsl_from_proc_version(self) -> None:
        """WSL1 is detected through /proc/version."""
        assert is_wsl("4.4.0-19041-Microsoft", None)
        assert is_wsl("4.4.0", "Linux version 4.4.0 (Microsoft@Microsoft.com)")

    def test_is_ubuntu_accepts_derivatives(self) -> None:
        """Derivatives listing ubuntu in ID_LIKE count as Ubuntu."""
        assert is_ubuntu({"ID": "pop", "ID_LIKE": "ubuntu debian"})
        assert not is_ubuntu({"ID": "fedora"})


class TestDetect:
    """Tests for detect."""

    @patch("provctl.core.platform.command_exists", return_value=True)
    def test_ubuntu(self, mock_exists: MagicMock, release_files: tuple[Path, Path]) -> None:
        """Native Linux with an Ubuntu release file is Ubuntu with APT."""
        os_release, proc_version = release_files

        info = detect(
            system="Linux",
            release="6.8.0-45-generic",
            machine="x86_64",
            proc_version_path=proc_version,
            os_release_path=os_release,
        )

        assert info.os == OperatingSystem.LINUX
        assert info.variant == Platform.UBUNTU
        assert info.package_manager == PackageManagerKind.APT
        assert info.version == "24.04"
        assert info.arch == "x86_64"

    @patch("provctl.core.platform.command_exists", return_value=True)
    def test_wsl_wins_over_ubuntu(
        self, mock_exists: MagicMock, release_files: tuple[Path, Path]
    ) -> None:
        """An Ubuntu release file under a WSL kernel is WSL."""
        os_release, proc_version = release_files
        proc_version.write_text(WSL_KERNEL, encoding="utf-8")

        info = detect(
            system="Linux",
            release="5.15.153.1-microsoft-standard-WSL2",
            proc_version_path=proc_version,
            os_release_path=os_release,
        )

        assert info.variant == Platform.WSL
        assert info.package_manager == PackageManagerKind.APT

    @patch("provctl.core.platform._platform.mac_ver", return_value=("14.5", ("", "", ""), "arm64"))
    @patch("provctl.core.platform.command_exists", return_value=True)
    def test_macos(self, mock_exists: MagicMock, mock_mac_ver: MagicMock) -> None:
        """Darwin is macOS with Homebrew."""
        info = detect(system="Darwin", release="23.5.0", machine="arm64")

        assert info.variant == Platform.MACOS
        assert info.package_manager == PackageManagerKind.BREW
        assert info.version == "14.5"

    @patch("provctl.core.platform.command_exists", return_value=False)
    def test_missing_package_manager(self, mock_exists: MagicMock) -> None:
        """A platform without its package manager still probes, with none."""
        info = detect(system="Windows", release="10", machine="AMD64")

        assert info.variant == Platform.WINDOWS
        assert info.package_manager is None
        mock_exists.assert_called_once_with("choco", path=None)

    def test_other_linux_is_unsupported(self, tmp_path: Path) -> None:
        """Non-Ubuntu distributions are rejected."""
        os_release = tmp_path / "os-release"
        os_release.write_text("ID=fedora\n", encoding="utf-8")

        with pytest.raises(UnsupportedPlatformError, match="fedora"):
            detect(
                system="Linux",
                release="6.9.0",
                proc_version_path=tmp_path / "missing",
                os_release_path=os_release,
            )

    def test_unknown_kernel_is_unsupported(self) -> None:
        """Unknown kernels are rejected."""
        with pytest.raises(UnsupportedPlatformError, match="FreeBSD"):
            detect(system="FreeBSD", release="14.0")
