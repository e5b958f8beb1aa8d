"""Unit tests for platform models."""

from unittest.mock import MagicMock, patch

from provctl.models.platform import (
    OperatingSystem,
    PackageManagerKind,
    Platform,
    PlatformInfo,
)


class TestPlatformInfo:
    """Tests for PlatformInfo."""

    def test_expected_package_manager(self) -> None:
        """Each platform maps to its package manager."""
        expected = {
            Platform.MACOS: PackageManagerKind.BREW,
            Platform.UBUNTU: PackageManagerKind.APT,
            Platform.WSL: PackageManagerKind.APT,
            Platform.WINDOWS: PackageManagerKind.CHOCO,
        }
        for variant, kind in expected.items():
            info = PlatformInfo(os=OperatingSystem.LINUX, variant=variant, package_manager=None)
            assert info.expected_package_manager == kind

    def test_describe(self, ubuntu: PlatformInfo) -> None:
        """describe joins variant, version and architecture."""
        assert ubuntu.describe() == "ubuntu 24.04 (x86_64)"
        bare = PlatformInfo(
            os=OperatingSystem.WINDOWS, variant=Platform.WINDOWS, package_manager=None
        )
        assert bare.describe() == "windows"

    def test_to_dict(self, ubuntu: PlatformInfo) -> None:
        """to_dict uses plain strings."""
        assert ubuntu.to_dict() == {
            "os": "linux",
            "variant": "ubuntu",
            "package_manager": "apt",
            "version": "24.04",
            "arch": "x86_64",
        }

    @patch("provctl.models.platform.command_exists", return_value=True)
    def test_has_command_uses_search_path(self, mock_exists: MagicMock) -> None:
        """Capability queries use the probed search path."""
        info = PlatformInfo(
            os=OperatingSystem.MACOS,
            variant=Platform.MACOS,
            package_manager=PackageManagerKind.BREW,
            search_path="/opt/homebrew/bin",
        )

        assert info.has_command("brew")
        mock_exists.assert_called_once_with("brew", path="/opt/homebrew/bin")

    def test_search_path_not_compared(self) -> None:
        """Two probes of the same host compare equal regardless of PATH."""
        a = PlatformInfo(os=OperatingSystem.LINUX, variant=Platform.WSL, package_manager=None)
        b = PlatformInfo(
            os=OperatingSystem.LINUX, variant=Platform.WSL, package_manager=None, search_path="/x"
        )
        assert a == b
