"""Unit tests for AptScanner.

Tests for the APT package scanner implementation.
"""

import subprocess
from unittest.mock import patch

import pytest
from provctl.core.errors import InspectionError
from provctl.models.platform import PackageManagerKind
from provctl.scanners.apt import AptScanner
from provctl.utils.shell import CommandResult


class TestAptScanner:
    """Tests for AptScanner class."""

    @pytest.fixture
    def scanner(self) -> AptScanner:
        """Create AptScanner instance."""
        return AptScanner()

    def test_source_is_apt(self, scanner: AptScanner) -> None:
        """Scanner returns APT as source."""
        assert scanner.source == PackageManagerKind.APT

    def test_is_available(self, scanner: AptScanner) -> None:
        """is_available looks for dpkg-query."""
        with patch("provctl.scanners.apt.command_exists", return_value=True) as mock_exists:
            assert scanner.is_available() is True
        mock_exists.assert_called_once_with("dpkg-query", path=None)

    def test_query_installed(self, scanner: AptScanner) -> None:
        """An installed package is returned with its full version."""
        with (
            patch("provctl.scanners.apt.command_exists", return_value=True),
            patch("provctl.scanners.apt.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(
                stdout="install ok installed\t1:2.43.0-1ubuntu7\n", stderr="", returncode=0
            )

            pkg = scanner.query("git")

        assert pkg is not None
        assert pkg.name == "git"
        assert pkg.version == "1:2.43.0-1ubuntu7"
        assert mock_run.call_args.args[0][:2] == ["dpkg-query", "-W"]
        assert mock_run.call_args.args[0][-1] == "git"

    def test_query_config_files_only(self, scanner: AptScanner) -> None:
        """Removed packages with leftover config are not installed."""
        with (
            patch("provctl.scanners.apt.command_exists", return_value=True),
            patch("provctl.scanners.apt.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(
                stdout="deinstall ok config-files\t2.1\n", stderr="", returncode=0
            )

            assert scanner.query("tmux") is None

    def test_query_unknown_package(self, scanner: AptScanner) -> None:
        """Packages dpkg has never seen are not installed."""
        with (
            patch("provctl.scanners.apt.command_exists", return_value=True),
            patch("provctl.scanners.apt.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(
                stdout="", stderr="dpkg-query: no packages found matching nope\n", returncode=1
            )

            assert scanner.query("nope") is None

    def test_query_other_failure(self, scanner: AptScanner) -> None:
        """Other dpkg-query failures raise InspectionError."""
        with (
            patch("provctl.scanners.apt.command_exists", return_value=True),
            patch("provctl.scanners.apt.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(
                stdout="", stderr="dpkg-query: error: database is locked", returncode=2
            )

            with pytest.raises(InspectionError, match="database is locked"):
                scanner.query("git")

    def test_query_timeout(self, scanner: AptScanner) -> None:
        """Timeouts raise InspectionError."""
        with (
            patch("provctl.scanners.apt.command_exists", return_value=True),
            patch(
                "provctl.scanners.apt.run_command",
                side_effect=subprocess.TimeoutExpired(["dpkg-query"], 60),
            ),
            pytest.raises(InspectionError),
        ):
            scanner.query("git")

    def test_query_unavailable(self, scanner: AptScanner) -> None:
        """A missing dpkg-query raises InspectionError."""
        with (
            patch("provctl.scanners.apt.command_exists", return_value=False),
            pytest.raises(InspectionError, match="not available"),
        ):
            scanner.query("git")

    def test_is_installed(self, scanner: AptScanner) -> None:
        """is_installed wraps query."""
        with patch.object(AptScanner, "query", return_value=None):
            assert scanner.is_installed("git") is False
