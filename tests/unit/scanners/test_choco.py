"""Unit tests for ChocoScanner."""

from unittest.mock import patch

import pytest
from provctl.core.errors import InspectionError
from provctl.scanners.choco import ChocoScanner
from provctl.utils.shell import CommandResult


class TestChocoScanner:
    """Tests for ChocoScanner class."""

    @pytest.fixture
    def scanner(self) -> ChocoScanner:
        """Create ChocoScanner instance."""
        return ChocoScanner()

    def test_query_installed(self, scanner: ChocoScanner) -> None:
        """Limit-output lines are split on the pipe."""
        with (
            patch("provctl.scanners.choco.command_exists", return_value=True),
            patch("provctl.scanners.choco.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(
                stdout="Git|2.45.2\n", stderr="", returncode=0
            )

            pkg = scanner.query("git")

        assert pkg is not None
        assert pkg.name == "git"
        assert pkg.version == "2.45.2"
        assert mock_run.call_args.args[0] == ["choco", "list", "--exact", "--limit-output", "git"]

    def test_query_missing(self, scanner: ChocoScanner) -> None:
        """No matching line means not installed."""
        with (
            patch("provctl.scanners.choco.command_exists", return_value=True),
            patch("provctl.scanners.choco.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(stdout="", stderr="", returncode=0)

            assert scanner.query("git") is None

    def test_query_failure(self, scanner: ChocoScanner) -> None:
        """A failing choco raises InspectionError."""
        with (
            patch("provctl.scanners.choco.command_exists", return_value=True),
            patch("provctl.scanners.choco.run_command") as mock_run,
        ):
            mock_run.return_value = CommandResult(stdout="", stderr="access denied", returncode=1)

            with pytest.raises(InspectionError, match="access denied"):
                scanner.query("git")
