"""Unit tests for logging setup."""

import logging
from pathlib import Path

import pytest
from provctl.core.logging import parse_level, setup_logging


class TestParseLevel:
    """Tests for parse_level."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [("debug", logging.DEBUG), ("INFO", logging.INFO), ("nope", logging.WARNING), (None, 30)],
    )
    def test_levels(self, name: str | None, expected: int) -> None:
        """Names map to constants; unknown names fall back to the default."""
        assert parse_level(name) == expected


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_console_only(self) -> None:
        """Without a file only the console handler is attached."""
        setup_logging("ERROR")

        logger = logging.getLogger("provctl")
        assert len(logger.handlers) == 1
        assert logger.level == logging.ERROR
        assert logger.propagate is False

    def test_file_receives_info(self, tmp_path: Path) -> None:
        """The log file records INFO even when the console is quiet."""
        log_file = tmp_path / "logs" / "provctl.log"
        setup_logging("WARNING", log_file=log_file, log_file_level="INFO")

        logging.getLogger("provctl.core.reconcile").info("Run abc started")
        for handler in logging.getLogger("provctl").handlers:
            handler.flush()

        assert "Run abc started" in log_file.read_text(encoding="utf-8")

    def test_repeated_setup_replaces_handlers(self, tmp_path: Path) -> None:
        """Calling setup twice does not duplicate handlers."""
        setup_logging("INFO", log_file=tmp_path / "a.log")
        setup_logging("INFO", log_file=tmp_path / "a.log")

        assert len(logging.getLogger("provctl").handlers) == 2

    def test_file_is_appended(self, tmp_path: Path) -> None:
        """Existing log content is kept."""
        log_file = tmp_path / "provctl.log"
        log_file.write_text("previous run\n", encoding="utf-8")

        setup_logging("WARNING", log_file=log_file)
        logging.getLogger("provctl").warning("next run")
        for handler in logging.getLogger("provctl").handlers:
            handler.flush()

        text = log_file.read_text(encoding="utf-8")
        assert text.startswith("previous run\n")
        assert "next run" in text

    def test_unwritable_file_is_skipped(self, tmp_path: Path) -> None:
        """A log file that cannot be opened leaves the console handler."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")

        setup_logging("WARNING", log_file=blocker / "provctl.log")

        assert len(logging.getLogger("provctl").handlers) == 1
