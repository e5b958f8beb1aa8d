"""Unit tests for RunHistory.

Tests for the JSONL run history.
"""

import logging
from pathlib import Path

import pytest
from provctl.core.state import RunHistory
from provctl.models.outcome import ActionOutcome, OutcomeStatus
from provctl.models.report import RunReport, RunSummary


def _summary(platform: str = "ubuntu 24.04", failed: bool = False) -> RunSummary:
    report = RunReport(platform=platform)
    report.append(ActionOutcome(item_id="package:git", status=OutcomeStatus.APPLIED, attempts=1))
    if failed:
        report.append(
            ActionOutcome(
                item_id="package:nope",
                status=OutcomeStatus.FAILED,
                attempts=1,
                error="Unable to locate package nope",
                error_kind="FatalExecutionFailure",
            )
        )
    report.finish()
    return RunSummary.from_report(report)


@pytest.fixture
def history(tmp_path: Path) -> RunHistory:
    """RunHistory in a temporary directory."""
    return RunHistory(tmp_path / "state" / "runs.jsonl")


class TestRunHistory:
    """Tests for RunHistory."""

    def test_default_path(self) -> None:
        """The default file lives in the state directory."""
        assert RunHistory().path.name == "runs.jsonl"

    def test_empty_history(self, history: RunHistory) -> None:
        """A missing file is an empty history."""
        assert history.get_history() == []
        assert history.last() is None

    def test_record_creates_file(self, history: RunHistory) -> None:
        """record creates parent directories and writes one line."""
        history.record(_summary())

        lines = history.path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 1

    def test_newest_first(self, history: RunHistory) -> None:
        """Summaries are returned newest first."""
        first = _summary("ubuntu 22.04")
        second = _summary("ubuntu 24.04", failed=True)
        history.record(first)
        history.record(second)

        entries = history.get_history()

        assert [e.run_id for e in entries] == [second.run_id, first.run_id]
        assert entries[0].failed == 1
        assert entries[0].failures[0].error == "Unable to locate package nope"
        assert history.last() == entries[0]

    def test_limit(self, history: RunHistory) -> None:
        """limit caps the number of summaries."""
        for _ in range(3):
            history.record(_summary())

        assert len(history.get_history(limit=2)) == 2

    def test_corrupt_lines_skipped(
        self, history: RunHistory, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Corrupt lines are logged and skipped."""
        history.record(_summary())
        with history.path.open("a", encoding="utf-8") as f:
            f.write("{not json\n\n")
            f.write('{"run_id": "x"}\n')
        history.record(_summary())

        with caplog.at_level(logging.WARNING):
            entries = history.get_history()

        assert len(entries) == 2
        assert "Skipping corrupt history line 2" in caplog.text
