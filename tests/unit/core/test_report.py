"""Unit tests for the report generator."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from provctl.core.report import ReportGenerator, render_report, write_report
from provctl.core.state import RunHistory
from provctl.models.outcome import ActionOutcome, BackupRecord, OutcomeStatus
from provctl.models.report import RunReport, RunSummary


@pytest.fixture
def report() -> RunReport:
    """Report with one outcome of each status."""
    report = RunReport(platform="ubuntu 24.04 (x86_64)")
    report.append(
        ActionOutcome(
            item_id="file:~/.bashrc",
            status=OutcomeStatus.APPLIED,
            attempts=1,
            backup=BackupRecord(
                original_path="/home/u/.bashrc",
                backup_path="/home/u/.bashrc.backup.20240601T123045Z",
                created_at="2024-06-01T12:30:45+00:00",
            ),
        )
    )
    report.append(ActionOutcome(item_id="package:git", status=OutcomeStatus.ALREADY_SATISFIED))
    report.append(ActionOutcome(item_id="setting:reg:X/Y", status=OutcomeStatus.SKIPPED))
    report.append(
        ActionOutcome(
            item_id="package:nope",
            status=OutcomeStatus.FAILED,
            attempts=3,
            error="apt-get exited with 100 installing nope: E: Unable to locate package nope",
            error_kind="FatalExecutionFailure",
        )
    )
    return report


class TestRenderReport:
    """Tests for render_report."""

    def test_complete_run(self, report: RunReport) -> None:
        """The report lists counts, every item and failure details."""
        report.finish()
        text = render_report(RunSummary.from_report(report))

        assert text.startswith("provctl run report\n")
        assert f"Run:       {report.run_id}" in text
        assert "Platform:  ubuntu 24.04 (x86_64)" in text
        assert "Mode:      apply" in text
        assert "Status:    complete" in text
        assert "Summary: 1 applied, 1 already satisfied, 1 skipped, 1 failed" in text
        assert "file:~/.bashrc (attempts: 1, backup: /home/u/.bashrc.backup." in text
        assert "  - package:nope (attempts: 3) [FatalExecutionFailure]" in text
        assert "E: Unable to locate package nope" in text

    def test_incomplete_run(self) -> None:
        """Aborted runs carry their reason."""
        report = RunReport(platform="macos", dry_run=True)
        report.mark_incomplete("cancelled")
        report.finish()

        text = render_report(RunSummary.from_report(report))

        assert "Status:    INCOMPLETE (cancelled)" in text
        assert "Mode:      dry-run" in text
        assert "Failed items:" not in text


class TestReportGenerator:
    """Tests for ReportGenerator.finalize."""

    def test_writes_artifact_and_history(self, report: RunReport, tmp_path: Path) -> None:
        """finalize writes the artifact and appends one history line."""
        history = RunHistory(tmp_path / "runs.jsonl")
        generator = ReportGenerator(report_path=tmp_path / "out" / "last-run.txt", history=history)

        summary = generator.finalize(report)

        assert report.is_finished
        assert summary.failed == 1
        assert (tmp_path / "out" / "last-run.txt").read_text(encoding="utf-8") == render_report(
            summary
        )
        line = json.loads(history.path.read_text(encoding="utf-8").strip())
        assert line["run_id"] == report.run_id
        assert line["summary"]["applied"] == 1

    def test_overwrites_previous_artifact(self, tmp_path: Path) -> None:
        """Only the latest run is kept at the well-known path."""
        path = tmp_path / "last-run.txt"
        path.write_text("old report\n", encoding="utf-8")

        ReportGenerator(report_path=path).finalize(RunReport(platform="wsl"))

        assert "old report" not in path.read_text(encoding="utf-8")

    @patch("provctl.core.report.write_report", side_effect=OSError("disk full"))
    def test_write_failure_is_logged(
        self,
        mock_write: MagicMock,
        tmp_path: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A failing artifact write never raises."""
        summary = ReportGenerator(report_path=tmp_path / "r.txt").finalize(
            RunReport(platform="wsl")
        )

        assert summary.total == 0
        assert "Failed to write run report" in caplog.text

    def test_write_report_leaves_no_temp_files(self, tmp_path: Path) -> None:
        """The artifact is replaced atomically."""
        report_dir = tmp_path / "state"
        write_report("text\n", report_dir / "r.txt")
        assert [p.name for p in report_dir.iterdir()] == ["r.txt"]
