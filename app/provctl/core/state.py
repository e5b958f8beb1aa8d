"""Run history persistence.

This module provides the RunHistory class for appending and reading run
summaries in a JSONL file.
"""

import json
import logging
from pathlib import Path

from provctl.core.paths import get_history_path
from provctl.models.report import RunSummary

logger = logging.getLogger(__name__)


class RunHistory:
    """Manages run summaries in a JSONL file.

    Storage location: ~/.local/state/provctl/runs.jsonl

    Each line is one complete JSON object representing a RunSummary. The
    file is append-only; corrupt lines are skipped when reading.
    """

    def __init__(self, path: Path | None = None) -> None:
        """Initialize RunHistory.

        Args:
            path: Optional override for the history file.
                  Default: ~/.local/state/provctl/runs.jsonl
        """
        self._path = path if path is not None else get_history_path()

    @property
    def path(self) -> Path:
        """Path to the history file."""
        return self._path

    def record(self, summary: RunSummary) -> None:
        """Append a run summary to the history file.

        Creates the file and parent directories if they don't exist.

        Raises:
            OSError: If the file cannot be written.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open(mode="a", encoding="utf-8") as f:
            f.write(summary.to_json_line() + "\n")
            f.flush()

    def get_history(self, limit: int | None = None) -> list[RunSummary]:
        """Read run summaries, newest first.

        Args:
            limit: Maximum number of summaries to return.
                  If None, returns all summaries.

        Returns:
            List of RunSummary, newest first.
            Returns empty list if the file doesn't exist.
        """
        if not self._path.exists():
            return []

        summaries: list[RunSummary] = []

        with self._path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue

                try:
                    summaries.append(RunSummary.from_json_line(line))
                except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                    logger.warning("Skipping corrupt history line %d: %s", line_num, str(e))
                    continue

        summaries.reverse()

        if limit is not None:
            return summaries[:limit]

        return summaries

    def last(self) -> RunSummary | None:
        """Return the most recent run summary, if any."""
        history = self.get_history(limit=1)
        return history[0] if history else None
