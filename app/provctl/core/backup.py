"""Backups of files about to be overwritten.

Backups are timestamped copies placed next to the original. They are
never overwritten and never deleted by provctl.
"""

import logging
import shutil
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from provctl.core.errors import BackupError
from provctl.models.outcome import BackupRecord

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".backup."

# UTC timestamp format used in backup names
TIMESTAMP_FORMAT = "%Y%m%dT%H%M%SZ"


def _utc_now() -> datetime:
    return datetime.now(UTC)


def backup_path_for(path: Path, when: datetime) -> Path:
    """Return the first unused backup name for ``path`` at ``when``.

    Two backups within the same second get ``.1``, ``.2`` ... suffixes.
    """
    base = path.with_name(f"{path.name}{BACKUP_SUFFIX}{when.strftime(TIMESTAMP_FORMAT)}")
    candidate = base
    counter = 0
    while candidate.exists() or candidate.is_symlink():
        counter += 1
        candidate = base.with_name(f"{base.name}.{counter}")
    return candidate


class BackupManager:
    """Copies files aside before they are overwritten.

    Only regular files are backed up. Missing paths, directories and
    symlinks yield no backup. A failed copy raises BackupError, and the
    caller must not overwrite the original.

    Example:
        >>> manager = BackupManager()
        >>> record = manager.backup(Path.home() / ".bashrc")
        >>> if record:
        ...     print(f"Saved to {record.backup_path}")
    """

    def __init__(self, clock: Callable[[], datetime] = _utc_now) -> None:
        """Initialize the backup manager.

        Args:
            clock: Returns the current UTC time; injectable for tests.
        """
        self._clock = clock

    def backup(self, path: Path) -> BackupRecord | None:
        """Back up a file if it exists.

        Args:
            path: File about to be overwritten.

        Returns:
            BackupRecord of the copy, or None if there was nothing to copy.

        Raises:
            BackupError: If the copy could not be made.
        """
        if path.is_symlink() or not path.is_file():
            return None

        now = self._clock()
        target = backup_path_for(path, now)
        try:
            shutil.copy2(path, target)
        except OSError as e:
            msg = f"Could not back up {path}: {e}"
            raise BackupError(msg) from e

        logger.info("Backed up %s to %s", path, target)
        return BackupRecord(
            original_path=str(path),
            backup_path=str(target),
            created_at=now.isoformat(timespec="seconds"),
        )
