"""Global git configuration setting backend.

Keys are git config names such as ``user.name`` or ``init.defaultBranch``.
"""

import os
from pathlib import Path

from provctl.core.errors import InspectionError
from provctl.settings.base import SettingBackend, normalize_value

# git config --get exits 1 when the key is not set
_KEY_NOT_SET = 1


class GitConfigBackend(SettingBackend):
    """Backend for ``git config --global``."""

    @property
    def name(self) -> str:
        return "git"

    @property
    def executable(self) -> str:
        return "git"

    def read(self, key: str) -> str | None:
        result = self._run_read(["git", "config", "--global", "--get", key])

        if result.returncode == _KEY_NOT_SET and not result.stderr.strip():
            return None
        if not result.success:
            msg = f"git config failed: {result.output or 'unknown error'}"
            raise InspectionError(msg)

        return result.stdout.rstrip("\n")

    def build_write_command(self, key: str, value: str, value_type: str) -> list[str]:
        written = value if value_type == "string" else normalize_value(value, value_type)
        return ["git", "config", "--global", key, written]

    def backing_file(self, key: str) -> Path | None:
        """Return the global git config file."""
        override = self._context.env.get("GIT_CONFIG_GLOBAL") or os.environ.get(
            "GIT_CONFIG_GLOBAL"
        )
        if override:
            return Path(override).expanduser()
        return Path.home() / ".gitconfig"
