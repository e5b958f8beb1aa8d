"""macOS ``defaults`` setting backend.

Keys are written as ``<domain>/<key>``, for example
``com.apple.dock/autohide`` or ``NSGlobalDomain/AppleShowAllExtensions``.
"""

import logging
from pathlib import Path

from provctl.core.errors import InspectionError
from provctl.settings.base import SettingBackend, normalize_value

logger = logging.getLogger(__name__)

GLOBAL_DOMAINS = frozenset({"NSGlobalDomain", "-g", "-globalDomain"})

# defaults write type flags per value type
_TYPE_FLAGS = {
    "string": "-string",
    "bool": "-bool",
    "int": "-int",
    "float": "-float",
}


def split_defaults_key(key: str) -> tuple[str, str]:
    """Split ``<domain>/<key>`` into (domain, key).

    The split happens at the last slash so that domains given as plist
    paths keep working.

    Raises:
        ValueError: If either part is empty.
    """
    domain, _, name = key.rpartition("/")
    if not domain or not name:
        msg = f"defaults key must be '<domain>/<key>', got: {key!r}"
        raise ValueError(msg)
    return domain, name


class DefaultsBackend(SettingBackend):
    """Backend for macOS user defaults."""

    @property
    def name(self) -> str:
        return "defaults"

    @property
    def executable(self) -> str:
        return "defaults"

    def read(self, key: str) -> str | None:
        domain, name = split_defaults_key(key)
        result = self._run_read(["defaults", "read", domain, name])

        if not result.success:
            # "The domain/default pair of (...) does not exist"
            if "does not exist" in result.stderr.lower():
                return None
            msg = f"defaults read failed: {result.output or 'unknown error'}"
            raise InspectionError(msg)

        return result.stdout.rstrip("\n")

    def build_write_command(self, key: str, value: str, value_type: str) -> list[str]:
        domain, name = split_defaults_key(key)
        flag = _TYPE_FLAGS.get(value_type, "-string")
        if value_type == "string":
            written = value
        else:
            written = normalize_value(value, value_type)
        return ["defaults", "write", domain, name, flag, written]

    def backing_file(self, key: str) -> Path | None:
        """Return the preference plist of the key's domain."""
        domain, _ = split_defaults_key(key)
        if domain in GLOBAL_DOMAINS:
            return Path.home() / "Library" / "Preferences" / ".GlobalPreferences.plist"
        if domain.startswith("/"):
            path = Path(domain)
            return path if path.suffix == ".plist" else path.with_name(path.name + ".plist")
        return Path.home() / "Library" / "Preferences" / f"{domain}.plist"
