"""Setting backends for reading and writing system preferences.

Setting targets have the form ``<backend>:<key>``:

- ``defaults:<domain>/<key>`` (macOS user defaults)
- ``git:<name>`` (global git configuration)
- ``reg:<registry key>/<value name>`` (Windows registry)
"""

from provctl.core.context import ExecutionContext
from provctl.settings.base import SettingBackend, normalize_value
from provctl.settings.defaults import DefaultsBackend
from provctl.settings.git import GitConfigBackend
from provctl.settings.registry import RegistryBackend

BACKENDS: dict[str, type[SettingBackend]] = {
    "defaults": DefaultsBackend,
    "git": GitConfigBackend,
    "reg": RegistryBackend,
}


def parse_setting_key(target: str) -> tuple[str, str]:
    """Split a setting target into (backend name, key).

    Raises:
        ValueError: If the target has no known backend prefix.
    """
    backend, sep, key = target.partition(":")
    if not sep or not key:
        msg = f"Setting key must have the form '<backend>:<key>', got: {target!r}"
        raise ValueError(msg)
    if backend not in BACKENDS:
        known = ", ".join(sorted(BACKENDS))
        msg = f"Unknown setting backend {backend!r} (known: {known})"
        raise ValueError(msg)
    return backend, key


def get_setting_backend(name: str, context: ExecutionContext | None = None) -> SettingBackend:
    """Create the setting backend registered under ``name``."""
    try:
        return BACKENDS[name](context)
    except KeyError:
        msg = f"Unknown setting backend: {name!r}"
        raise ValueError(msg) from None


__all__ = [
    "BACKENDS",
    "DefaultsBackend",
    "GitConfigBackend",
    "RegistryBackend",
    "SettingBackend",
    "get_setting_backend",
    "normalize_value",
    "parse_setting_key",
]
