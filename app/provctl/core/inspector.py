"""State inspection for desired state items.

This module provides the StateInspector class that reads the current
state of a package, file or setting and decides whether it already
matches the desired state. Inspection never mutates the system.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from provctl.core.errors import InspectionError
from provctl.core.paths import expand_path
from provctl.core.versions import satisfies
from provctl.models.item import DesiredStateItem, ItemKind, normalize_hash
from provctl.models.outcome import InspectionResult
from provctl.scanners import get_scanner
from provctl.settings import get_setting_backend, normalize_value, parse_setting_key

if TYPE_CHECKING:
    from provctl.core.context import ExecutionContext
    from provctl.models.platform import PackageManagerKind, PlatformInfo
    from provctl.scanners.base import Scanner
    from provctl.settings.base import SettingBackend

logger = logging.getLogger(__name__)

# Read files in 64 KiB chunks when hashing
_CHUNK_SIZE = 64 * 1024


def file_hash(path: Path) -> str:
    """Return the ``sha256:<hex>`` hash of a file's content.

    Raises:
        OSError: If the file cannot be read.
    """
    digest = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return "sha256:" + digest.hexdigest()


class StateInspector:
    """Reads current system state for desired state items.

    Every call reads the system afresh; nothing is cached between calls,
    so the post-action inspection sees the effect of the action.

    Scanners and setting backends are created on first use for the
    probed platform. Tests may inject their own.

    Example:
        >>> inspector = StateInspector(platform_info)
        >>> result = inspector.inspect(package_item("git"))
        >>> if not result.satisfied:
        ...     print("git is missing")
    """

    def __init__(
        self,
        platform: PlatformInfo,
        context: ExecutionContext | None = None,
        scanners: dict[PackageManagerKind, Scanner] | None = None,
        backends: dict[str, SettingBackend] | None = None,
    ) -> None:
        """Initialize the inspector.

        Args:
            platform: Probed platform; selects the package scanner.
            context: Execution context passed to scanners and backends.
            scanners: Scanner overrides keyed by package manager.
            backends: Setting backend overrides keyed by backend name.
        """
        self.platform = platform
        self._context = context
        self._scanners: dict[PackageManagerKind, Scanner] = dict(scanners or {})
        self._backends: dict[str, SettingBackend] = dict(backends or {})

    def scanner(self) -> Scanner:
        """Return the scanner for the platform's package manager.

        Raises:
            InspectionError: If the platform has no package manager.
        """
        kind = self.platform.package_manager
        if kind is None:
            msg = f"No package manager available on {self.platform.variant.value}"
            raise InspectionError(msg)
        if kind not in self._scanners:
            self._scanners[kind] = get_scanner(kind, self._context)
        return self._scanners[kind]

    def backend(self, name: str) -> SettingBackend:
        """Return the setting backend registered under ``name``."""
        if name not in self._backends:
            self._backends[name] = get_setting_backend(name, self._context)
        return self._backends[name]

    def backing_file(self, item: DesiredStateItem) -> Path | None:
        """Return the file an action on this item would overwrite, if any.

        Packages have no backing file. Registry settings have none either.
        """
        if item.kind == ItemKind.FILE_CONTENT:
            return expand_path(item.target)
        if item.kind == ItemKind.SETTING:
            backend_name, key = parse_setting_key(item.target)
            return self.backend(backend_name).backing_file(key)
        return None

    def inspect(self, item: DesiredStateItem) -> InspectionResult:
        """Inspect the current state of an item.

        Read failures never raise. They produce an unsatisfied result whose
        current value describes the error.

        Args:
            item: Item to inspect.

        Returns:
            InspectionResult for the item.
        """
        try:
            if item.kind == ItemKind.PACKAGE:
                return self._inspect_package(item)
            if item.kind == ItemKind.FILE_CONTENT:
                return self._inspect_file(item)
            return self._inspect_setting(item)
        except (InspectionError, OSError, ValueError) as e:
            logger.warning("Could not inspect %s: %s", item.id, e)
            return InspectionResult.from_error(e)

    def _inspect_package(self, item: DesiredStateItem) -> InspectionResult:
        installed = self.scanner().query(item.target)
        if installed is None:
            return InspectionResult(satisfied=False)

        ok = satisfies(installed.version, item.desired_value)
        if not ok:
            logger.debug(
                "%s %s does not satisfy %s", item.target, installed.version, item.desired_value
            )
        return InspectionResult(satisfied=ok, current_value=installed.version)

    def _inspect_file(self, item: DesiredStateItem) -> InspectionResult:
        path = expand_path(item.target)
        if not path.exists() and not path.is_symlink():
            return InspectionResult(satisfied=False)
        if path.is_dir():
            msg = f"{path} is a directory"
            raise InspectionError(msg)

        current = file_hash(path)
        desired = normalize_hash(item.desired_value or "")
        return InspectionResult(satisfied=current == desired, current_value=current)

    def _inspect_setting(self, item: DesiredStateItem) -> InspectionResult:
        backend_name, key = parse_setting_key(item.target)
        current = self.backend(backend_name).read(key)
        if current is None:
            return InspectionResult(satisfied=False)

        desired = item.desired_value or ""
        ok = normalize_value(current, item.value_type) == normalize_value(desired, item.value_type)
        return InspectionResult(satisfied=ok, current_value=current)
