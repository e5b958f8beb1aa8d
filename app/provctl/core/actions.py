"""Mutating actions for desired state items.

An action is the one operation that converges an item: install a
package, write a file, or write a setting. Actions carry no retry or
backup logic; the executor and the reconciler supply those.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import TYPE_CHECKING

from provctl.core.errors import FatalExecutionError
from provctl.core.paths import expand_path
from provctl.models.item import DesiredStateItem, ItemKind
from provctl.operators import get_operator
from provctl.settings import get_setting_backend, parse_setting_key

if TYPE_CHECKING:
    from provctl.core.context import ExecutionContext
    from provctl.models.platform import PackageManagerKind, PlatformInfo
    from provctl.operators.base import Operator
    from provctl.settings.base import SettingBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MutatingAction:
    """One retryable operation.

    Attributes:
        action_id: Identifier used in logs (the item id).
        run: Performs the operation and returns its output text. Raises
            TransientExecutionError or FatalExecutionError on failure;
            other exceptions are classified by the executor.
        description: Short human-readable summary.
    """

    action_id: str
    run: Callable[[], str]
    description: str = ""


def write_file_atomic(path: Path, content: str) -> None:
    """Write text to ``path`` atomically.

    Parent directories are created as needed. The content goes to a
    temporary file in the same directory which then replaces the target,
    so readers never see a partially written file. The permission bits of
    an existing target are kept.

    A symlink at ``path`` is replaced by a regular file; the file it points
    to is left untouched.

    Raises:
        OSError: If the file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            newline="",
            dir=path.parent,
            prefix=f".{path.name}.",
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if path.is_symlink():
            logger.warning(
                "Replacing symlink %s (-> %s) with a regular file", path, os.readlink(path)
            )
        elif path.exists():
            shutil.copymode(path, tmp_path)
        os.replace(str(tmp_path), str(path))
    except OSError:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise


class ActionFactory:
    """Builds the mutating action for a desired state item.

    Operators and setting backends are created on first use for the
    probed platform. Tests may inject their own.
    """

    def __init__(
        self,
        platform: PlatformInfo,
        context: ExecutionContext | None = None,
        operators: dict[PackageManagerKind, Operator] | None = None,
        backends: dict[str, SettingBackend] | None = None,
    ) -> None:
        self.platform = platform
        self._context = context
        self._operators: dict[PackageManagerKind, Operator] = dict(operators or {})
        self._backends: dict[str, SettingBackend] = dict(backends or {})

    def operator(self) -> Operator:
        """Return the operator for the platform's package manager.

        Raises:
            FatalExecutionError: If the platform has no package manager.
        """
        kind = self.platform.package_manager
        if kind is None:
            msg = f"No package manager available on {self.platform.variant.value}"
            raise FatalExecutionError(msg)
        if kind not in self._operators:
            self._operators[kind] = get_operator(kind, self._context)
        return self._operators[kind]

    def backend(self, name: str) -> SettingBackend:
        """Return the setting backend registered under ``name``."""
        if name not in self._backends:
            self._backends[name] = get_setting_backend(name, self._context)
        return self._backends[name]

    def for_item(self, item: DesiredStateItem) -> MutatingAction:
        """Create the action that converges ``item``."""
        if item.kind == ItemKind.PACKAGE:
            return self._package_action(item)
        if item.kind == ItemKind.FILE_CONTENT:
            return self._file_action(item)
        return self._setting_action(item)

    def _package_action(self, item: DesiredStateItem) -> MutatingAction:
        def run() -> str:
            return self.operator().install(item.target, item.desired_value).output

        return MutatingAction(item.id, run, f"install {item.target}")

    def _file_action(self, item: DesiredStateItem) -> MutatingAction:
        def run() -> str:
            if item.content is None:
                msg = f"No content available to write {item.target}"
                raise FatalExecutionError(msg)
            path = expand_path(item.target)
            write_file_atomic(path, item.content)
            logger.debug("Wrote %d characters to %s", len(item.content), path)
            return ""

        return MutatingAction(item.id, run, f"write {item.target}")

    def _setting_action(self, item: DesiredStateItem) -> MutatingAction:
        def run() -> str:
            try:
                backend_name, key = parse_setting_key(item.target)
            except ValueError as e:
                raise FatalExecutionError(str(e)) from e
            value = item.desired_value or ""
            return self.backend(backend_name).write(key, value, item.value_type).output

        return MutatingAction(item.id, run, f"set {item.target}")
