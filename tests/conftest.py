"""Pytest configuration and shared fixtures.

This module contains fixtures and in-memory test doubles used across all
test modules. The doubles implement the real Scanner, Operator and
SettingBackend interfaces so that the engine can be exercised without
touching package managers or system preferences.
"""

import logging
import threading
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from provctl.core.actions import ActionFactory
from provctl.core.backup import BackupManager
from provctl.core.context import ExecutionContext
from provctl.core.errors import (
    FatalExecutionError,
    InspectionError,
    TransientExecutionError,
)
from provctl.core.executor import RetryableExecutor
from provctl.core.inspector import StateInspector
from provctl.core.reconcile import Reconciler
from provctl.core.report import ReportGenerator
from provctl.core.state import RunHistory
from provctl.models.package import InstalledPackage
from provctl.models.platform import (
    OperatingSystem,
    PackageManagerKind,
    Platform,
    PlatformInfo,
)
from provctl.operators.base import Operator
from provctl.scanners.base import Scanner
from provctl.settings.base import SettingBackend
from provctl.utils.shell import CommandResult


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME and the XDG directories at a temporary location."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(home / ".local" / "state"))
    return home


@pytest.fixture(autouse=True)
def reset_provctl_logger() -> Iterator[None]:
    """Undo logging setup done by CLI invocations."""
    yield
    logger = logging.getLogger("provctl")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


class FakePackageSystem:
    """Shared in-memory package database."""

    def __init__(self, installed: dict[str, str] | None = None) -> None:
        self.installed: dict[str, str] = dict(installed or {})
        self.install_calls: list[str] = []
        # Failures to raise on install, consumed in order
        self.failures: list[Exception] = []
        # Version written by an install when none is pinned
        self.install_version = "1.0.0"
        # Simulate an install that reports success but changes nothing
        self.ineffective = False


class FakeScanner(Scanner):
    """Scanner reading from a FakePackageSystem."""

    def __init__(self, system: FakePackageSystem, error: str | None = None) -> None:
        super().__init__(ExecutionContext(use_sudo=False, is_root=True))
        self.system = system
        self.error = error
        self.queries = 0

    @property
    def source(self) -> PackageManagerKind:
        return PackageManagerKind.APT

    def is_available(self) -> bool:
        return True

    def query(self, name: str) -> InstalledPackage | None:
        self.queries += 1
        if self.error:
            raise InspectionError(self.error)
        version = self.system.installed.get(name)
        if version is None:
            return None
        return InstalledPackage(name=name, version=version, source=PackageManagerKind.APT)


class FakeOperator(Operator):
    """Operator installing into a FakePackageSystem."""

    def __init__(self, system: FakePackageSystem) -> None:
        super().__init__(ExecutionContext(use_sudo=False, is_root=True))
        self.system = system

    @property
    def source(self) -> PackageManagerKind:
        return PackageManagerKind.APT

    @property
    def executable(self) -> str:
        return "fake-apt"

    def is_available(self) -> bool:
        return True

    def build_install_command(self, name: str, version: str | None = None) -> list[str]:
        return ["fake-apt", "install", name]

    def install(self, name: str, version: str | None = None) -> CommandResult:
        self.system.install_calls.append(name)
        if self.system.failures:
            raise self.system.failures.pop(0)
        if not self.system.ineffective:
            self.system.installed[name] = self.system.install_version
        return CommandResult(stdout=f"installed {name}", stderr="", returncode=0)


class FakeSettingBackend(SettingBackend):
    """Setting backend storing values in memory, optionally backed by a file."""

    def __init__(self, values: dict[str, str] | None = None, backing: Path | None = None) -> None:
        super().__init__(ExecutionContext(use_sudo=False, is_root=True))
        self.values: dict[str, str] = dict(values or {})
        self.backing = backing
        self.writes: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return "git"

    @property
    def executable(self) -> str:
        return "fake-git"

    def is_available(self) -> bool:
        return True

    def read(self, key: str) -> str | None:
        return self.values.get(key)

    def build_write_command(self, key: str, value: str, value_type: str) -> list[str]:
        return ["fake-git", key, value]

    def backing_file(self, key: str) -> Path | None:
        return self.backing

    def write(self, key: str, value: str, value_type: str = "string") -> CommandResult:
        self.writes.append((key, value))
        self.values[key] = value
        if self.backing is not None:
            self.backing.write_text(f"{key} = {value}\n", encoding="utf-8")
        return CommandResult(stdout="", stderr="", returncode=0)


@pytest.fixture
def ubuntu() -> PlatformInfo:
    """Ubuntu platform with APT."""
    return PlatformInfo(
        os=OperatingSystem.LINUX,
        variant=Platform.UBUNTU,
        package_manager=PackageManagerKind.APT,
        version="24.04",
        arch="x86_64",
    )


@pytest.fixture
def packages() -> FakePackageSystem:
    """Empty fake package database."""
    return FakePackageSystem()


@pytest.fixture
def settings_backend() -> FakeSettingBackend:
    """Empty fake git config backend."""
    return FakeSettingBackend()


@pytest.fixture
def transient_error() -> Callable[[str], Exception]:
    """Factory for transient execution errors."""
    return lambda message: TransientExecutionError(message, output="Could not get lock")


@pytest.fixture
def fatal_error() -> Callable[[str], Exception]:
    """Factory for fatal execution errors."""
    return lambda message: FatalExecutionError(message, output="E: Unable to locate package")


@pytest.fixture
def make_reconciler(
    ubuntu: PlatformInfo,
    packages: FakePackageSystem,
    settings_backend: FakeSettingBackend,
    tmp_path: Path,
) -> Callable[..., Reconciler]:
    """Factory building a Reconciler wired to the fakes.

    Keyword arguments override executor settings (max_attempts, dry_run,
    cancel_event), the worker count, or the platform.
    """

    def build(
        max_attempts: int = 3,
        dry_run: bool = False,
        workers: int = 1,
        cancel_event: threading.Event | None = None,
        platform: PlatformInfo | None = None,
        scanner_error: str | None = None,
    ) -> Reconciler:
        info = platform or ubuntu
        scanner = FakeScanner(packages, error=scanner_error)
        operator = FakeOperator(packages)
        inspector = StateInspector(
            info,
            scanners={PackageManagerKind.APT: scanner},
            backends={"git": settings_backend},
        )
        actions = ActionFactory(
            info,
            operators={PackageManagerKind.APT: operator},
            backends={"git": settings_backend},
        )
        executor = RetryableExecutor(
            max_attempts=max_attempts,
            delay=0.0,
            cancel_event=cancel_event,
            dry_run=dry_run,
        )
        reporter = ReportGenerator(
            report_path=tmp_path / "state" / "last-run.txt",
            history=RunHistory(tmp_path / "state" / "runs.jsonl"),
        )
        return Reconciler(
            platform=info,
            inspector=inspector,
            actions=actions,
            executor=executor,
            backups=BackupManager(),
            reporter=reporter,
            workers=workers,
        )

    return build


@pytest.fixture
def fake_scanner(packages: FakePackageSystem) -> FakeScanner:
    """Scanner over the fake package database."""
    return FakeScanner(packages)


@pytest.fixture
def fake_operator(packages: FakePackageSystem) -> FakeOperator:
    """Operator installing into the fake package database."""
    return FakeOperator(packages)
