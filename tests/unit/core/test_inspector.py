"""Unit tests for StateInspector."""

from pathlib import Path
from typing import Any

import pytest
from provctl.core.context import ExecutionContext
from provctl.core.errors import InspectionError
from provctl.core.inspector import StateInspector, file_hash
from provctl.models.item import (
    DesiredStateItem,
    ItemKind,
    content_hash,
    file_item,
    package_item,
    setting_item,
)
from provctl.models.package import InstalledPackage
from provctl.models.platform import OperatingSystem, PackageManagerKind, Platform, PlatformInfo
from provctl.scanners.base import Scanner


class FakeFailingScanner(Scanner):
    """Scanner whose package manager cannot be queried."""

    @property
    def source(self) -> PackageManagerKind:
        return PackageManagerKind.APT

    def is_available(self) -> bool:
        return True

    def query(self, name: str) -> InstalledPackage | None:
        raise InspectionError("dpkg-query failed")


@pytest.fixture
def inspector(ubuntu: PlatformInfo, fake_scanner: Any, settings_backend: Any) -> StateInspector:
    """Inspector wired to the fake scanner and git backend."""
    return StateInspector(
        ubuntu,
        scanners={PackageManagerKind.APT: fake_scanner},
        backends={"git": settings_backend},
    )


class TestPackages:
    """Package inspection."""

    def test_missing(self, inspector: StateInspector) -> None:
        """Absent packages are unsatisfied without a current value."""
        result = inspector.inspect(package_item("git"))
        assert not result.satisfied
        assert result.current_value is None

    def test_installed_any_version(self, inspector: StateInspector, packages: Any) -> None:
        """Without a constraint any installed version satisfies."""
        packages.installed["git"] = "1:2.43.0-1ubuntu7"

        result = inspector.inspect(package_item("git"))

        assert result.satisfied
        assert result.current_value == "1:2.43.0-1ubuntu7"

    def test_version_too_old(self, inspector: StateInspector, packages: Any) -> None:
        """An installed version outside the constraint is unsatisfied."""
        packages.installed["git"] = "2.25.1"

        result = inspector.inspect(package_item("git", version=">=2.30"))

        assert not result.satisfied
        assert result.current_value == "2.25.1"

    def test_scanner_error_is_captured(self, ubuntu: PlatformInfo, packages: Any) -> None:
        """Read failures produce an unsatisfied error result instead of raising."""
        scanner = FakeFailingScanner()
        inspector = StateInspector(ubuntu, scanners={PackageManagerKind.APT: scanner})
        result = inspector.inspect(package_item("git"))

        assert not result.satisfied
        assert result.is_error
        assert "dpkg-query failed" in (result.current_value or "")

    def test_no_package_manager(self) -> None:
        """A platform without a package manager cannot be inspected."""
        platform = PlatformInfo(
            os=OperatingSystem.WINDOWS, variant=Platform.WINDOWS, package_manager=None
        )
        result = StateInspector(platform).inspect(package_item("git"))

        assert result.is_error


class TestFiles:
    """File content inspection."""

    def test_matching_content(self, inspector: StateInspector, isolated_dirs: Path) -> None:
        """Files whose hash matches are satisfied."""
        (isolated_dirs / ".vimrc").write_text("set nu\n", encoding="utf-8")

        result = inspector.inspect(file_item("~/.vimrc", "set nu\n"))

        assert result.satisfied
        assert result.current_value == content_hash("set nu\n")

    def test_different_content(self, inspector: StateInspector, isolated_dirs: Path) -> None:
        """Files with other content are unsatisfied and report their hash."""
        (isolated_dirs / ".vimrc").write_text("old\n", encoding="utf-8")

        result = inspector.inspect(file_item("~/.vimrc", "set nu\n"))

        assert not result.satisfied
        assert result.current_value == content_hash("old\n")

    def test_missing_file(self, inspector: StateInspector) -> None:
        """Missing files are unsatisfied."""
        assert not inspector.inspect(file_item("~/.absent", "x")).satisfied

    def test_uppercase_hash(self, inspector: StateInspector, isolated_dirs: Path) -> None:
        """Declared hashes are compared case-insensitively."""
        (isolated_dirs / "f").write_text("x", encoding="utf-8")
        item = DesiredStateItem(
            id="file:f",
            kind=ItemKind.FILE_CONTENT,
            target="~/f",
            desired_value=content_hash("x").upper().replace("SHA256:", ""),
        )

        assert inspector.inspect(item).satisfied

    def test_directory_is_an_error(self, inspector: StateInspector, isolated_dirs: Path) -> None:
        """A directory in place of the file is reported as an error."""
        (isolated_dirs / "dir").mkdir()

        result = inspector.inspect(file_item("~/dir", "x"))

        assert result.is_error

    def test_file_hash(self, tmp_path: Path) -> None:
        """file_hash agrees with content_hash."""
        path = tmp_path / "data"
        path.write_bytes(b"\x00\x01" * 100_000)
        assert file_hash(path) == content_hash(b"\x00\x01" * 100_000)


class TestSettings:
    """Setting inspection."""

    def test_matching_value(self, inspector: StateInspector, settings_backend: Any) -> None:
        """Equal values are satisfied."""
        settings_backend.values["init.defaultBranch"] = "main"

        result = inspector.inspect(setting_item("git:init.defaultBranch", "main"))

        assert result.satisfied
        assert result.current_value == "main"

    def test_bool_normalization(self, inspector: StateInspector, settings_backend: Any) -> None:
        """Bool settings compare by meaning, not spelling."""
        settings_backend.values["pull.rebase"] = "1"

        assert inspector.inspect(setting_item("git:pull.rebase", "true", "bool")).satisfied

    def test_unset_value(self, inspector: StateInspector) -> None:
        """Unset settings are unsatisfied."""
        result = inspector.inspect(setting_item("git:user.name", "Ada"))
        assert not result.satisfied
        assert result.current_value is None

    def test_unknown_backend(self, inspector: StateInspector) -> None:
        """Keys with an unknown backend prefix are errors."""
        assert inspector.inspect(setting_item("nope:key", "x")).is_error

    def test_backing_file(
        self, ubuntu: PlatformInfo, isolated_dirs: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Backing files come from the item kind and the backend."""
        monkeypatch.delenv("GIT_CONFIG_GLOBAL", raising=False)
        inspector = StateInspector(ubuntu, ExecutionContext(use_sudo=False, is_root=True))

        assert inspector.backing_file(package_item("git")) is None
        assert inspector.backing_file(file_item("~/.vimrc", "x")) == isolated_dirs / ".vimrc"
        assert (
            inspector.backing_file(setting_item("git:user.name", "Ada"))
            == isolated_dirs / ".gitconfig"
        )
