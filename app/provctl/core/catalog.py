"""Catalogue file I/O operations.

This module provides functions for loading and saving catalogue files in
TOML format with validation using Pydantic models, and for turning a
catalogue into the desired state items of a run.
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

import tomli_w
from pydantic import ValidationError

from provctl.core.errors import (
    CatalogError,
    CatalogNotFoundError,
    CatalogParseError,
    CatalogValidationError,
)
from provctl.core.paths import expand_path, get_catalog_path
from provctl.core.reconcile import check_unique_ids
from provctl.models.catalog import (
    Catalog,
    CatalogEntry,
    CatalogMeta,
    FileSpec,
    PackageSpec,
    SettingSpec,
)
from provctl.models.item import DesiredStateItem, file_item, package_item, setting_item
from provctl.models.platform import Platform, PlatformInfo

_EXPLORER_ADVANCED = "HKCU\\Software\\Microsoft\\Windows\\CurrentVersion\\Explorer\\Advanced"


def load_catalog(path: Path | None = None) -> Catalog:
    """Load and validate a catalogue from a TOML file.

    Args:
        path: Path to the catalogue file. If None, uses default catalogue path.

    Returns:
        Validated Catalog object.

    Raises:
        CatalogNotFoundError: If the catalogue file doesn't exist.
        CatalogParseError: If the TOML syntax is invalid.
        CatalogValidationError: If the content doesn't match the schema.
    """
    catalog_path = path or get_catalog_path()

    if not catalog_path.exists():
        raise CatalogNotFoundError(f"Catalogue not found: {catalog_path}")

    try:
        with open(catalog_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise CatalogParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise CatalogError(f"Failed to read catalogue: {e}") from e

    try:
        return Catalog.model_validate(data)
    except ValidationError as e:
        raise CatalogValidationError(f"Invalid catalogue content: {e}") from e


def save_catalog(catalog: Catalog, path: Path | None = None) -> Path:
    """Save a catalogue to a TOML file.

    The file is written atomically by first writing to a temporary file
    in the same directory and then using os.replace() for atomic rename.

    Args:
        catalog: The Catalog object to save.
        path: Path to save the catalogue. If None, uses default catalogue path.

    Returns:
        Path where the catalogue was saved.

    Raises:
        CatalogError: If the file cannot be written.
    """
    catalog_path = path or get_catalog_path()

    # Ensure parent directory exists
    catalog_path.parent.mkdir(parents=True, exist_ok=True)

    data = _catalog_to_dict(catalog)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=catalog_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(catalog_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise CatalogError(f"Failed to write catalogue: {e}") from e

    return catalog_path


def _catalog_to_dict(catalog: Catalog) -> dict[str, Any]:
    """Convert a Catalog to a dictionary for TOML serialization.

    None values and empty platform lists are dropped; TOML has no null.
    """

    def clean(model: Any) -> dict[str, Any]:
        return {
            key: value
            for key, value in model.model_dump(exclude_none=True).items()
            if value != []
        }

    result: dict[str, Any] = {"meta": clean(catalog.meta)}
    if catalog.items:
        result["items"] = [clean(entry) for entry in catalog.items]
    return result


def _scope(platforms: list[str]) -> frozenset[Platform]:
    return frozenset(Platform(p) for p in platforms)


def _file_content(spec: FileSpec, base_dir: Path) -> str:
    if spec.content is not None:
        return spec.content

    source = expand_path(spec.source or "")
    if not source.is_absolute():
        source = base_dir / source
    try:
        return source.read_text(encoding="utf-8")
    except OSError as e:
        raise CatalogError(f"Cannot read template for {spec.path}: {e}") from e


def _entry_to_item(entry: CatalogEntry, base_dir: Path) -> DesiredStateItem:
    if isinstance(entry, PackageSpec):
        return package_item(
            entry.name,
            version=entry.version,
            platforms=_scope(entry.platforms),
            fatal_if_missing=entry.fatal,
            description=entry.description,
        )
    if isinstance(entry, FileSpec):
        return file_item(
            entry.path,
            _file_content(entry, base_dir),
            platforms=_scope(entry.platforms),
            description=entry.description,
        )
    return setting_item(
        entry.key,
        entry.value,
        value_type=entry.type,
        platforms=_scope(entry.platforms),
        description=entry.description,
    )


def catalog_to_items(catalog: Catalog, base_dir: Path) -> list[DesiredStateItem]:
    """Convert a catalogue into desired state items.

    Items keep the declaration order of the catalogue entries.

    Args:
        catalog: Validated catalogue.
        base_dir: Directory that relative file sources are resolved against.

    Returns:
        List of items with unique ids.

    Raises:
        CatalogError: If a file template cannot be read.
        CatalogValidationError: If an entry is invalid or ids are duplicated.
    """
    try:
        items = [_entry_to_item(entry, base_dir) for entry in catalog.items]
        check_unique_ids(items)
    except ValueError as e:
        raise CatalogValidationError(str(e)) from e

    return items


def starter_catalog(platform: PlatformInfo) -> Catalog:
    """Create a small starter catalogue for a platform.

    Args:
        platform: Probed platform; decides which entries are included.

    Returns:
        Catalog with a few common tools, a dotfile and some settings.
    """
    variant = platform.variant.value
    items: list[CatalogEntry] = [
        PackageSpec(name="git", fatal=True, description="Version control"),
        PackageSpec(name="curl", platforms=["macos", "ubuntu", "wsl"]),
        PackageSpec(name="tmux", platforms=["macos", "ubuntu", "wsl"]),
        PackageSpec(name="ripgrep", description="Fast recursive search"),
        FileSpec(
            path="~/.hushlogin",
            content="",
            platforms=["macos", "ubuntu", "wsl"],
            description="Silence the login banner",
        ),
        SettingSpec(key="git:init.defaultBranch", value="main"),
        SettingSpec(key="git:pull.rebase", value="true", type="bool"),
    ]
    if variant == Platform.MACOS.value:
        items.extend(
            [
                SettingSpec(
                    key="defaults:NSGlobalDomain/AppleShowAllExtensions",
                    value="true",
                    type="bool",
                    platforms=["macos"],
                ),
                SettingSpec(
                    key="defaults:com.apple.dock/autohide",
                    value="true",
                    type="bool",
                    platforms=["macos"],
                ),
            ]
        )
    if variant == Platform.WINDOWS.value:
        items.append(
            SettingSpec(
                key=f"reg:{_EXPLORER_ADVANCED}/HideFileExt",
                value="0",
                type="int",
                platforms=["windows"],
            )
        )

    return Catalog(
        meta=CatalogMeta(name=f"{variant}-workstation", description="Starter catalogue"),
        items=items,
    )
