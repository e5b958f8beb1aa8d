"""Catalogue models for declarative provisioning input.

This module defines the Pydantic models representing the catalog.toml
structure that lists the packages, files and settings a workstation
should have. Entries form a single ordered list; each one names its
``kind`` so that a file can be declared before the package that needs it.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Type alias for platform names in the catalogue
PlatformName = Literal["macos", "ubuntu", "wsl", "windows"]

# Type alias for setting value types
SettingValueType = Literal["string", "bool", "int", "float"]


class CatalogMeta(BaseModel):
    """Metadata section of the catalogue.

    Attributes:
        version: Catalogue schema version.
        name: Optional name of the workstation profile.
        description: Optional description of the profile.
    """

    model_config = ConfigDict(extra="forbid")

    version: Annotated[str, Field(description="Catalogue schema version")] = "1.0"
    name: Annotated[str | None, Field(description="Profile name")] = None
    description: Annotated[str | None, Field(description="Profile description")] = None


class PackageSpec(BaseModel):
    """A package that should be installed.

    Attributes:
        name: Package name as known to the platform package manager.
        version: Optional version constraint (e.g. ">=2.30").
        platforms: Platforms the package applies to. Empty means all.
        fatal: Abort the remaining run if this package cannot be installed.
        description: Optional note shown in reports.
    """

    model_config = ConfigDict(extra="forbid")

    kind: Literal["package"] = "package"
    name: Annotated[str, Field(min_length=1, description="Package name")]
    version: Annotated[str | None, Field(description="Version constraint")] = None
    platforms: Annotated[
        list[PlatformName],
        Field(default_factory=list, description="Platforms this package applies to"),
    ]
    fatal: Annotated[bool, Field(description="Abort the run if this item fails")] = False
    description: Annotated[str | None, Field(description="Description")] = None


class FileSpec(BaseModel):
    """A file whose content should match a template.

    Exactly one of ``content`` or ``source`` must be given. ``source`` is
    resolved relative to the catalogue file.

    Attributes:
        path: Target path; ``~`` is expanded against the user's home.
        content: Inline file content.
        source: Template file providing the content.
        platforms: Platforms the file applies to. Empty means all.
        description: Optional note shown in reports.
    """

    model_config = ConfigDict(extra="forbid")

    kind: Literal["file"] = "file"
    path: Annotated[str, Field(min_length=1, description="Target file path")]
    content: Annotated[str | None, Field(description="Inline content")] = None
    source: Annotated[str | None, Field(description="Template file")] = None
    platforms: Annotated[
        list[PlatformName],
        Field(default_factory=list, description="Platforms this file applies to"),
    ]
    description: Annotated[str | None, Field(description="Description")] = None

    @model_validator(mode="after")
    def validate_content_source(self) -> FileSpec:
        """Validate that exactly one content provider is given."""
        if (self.content is None) == (self.source is None):
            msg = f"File {self.path}: exactly one of 'content' or 'source' is required"
            raise ValueError(msg)
        return self


class SettingSpec(BaseModel):
    """A setting that should have a specific value.

    Attributes:
        key: Backend-qualified key, e.g. ``defaults:com.apple.dock/autohide``,
            ``git:core.editor`` or ``reg:HKCU\\Console/QuickEdit``.
        value: Desired value as text.
        type: Value type used for comparison and writing.
        platforms: Platforms the setting applies to. Empty means all.
        description: Optional note shown in reports.
    """

    model_config = ConfigDict(extra="forbid")

    kind: Literal["setting"] = "setting"
    key: Annotated[str, Field(min_length=3, description="Backend-qualified setting key")]
    value: Annotated[str, Field(description="Desired value")]
    type: Annotated[SettingValueType, Field(description="Value type")] = "string"
    platforms: Annotated[
        list[PlatformName],
        Field(default_factory=list, description="Platforms this setting applies to"),
    ]
    description: Annotated[str | None, Field(description="Description")] = None

    @model_validator(mode="after")
    def validate_key(self) -> SettingSpec:
        """Validate that the key names a backend."""
        backend, sep, rest = self.key.partition(":")
        if not sep or not backend or not rest:
            msg = f"Setting key '{self.key}' must look like '<backend>:<key>'"
            raise ValueError(msg)
        return self


# One catalogue entry, selected by its ``kind`` key
CatalogEntry = Annotated[PackageSpec | FileSpec | SettingSpec, Field(discriminator="kind")]


class Catalog(BaseModel):
    """Complete catalogue of desired workstation state.

    Entries are processed in the order they are declared, so prerequisites
    (an apt sources file, a tap) must come before what depends on them.

    Attributes:
        meta: Catalogue metadata.
        items: Packages, files and settings in processing order.
    """

    model_config = ConfigDict(extra="forbid")

    meta: Annotated[CatalogMeta, Field(default_factory=CatalogMeta, description="Metadata")]
    items: Annotated[
        list[CatalogEntry],
        Field(default_factory=list, description="Entries in processing order"),
    ]

    @property
    def packages(self) -> list[PackageSpec]:
        """Package entries, in declaration order."""
        return [e for e in self.items if isinstance(e, PackageSpec)]

    @property
    def files(self) -> list[FileSpec]:
        """File entries, in declaration order."""
        return [e for e in self.items if isinstance(e, FileSpec)]

    @property
    def settings(self) -> list[SettingSpec]:
        """Setting entries, in declaration order."""
        return [e for e in self.items if isinstance(e, SettingSpec)]

    @property
    def item_count(self) -> int:
        """Total number of entries in the catalogue."""
        return len(self.items)
