"""Desired state item models.

A desired state item is the unit of work of a provisioning run: one
package that should be installed, one file that should hold specific
content, or one system setting that should have a specific value.
"""

import hashlib
from dataclasses import dataclass, field
from enum import Enum

from provctl.models.platform import Platform

HASH_PREFIX = "sha256:"

SETTING_VALUE_TYPES = ("string", "bool", "int", "float")


class ItemKind(str, Enum):
    """Kind of desired state item.

    Attributes:
        PACKAGE: A package installed through the platform package manager.
        FILE_CONTENT: A file whose content must match a known hash.
        SETTING: A system or user preference read back through a native tool.
    """

    PACKAGE = "package"
    FILE_CONTENT = "file"
    SETTING = "setting"


def content_hash(content: str | bytes) -> str:
    """Return the content hash used for file items.

    Args:
        content: File content as text (encoded as UTF-8) or raw bytes.

    Returns:
        Hash string in ``sha256:<hex>`` form.
    """
    data = content.encode("utf-8") if isinstance(content, str) else content
    return HASH_PREFIX + hashlib.sha256(data).hexdigest()


def normalize_hash(value: str) -> str:
    """Normalize a hash string to ``sha256:<lowercase hex>`` form."""
    value = value.strip().lower()
    if value.startswith(HASH_PREFIX):
        return value
    return HASH_PREFIX + value


@dataclass(frozen=True, slots=True)
class DesiredStateItem:
    """Declarative description of one piece of desired system state.

    Attributes:
        id: Stable identifier, unique within a run (e.g. "package:git").
        kind: Item kind (package, file content, or setting).
        target: Package name, file path, or setting key.
        desired_value: Version constraint (packages, optional), content
            hash (files), or expected value (settings).
        platform_scope: Platforms the item applies to. Empty means all.
        content: Text written by the file action. Its hash must equal
            desired_value when both are given.
        value_type: Type used to compare and write setting values.
        fatal_if_missing: Abort the remaining run if this item fails.
        description: Optional human-readable note.
    """

    id: str
    kind: ItemKind
    target: str
    desired_value: str | None = None
    platform_scope: frozenset[Platform] = field(default_factory=frozenset)
    content: str | None = None
    value_type: str = "string"
    fatal_if_missing: bool = False
    description: str | None = None

    def __post_init__(self) -> None:
        """Validate item data after initialization."""
        if not self.id:
            msg = "Item id cannot be empty"
            raise ValueError(msg)
        if not self.target:
            msg = f"Item {self.id}: target cannot be empty"
            raise ValueError(msg)
        if self.value_type not in SETTING_VALUE_TYPES:
            msg = f"Item {self.id}: unsupported value type '{self.value_type}'"
            raise ValueError(msg)
        if self.kind == ItemKind.FILE_CONTENT:
            if self.desired_value is None and self.content is None:
                msg = f"Item {self.id}: file items need content or a content hash"
                raise ValueError(msg)
            if self.content is not None:
                expected = content_hash(self.content)
                if self.desired_value is None:
                    object.__setattr__(self, "desired_value", expected)
                elif normalize_hash(self.desired_value) != expected:
                    msg = f"Item {self.id}: content does not match the declared hash"
                    raise ValueError(msg)
        if self.kind == ItemKind.SETTING and self.desired_value is None:
            msg = f"Item {self.id}: setting items need a desired value"
            raise ValueError(msg)

    def applies_to(self, platform: Platform) -> bool:
        """Check if this item is in scope for a platform."""
        return not self.platform_scope or platform in self.platform_scope

    @property
    def is_package(self) -> bool:
        """Check if this is a package item."""
        return self.kind == ItemKind.PACKAGE

    @property
    def is_file(self) -> bool:
        """Check if this is a file content item."""
        return self.kind == ItemKind.FILE_CONTENT

    @property
    def is_setting(self) -> bool:
        """Check if this is a setting item."""
        return self.kind == ItemKind.SETTING


def package_item(
    name: str,
    version: str | None = None,
    platforms: frozenset[Platform] | None = None,
    fatal_if_missing: bool = False,
    description: str | None = None,
) -> DesiredStateItem:
    """Create a package item with the conventional ``package:<name>`` id."""
    return DesiredStateItem(
        id=f"package:{name}",
        kind=ItemKind.PACKAGE,
        target=name,
        desired_value=version,
        platform_scope=platforms or frozenset(),
        fatal_if_missing=fatal_if_missing,
        description=description,
    )


def file_item(
    path: str,
    content: str,
    platforms: frozenset[Platform] | None = None,
    description: str | None = None,
) -> DesiredStateItem:
    """Create a file content item with the conventional ``file:<path>`` id."""
    return DesiredStateItem(
        id=f"file:{path}",
        kind=ItemKind.FILE_CONTENT,
        target=path,
        content=content,
        platform_scope=platforms or frozenset(),
        description=description,
    )


def setting_item(
    key: str,
    value: str,
    value_type: str = "string",
    platforms: frozenset[Platform] | None = None,
    description: str | None = None,
) -> DesiredStateItem:
    """Create a setting item with the conventional ``setting:<key>`` id."""
    return DesiredStateItem(
        id=f"setting:{key}",
        kind=ItemKind.SETTING,
        target=key,
        desired_value=value,
        value_type=value_type,
        platform_scope=platforms or frozenset(),
        description=description,
    )
