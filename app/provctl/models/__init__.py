"""Data models for provctl.

This module exports the core data structures used throughout the application.
"""

from provctl.models.item import (
    DesiredStateItem,
    ItemKind,
    content_hash,
    file_item,
    package_item,
    setting_item,
)
from provctl.models.outcome import (
    ActionOutcome,
    BackupRecord,
    InspectionResult,
    OutcomeStatus,
)
from provctl.models.platform import (
    OperatingSystem,
    PackageManagerKind,
    Platform,
    PlatformInfo,
)
from provctl.models.report import RunReport, RunSummary

__all__ = [
    "ActionOutcome",
    "BackupRecord",
    "DesiredStateItem",
    "InspectionResult",
    "ItemKind",
    "OperatingSystem",
    "OutcomeStatus",
    "PackageManagerKind",
    "Platform",
    "PlatformInfo",
    "RunReport",
    "RunSummary",
    "content_hash",
    "file_item",
    "package_item",
    "setting_item",
]
