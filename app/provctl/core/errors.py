"""Exception hierarchy for provctl.

Item-level errors (inspection, backup, execution, post-condition) are
caught by the reconciliation loop and recorded in the run report. Only
UnsupportedPlatformError and failures of items marked fatal stop a run.
"""


class ProvctlError(Exception):
    """Base exception for all provctl errors."""

    #: Name used for this error in reports
    kind = "Error"


class UnsupportedPlatformError(ProvctlError):
    """Raised when the host matches none of the known platforms."""

    kind = "UnsupportedPlatform"


class InspectionError(ProvctlError):
    """Raised when the current state of an item cannot be read."""

    kind = "InspectionError"


class BackupError(ProvctlError):
    """Raised when a file cannot be backed up before being overwritten."""

    kind = "BackupFailure"


class ExecutionError(ProvctlError):
    """Raised when a mutating action fails.

    Attributes:
        output: Command output or other diagnostic text, if any.
    """

    kind = "ExecutionFailure"

    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(message)
        self.output = output


class TransientExecutionError(ExecutionError):
    """Raised for failures that may succeed on retry (locks, timeouts)."""

    kind = "TransientExecutionFailure"


class FatalExecutionError(ExecutionError):
    """Raised for failures that retrying cannot fix (permissions, bad input)."""

    kind = "FatalExecutionFailure"


class PostConditionError(ProvctlError):
    """Raised when an action reported success but the state did not converge."""

    kind = "PostConditionFailure"


class CatalogError(ProvctlError):
    """Base exception for catalogue-related errors."""

    kind = "CatalogError"


class CatalogNotFoundError(CatalogError):
    """Raised when the catalogue file is not found."""


class CatalogParseError(CatalogError):
    """Raised when the catalogue file cannot be parsed."""


class CatalogValidationError(CatalogError):
    """Raised when catalogue content is invalid."""


class ConfigError(ProvctlError):
    """Raised when the engine configuration cannot be loaded or saved."""

    kind = "ConfigError"
