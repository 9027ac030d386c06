"""
Infrastructure exceptions for Guildstore.

Two families of errors share one shape, `StructuredError`:

- infrastructure errors (this module): the record store could not read,
  write or list records, or a stored record does not parse;
- domain errors (`guildstore.modules.shared.exceptions`): a guild rule was
  violated or a guild/rank does not exist.

Every structured error carries `message`, `details` (a dict safe to log as
`extra`), `severity`, `is_retryable` and a stable `error_code`. Subclasses
set `DEFAULT_SEVERITY` / `DEFAULT_RETRYABLE` rather than passing them on
every raise.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

PathLike = Union[str, Path]


class ErrorSeverity(Enum):
    """How loudly a failure should be reported."""

    DEBUG = "debug"
    INFO = "info"  # caller mistake, nothing to fix on our side
    WARNING = "warning"  # handled, e.g. a skipped record
    ERROR = "error"
    CRITICAL = "critical"  # storage unusable


class StructuredError(Exception):
    """Common base for both exception families."""

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})
        self.severity = severity or self.DEFAULT_SEVERITY
        self.is_retryable = self.DEFAULT_RETRYABLE if is_retryable is None else is_retryable
        self.error_code = error_code or type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        if not self.details:
            return f"[{self.error_code}] {self.message}"
        return f"[{self.error_code}] {self.message} | Details: {self.details}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, error_code={self.error_code!r})"


class GuildStoreInfrastructureException(StructuredError):
    """Base for failures of the storage layer rather than of guild rules."""


# ============================================================================
# Record storage
# ============================================================================


class StorageError(GuildStoreInfrastructureException):
    """
    A record store operation failed.

    Attributes `operation`, `record`, `path` and `original_error` are kept
    for callers; the same values are mirrored into `details`.
    """

    def __init__(
        self,
        operation: str,
        record: Optional[str],
        path: Optional[PathLike] = None,
        original_error: Optional[BaseException] = None,
        message: Optional[str] = None,
        error_code: str = "STORAGE_ERROR",
    ) -> None:
        self.operation = operation
        self.record = record
        self.path = None if path is None else str(path)
        self.original_error = original_error

        details: Dict[str, Any] = {"operation": operation, "record": record, "path": self.path}
        if original_error is not None:
            details["error"] = str(original_error)
            details["error_type"] = type(original_error).__name__

        if message is None:
            cause = original_error if original_error is not None else "unknown failure"
            message = f"Storage {operation} failed for record '{record}': {cause}"
        super().__init__(message, details=details, error_code=error_code)


class StorageWriteError(StorageError):
    """A record could not be written or deleted; the guild was rolled back first."""

    DEFAULT_RETRYABLE = True

    def __init__(
        self,
        operation: str,
        record: Optional[str],
        path: Optional[PathLike] = None,
        original_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(operation, record, path, original_error, error_code="STORAGE_WRITE_FAILED")


class StorageUnavailableError(StorageError):
    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, path: PathLike, original_error: Optional[BaseException] = None) -> None:
        cause = original_error if original_error is not None else "not a directory"
        super().__init__(
            "list",
            None,
            path,
            original_error,
            message=f"Guild storage unavailable at {path}: {cause}",
            error_code="STORAGE_UNAVAILABLE",
        )


class RecordNotFoundError(StorageError):
    DEFAULT_SEVERITY = ErrorSeverity.INFO

    def __init__(self, record: str, path: Optional[PathLike] = None) -> None:
        super().__init__(
            "load",
            record,
            path,
            message=f"No record stored for '{record}'",
            error_code="RECORD_NOT_FOUND",
        )


class MalformedRecordError(GuildStoreInfrastructureException):
    """
    A stored record exists but cannot be turned into a guild.

    `field` is the dotted path of the offending value, for example
    `ranks.member.members[2]`, or `<document>` when the file itself is bad.
    """

    DEFAULT_SEVERITY = ErrorSeverity.WARNING

    def __init__(self, record: str, field: str, reason: str) -> None:
        self.record = record
        self.field = field
        self.reason = reason
        super().__init__(
            f"Malformed record '{record}' at '{field}': {reason}",
            details={"record": record, "field": field, "reason": reason},
            error_code="MALFORMED_RECORD",
        )
