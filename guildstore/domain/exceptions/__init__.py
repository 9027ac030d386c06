"""
Domain exceptions package for Guildstore.

Re-exports the guild rule exceptions defined in
`guildstore.modules.shared.exceptions` together with the record errors a
caller of the domain layer can see, so callers have one import location.
"""

from guildstore.core.exceptions import MalformedRecordError, StorageError, StorageWriteError
from guildstore.modules.shared.exceptions import (
    AlreadyMemberError,
    ChunkAlreadyClaimedError,
    ErrorSeverity,
    GuildAlreadyExistsError,
    GuildDomainException,
    GuildNotFoundError,
    InvalidOperationError,
    NoDefaultRankError,
    NotAMemberError,
    NotFoundError,
    RankNotFoundError,
    ValidationError,
    get_error_severity,
    is_transient_error,
    should_alert,
)

__all__ = [
    # Domain exceptions
    "GuildDomainException",
    "NotFoundError",
    "GuildNotFoundError",
    "RankNotFoundError",
    "InvalidOperationError",
    "NotAMemberError",
    "AlreadyMemberError",
    "NoDefaultRankError",
    "GuildAlreadyExistsError",
    "ChunkAlreadyClaimedError",
    "ValidationError",
    # Record errors
    "StorageError",
    "StorageWriteError",
    "MalformedRecordError",
    # Helpers
    "ErrorSeverity",
    "get_error_severity",
    "is_transient_error",
    "should_alert",
]
