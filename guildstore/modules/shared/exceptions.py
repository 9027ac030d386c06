"""
Domain exceptions for Guildstore.

Raised by the guild aggregate and the registry when a guild rule is broken
or a named guild/rank does not exist. They are expected outcomes of player
actions, so most default to INFO severity; the host turns them into
player-facing messages.

Two branches let callers react without reading messages:

    NotFoundError           GuildNotFoundError, RankNotFoundError
    InvalidOperationError   NotAMemberError, AlreadyMemberError,
                            NoDefaultRankError, GuildAlreadyExistsError,
                            ChunkAlreadyClaimedError

`ValidationError` covers malformed input (names, player ids, amounts).
"""

from __future__ import annotations

from typing import Any, Optional

from guildstore.core.exceptions import ErrorSeverity, StructuredError


class GuildDomainException(StructuredError):
    """Base for every guild rule violation."""

    DEFAULT_SEVERITY = ErrorSeverity.INFO


# ============================================================================
# NOT FOUND
# ============================================================================


class NotFoundError(GuildDomainException):
    def __init__(self, resource_type: str, identifier: Optional[Any] = None) -> None:
        self.resource_type = resource_type
        self.identifier = identifier
        suffix = "" if identifier is None else f": {identifier}"
        super().__init__(
            f"{resource_type} not found{suffix}",
            details={"resource_type": resource_type, "identifier": identifier},
            error_code=f"{resource_type.upper()}_NOT_FOUND",
        )


class GuildNotFoundError(NotFoundError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__("Guild", name)


class RankNotFoundError(NotFoundError):
    def __init__(self, guild: str, rank: str) -> None:
        self.guild = guild
        self.rank = rank
        super().__init__("Rank", rank)
        self.details["guild"] = guild


# ============================================================================
# PRECONDITION VIOLATIONS
# ============================================================================


class InvalidOperationError(GuildDomainException):
    """
    The guild is not in a state that allows `action`.

    Subclasses replace the generic `INVALID_<ACTION>` code with their own.
    """

    code: Optional[str] = None

    def __init__(self, action: str, reason: str, **details: Any) -> None:
        self.action = action
        self.reason = reason
        super().__init__(
            f"Invalid operation '{action}': {reason}",
            details={"action": action, "reason": reason, **details},
            error_code=self.code or f"INVALID_{action.upper()}",
        )


class NotAMemberError(InvalidOperationError):
    code = "NOT_A_MEMBER"

    def __init__(self, guild: str, player: Any, action: str = "remove_member") -> None:
        self.guild = guild
        self.player = player
        super().__init__(
            action,
            f"player {player} is not a member of guild '{guild}'",
            guild=guild,
            player=str(player),
        )


class AlreadyMemberError(InvalidOperationError):
    code = "ALREADY_MEMBER"

    def __init__(self, guild: str, player: Any, rank: str) -> None:
        self.guild = guild
        self.player = player
        self.rank = rank
        super().__init__(
            "add_member",
            f"player {player} is already in rank '{rank}' of guild '{guild}'",
            guild=guild,
            player=str(player),
            rank=rank,
        )


class NoDefaultRankError(InvalidOperationError):
    """No rank of the guild is flagged as the join rank."""

    code = "NO_DEFAULT_RANK"

    def __init__(self, guild: str) -> None:
        self.guild = guild
        super().__init__("default_rank", f"no default rank configured for guild '{guild}'", guild=guild)


class GuildAlreadyExistsError(InvalidOperationError):
    code = "GUILD_ALREADY_EXISTS"

    def __init__(self, name: str, action: str = "create_guild") -> None:
        self.name = name
        super().__init__(action, f"guild name '{name}' is already taken", name=name)


class ChunkAlreadyClaimedError(InvalidOperationError):
    code = "CHUNK_ALREADY_CLAIMED"

    def __init__(self, guild: str, chunk: Any) -> None:
        self.guild = guild
        self.chunk = chunk
        super().__init__(
            "claim_chunk",
            f"guild '{guild}' already claims {chunk}",
            guild=guild,
            chunk=str(chunk),
        )


# ============================================================================
# INPUT
# ============================================================================


class ValidationError(GuildDomainException):
    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.validation_message = message
        super().__init__(
            f"Validation error for {field}: {message}",
            details={"field": field, "validation_message": message},
            error_code=f"VALIDATION_{field.upper()}",
        )


# ============================================================================
# CLASSIFICATION
# ============================================================================
# Plain exceptions are treated as unexpected: not retryable, ERROR severity.


def is_transient_error(exc: Exception) -> bool:
    return isinstance(exc, StructuredError) and exc.is_retryable


def get_error_severity(exc: Exception) -> ErrorSeverity:
    if isinstance(exc, StructuredError):
        return exc.severity
    return ErrorSeverity.ERROR


def should_alert(exc: Exception) -> bool:
    """True for ERROR and CRITICAL severities."""
    return get_error_severity(exc) in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
