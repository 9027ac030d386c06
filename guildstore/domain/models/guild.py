"""
Guild Domain Model for Guildstore.

Purpose
-------
Rich domain model for one guild: its leader, display prefix, balance, ranked
membership with permissions, and claimed chunks. Every mutation is written
through to the guild's record before the method returns.

Responsibilities
----------------
- Parse a stored record into a guild, reporting malformed fields by name
- Enforce membership rules (one rank per player, explicit default rank)
- Serialize the full guild state back to its record after every mutation
- Roll back in-memory state when a record write fails
- Emit domain events for every successful mutation

Non-Responsibilities
--------------------
- Name uniqueness across loaded guilds (handled by the registry)
- Claim arbitration between guilds (handled by the registry)
- Record file format (handled by the record store)

Concurrency
-----------
Each guild owns a re-entrant lock. Every read-modify-write of a guild runs
under it, so two callers mutating the same guild cannot interleave.

Usage Example
-------------
>>> guild = Guild.load("Alpha", store)
>>> guild.set_default_rank("member")
>>> guild.add_member(player_id)
>>> guild.get_rank(player_id)
'member'
>>> guild.deposit(250.0)
>>> [event.event_name for event in guild.get_pending_events()]
['guild.default_rank_changed', 'guild.member_added', 'guild.deposited']
"""

from __future__ import annotations

import math
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from fractions import Fraction
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from guildstore.core.exceptions import MalformedRecordError, RecordNotFoundError, StorageWriteError
from guildstore.core.logging.logger import LogContext, get_logger
from guildstore.core.storage.record_store import Record, RecordStore
from guildstore.core.validation.input_validator import InputValidator
from guildstore.domain.models.base import AggregateRoot
from guildstore.domain.models.chunk import ChunkRef, decode_chunk, encode_chunks
from guildstore.modules.shared.exceptions import (
    AlreadyMemberError,
    ChunkAlreadyClaimedError,
    GuildAlreadyExistsError,
    GuildNotFoundError,
    InvalidOperationError,
    NoDefaultRankError,
    NotAMemberError,
    RankNotFoundError,
    ValidationError,
)
from guildstore.utils.colors import translate_color_codes

logger = get_logger(__name__)

PlayerId = Union[uuid.UUID, str]
Amount = Union[int, float, Fraction]

SEED_RANKS: Tuple[str, ...] = ("member", "officer")


@dataclass
class Rank:
    """Membership tier held inside a guild. Never handed out to callers."""

    members: List[uuid.UUID] = field(default_factory=list)
    permissions: List[str] = field(default_factory=list)
    default: bool = False

    def copy(self) -> "Rank":
        return Rank(list(self.members), list(self.permissions), self.default)


@dataclass(frozen=True)
class _GuildState:
    raw_prefix: str
    balance: Fraction
    ranks: Dict[str, Rank]
    claims: List[ChunkRef]


def display_prefix(raw_prefix: str) -> str:
    """Color-translated prefix with its trailing separator space."""
    return translate_color_codes(raw_prefix) + " "


# ============================================================================
# RECORD PARSING
# ============================================================================


def _parse_uuid(record: str, field_path: str, value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str):
        raise MalformedRecordError(record, field_path, f"expected a UUID string, got {value!r}")
    try:
        return uuid.UUID(value)
    except ValueError as exc:
        raise MalformedRecordError(record, field_path, f"invalid UUID {value!r}") from exc


def _parse_list(record: str, field_path: str, value: Any) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedRecordError(record, field_path, f"expected a list, got {type(value).__name__}")
    return value


def _parse_balance(record: str, value: Any, exact: Any = None) -> Fraction:
    """
    Read `balance`, preferring `balance_exact` while the two still agree.

    `balance_exact` ("p/q") is only written when the float cannot hold the
    balance exactly. If `balance` was edited by hand and no longer matches,
    the edited float wins.
    """
    if value is None:
        return Fraction(0)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedRecordError(record, "balance", f"expected a number, got {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise MalformedRecordError(record, "balance", f"expected a finite number, got {value!r}")
    try:
        approximate = float(value)
    except OverflowError:
        raise MalformedRecordError(record, "balance", "out of range") from None

    if exact is None:
        return Fraction(value)
    if not isinstance(exact, str):
        raise MalformedRecordError(record, "balance_exact", f"expected a 'p/q' string, got {exact!r}")
    try:
        precise = Fraction(exact)
    except (ValueError, ZeroDivisionError) as exc:
        raise MalformedRecordError(record, "balance_exact", f"invalid fraction {exact!r}") from exc
    try:
        agrees = float(precise) == approximate
    except OverflowError:
        raise MalformedRecordError(record, "balance_exact", "out of range") from None
    return precise if agrees else Fraction(value)


def _balance_fields(balance: Fraction) -> Dict[str, Any]:
    approximate = float(balance)
    if Fraction(approximate) == balance:
        return {"balance": approximate}
    return {"balance": approximate, "balance_exact": str(balance)}


def _parse_prefix(record: str, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise MalformedRecordError(record, "prefix", f"expected a string, got {value!r}")


def _parse_ranks(record: str, value: Any) -> Dict[str, Rank]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedRecordError(record, "ranks", f"expected a mapping, got {type(value).__name__}")

    ranks: Dict[str, Rank] = {}
    for raw_name, section in value.items():
        rank_name = str(raw_name)
        path = f"ranks.{rank_name}"
        if section is None:
            section = {}
        if not isinstance(section, dict):
            raise MalformedRecordError(record, path, f"expected a mapping, got {type(section).__name__}")

        members = [
            _parse_uuid(record, f"{path}.members[{i}]", entry)
            for i, entry in enumerate(_parse_list(record, f"{path}.members", section.get("members")))
        ]
        permissions = [
            str(entry) for entry in _parse_list(record, f"{path}.permissions", section.get("permissions"))
        ]
        is_default = section.get("default", False)
        if is_default is None:
            is_default = False
        if not isinstance(is_default, bool):
            raise MalformedRecordError(record, f"{path}.default", f"expected true/false, got {is_default!r}")

        ranks[rank_name] = Rank(members, permissions, is_default)
    return ranks


def _parse_claims(record: str, value: Any) -> List[ChunkRef]:
    claims: List[ChunkRef] = []
    for i, entry in enumerate(_parse_list(record, "claims", value)):
        try:
            claims.append(decode_chunk(entry))
        except ValueError as exc:
            raise MalformedRecordError(record, f"claims[{i}]", str(exc)) from exc
    return claims


def new_guild_record(leader: uuid.UUID) -> Record:
    """Record written for a freshly created guild: seeded ranks, none default."""
    return {
        "leader": str(leader),
        "prefix": "",
        "balance": 0.0,
        "ranks": {
            rank: {"members": [], "permissions": [], "default": False}
            for rank in SEED_RANKS
        },
        "claims": [],
    }


# ============================================================================
# GUILD AGGREGATE
# ============================================================================


class Guild(AggregateRoot):
    """
    A named player group backed by one record in a `RecordStore`.

    Identity is the guild name; renaming changes it. Guilds therefore compare
    by name but are not hashable: key dicts and sets by `name` instead.

    Accessors return copies or read-only views, so the only way to change a
    guild is through its methods, each of which persists the full record.

    Every successful mutation appends a domain event. The host owns them:
    read them with `get_pending_events()` and call `clear_domain_events()`
    once handled, or they accumulate for as long as the guild is loaded.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(
        self,
        name: str,
        leader: uuid.UUID,
        store: RecordStore,
        *,
        raw_prefix: str = "",
        balance: Amount = 0,
        ranks: Optional[Dict[str, Rank]] = None,
        claims: Optional[List[ChunkRef]] = None,
    ) -> None:
        super().__init__(name)
        self._name = name
        self._leader = leader
        self._store = store
        self._raw_prefix = raw_prefix
        self._prefix = display_prefix(raw_prefix)
        self._balance = Fraction(balance)
        self._ranks: Dict[str, Rank] = dict(ranks or {})
        self._claims: List[ChunkRef] = list(claims or [])
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        return f"Guild(name={self._name!r}, leader={self._leader}, ranks={list(self._ranks)})"

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def load(cls, name: str, store: RecordStore) -> "Guild":
        """
        Load the guild stored under `name`.

        Raises
        ------
        GuildNotFoundError
            If no record exists.
        MalformedRecordError
            If the record cannot be parsed (names the offending field).
        """
        try:
            data = store.load(name)
        except RecordNotFoundError as exc:
            raise GuildNotFoundError(name) from exc
        return cls.from_record(name, data, store)

    @classmethod
    def from_record(cls, name: str, data: Mapping[str, Any], store: RecordStore) -> "Guild":
        if "leader" not in data or data["leader"] is None:
            raise MalformedRecordError(name, "leader", "missing")

        return cls(
            name,
            _parse_uuid(name, "leader", data["leader"]),
            store,
            raw_prefix=_parse_prefix(name, data.get("prefix")),
            balance=_parse_balance(name, data.get("balance"), data.get("balance_exact")),
            ranks=_parse_ranks(name, data.get("ranks")),
            claims=_parse_claims(name, data.get("claims")),
        )

    def to_record(self) -> Record:
        """Full persisted form of this guild."""
        with self._lock:
            return {
                "leader": str(self._leader),
                "prefix": self._raw_prefix,
                **_balance_fields(self._balance),
                "ranks": {
                    rank_name: {
                        "members": [str(member) for member in rank.members],
                        "permissions": list(rank.permissions),
                        "default": rank.default,
                    }
                    for rank_name, rank in self._ranks.items()
                },
                "claims": encode_chunks(self._claims),
            }

    def refresh(self) -> None:
        """Discard in-memory state and re-read this guild's record."""
        with self._lock:
            fresh = Guild.load(self._name, self._store)
            self._leader = fresh._leader
            self._restore(fresh._snapshot())

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def leader(self) -> uuid.UUID:
        return self._leader

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def raw_prefix(self) -> str:
        return self._raw_prefix

    @property
    def balance(self) -> float:
        return float(self._balance)

    @property
    def ranks(self) -> Mapping[str, Tuple[uuid.UUID, ...]]:
        """Read-only snapshot: rank name -> members, in record order."""
        with self._lock:
            return MappingProxyType(
                {rank_name: tuple(rank.members) for rank_name, rank in self._ranks.items()}
            )

    @property
    def rank_names(self) -> Tuple[str, ...]:
        return tuple(self._ranks)

    @property
    def claims(self) -> Tuple[ChunkRef, ...]:
        return tuple(self._claims)

    def get_members(self, rank: str) -> Tuple[uuid.UUID, ...]:
        return tuple(self._require_rank(rank).members)

    def get_permissions(self, rank: str) -> Tuple[str, ...]:
        return tuple(self._require_rank(rank).permissions)

    def get_rank(self, player: PlayerId) -> Optional[str]:
        """Name of the first rank (in record order) listing `player`, else None."""
        player_id = InputValidator.validate_player_id(player)
        with self._lock:
            for rank_name, rank in self._ranks.items():
                if player_id in rank.members:
                    return rank_name
        return None

    def is_member(self, player: PlayerId) -> bool:
        return self.get_rank(player) is not None

    def has_permission(self, player: PlayerId, permission: str) -> bool:
        with self._lock:
            rank_name = self.get_rank(player)
            if rank_name is None:
                return False
            return permission in self._ranks[rank_name].permissions

    def get_default_rank(self) -> str:
        """
        Name of the rank new members join.

        Raises
        ------
        NoDefaultRankError
            If no rank is flagged as default. There is no fallback.
        """
        with self._lock:
            for rank_name, rank in self._ranks.items():
                if rank.default:
                    return rank_name
        raise NoDefaultRankError(self._name)

    def is_claimed(self, chunk: ChunkRef) -> bool:
        return chunk in self._claims

    # -------------------------------------------------------------------------
    # Persistence Helpers
    # -------------------------------------------------------------------------

    def _require_rank(self, rank: str) -> Rank:
        try:
            return self._ranks[rank]
        except KeyError:
            raise RankNotFoundError(self._name, rank) from None

    def _snapshot(self) -> _GuildState:
        return _GuildState(
            raw_prefix=self._raw_prefix,
            balance=self._balance,
            ranks={rank_name: rank.copy() for rank_name, rank in self._ranks.items()},
            claims=list(self._claims),
        )

    def _restore(self, state: _GuildState) -> None:
        self._raw_prefix = state.raw_prefix
        self._prefix = display_prefix(state.raw_prefix)
        self._balance = state.balance
        self._ranks = {rank_name: rank.copy() for rank_name, rank in state.ranks.items()}
        self._claims = list(state.claims)

    @contextmanager
    def _mutation(self, operation: str, event_name: str, **payload: Any) -> Iterator[None]:
        """
        Apply the enclosed changes and write the full record.

        Any exception inside the block or from the write restores the state
        captured on entry and propagates.
        """
        with self._lock, LogContext(guild=self._name, player=payload.get("player"), operation=operation):
            snapshot = self._snapshot()
            try:
                yield
                self._store.save(self._name, self.to_record())
            except StorageWriteError:
                self._restore(snapshot)
                logger.error(
                    "Guild mutation rolled back after failed write",
                    extra={"guild_name": self._name, "mutation": operation},
                )
                raise
            except BaseException:
                self._restore(snapshot)
                raise

            self.add_domain_event(event_name, {"guild": self._name, **payload})
            logger.info(
                "Guild record updated",
                extra={"guild_name": self._name, "mutation": operation, **payload},
            )

    # -------------------------------------------------------------------------
    # Rename
    # -------------------------------------------------------------------------

    def set_name(self, new_name: str) -> None:
        """
        Rename the guild and move its record.

        The new record is written before the old one is deleted. If the write
        fails nothing changes; if the delete fails the new record is removed
        again and the error propagates.

        Raises
        ------
        GuildAlreadyExistsError
            If another record already uses `new_name` (case-insensitive).
        StorageWriteError
            If the record could not be moved.
        """
        new_name = InputValidator.validate_guild_name(new_name, "new_name")

        with self._lock, LogContext(guild=self._name, operation="rename"):
            old_name = self._name
            if new_name == old_name:
                return

            taken = self._store.find_name(new_name)
            if taken is not None and taken != old_name:
                raise GuildAlreadyExistsError(new_name, action="rename")

            self._store.save(new_name, self.to_record())

            if old_name in self._store.list_names():
                try:
                    self._store.delete(old_name)
                except RecordNotFoundError:
                    logger.warning(
                        "Old guild record vanished during rename",
                        extra={"old_name": old_name, "new_name": new_name},
                    )
                except StorageWriteError:
                    self._store.delete(new_name)
                    raise

            self._name = new_name
            self._id = new_name
            self.add_domain_event(
                "guild.renamed", {"guild": new_name, "old_name": old_name}
            )
            logger.info(
                "Guild renamed",
                extra={"old_name": old_name, "new_name": new_name},
            )

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    def add_member(self, player: PlayerId) -> str:
        """
        Add `player` to the default rank and return that rank's name.

        Raises
        ------
        AlreadyMemberError
            If the player already holds a rank in this guild.
        NoDefaultRankError
            If no default rank is configured.
        """
        player_id = InputValidator.validate_player_id(player)
        with self._lock:
            current = self.get_rank(player_id)
            if current is not None:
                raise AlreadyMemberError(self._name, player_id, current)
            rank_name = self.get_default_rank()

            with self._mutation(
                "add_member", "guild.member_added", player=str(player_id), rank=rank_name
            ):
                self._ranks[rank_name].members.append(player_id)
        return rank_name

    def remove_member(self, player: PlayerId) -> str:
        """
        Remove `player` from their rank and return that rank's name.

        Raises
        ------
        NotAMemberError
            If the player holds no rank in this guild.
        """
        player_id = InputValidator.validate_player_id(player)
        with self._lock:
            rank_name = self.get_rank(player_id)
            if rank_name is None:
                raise NotAMemberError(self._name, player_id)

            with self._mutation(
                "remove_member", "guild.member_removed", player=str(player_id), rank=rank_name
            ):
                members = self._ranks[rank_name].members
                members[:] = [member for member in members if member != player_id]
        return rank_name

    def set_rank(self, player: PlayerId, rank: str) -> None:
        """Move an existing member to `rank` (promotion or demotion)."""
        player_id = InputValidator.validate_player_id(player)
        with self._lock:
            target = self._require_rank(rank)
            current = self.get_rank(player_id)
            if current is None:
                raise NotAMemberError(self._name, player_id, action="set_rank")
            if current == rank:
                return

            with self._mutation(
                "set_rank",
                "guild.member_rank_changed",
                player=str(player_id),
                old_rank=current,
                new_rank=rank,
            ):
                members = self._ranks[current].members
                members[:] = [member for member in members if member != player_id]
                target.members.append(player_id)

    def set_default_rank(self, rank: str) -> None:
        """Flag `rank` as the join rank and clear the flag on every other rank."""
        with self._lock:
            self._require_rank(rank)
            with self._mutation("set_default_rank", "guild.default_rank_changed", rank=rank):
                for rank_name, entry in self._ranks.items():
                    entry.default = rank_name == rank

    # -------------------------------------------------------------------------
    # Permissions
    # -------------------------------------------------------------------------

    def add_permission(self, rank: str, permission: str) -> None:
        permission = InputValidator.validate_string(permission, "permission", min_length=1)
        with self._lock:
            entry = self._require_rank(rank)
            if permission in entry.permissions:
                return
            with self._mutation(
                "add_permission", "guild.permission_added", rank=rank, permission=permission
            ):
                entry.permissions.append(permission)

    def remove_permission(self, rank: str, permission: str) -> None:
        with self._lock:
            entry = self._require_rank(rank)
            if permission not in entry.permissions:
                raise InvalidOperationError(
                    "remove_permission",
                    f"rank '{rank}' of guild '{self._name}' does not hold '{permission}'",
                )
            with self._mutation(
                "remove_permission", "guild.permission_removed", rank=rank, permission=permission
            ):
                entry.permissions.remove(permission)

    # -------------------------------------------------------------------------
    # Claims
    # -------------------------------------------------------------------------

    def claim_chunk(self, chunk: ChunkRef) -> None:
        """
        Add `chunk` to this guild's claims.

        Raises
        ------
        ChunkAlreadyClaimedError
            If this guild already claims the chunk.
        """
        if not isinstance(chunk, ChunkRef):
            raise ValidationError("chunk", "Must be a ChunkRef")
        with self._lock:
            if chunk in self._claims:
                raise ChunkAlreadyClaimedError(self._name, chunk)
            with self._mutation("claim_chunk", "guild.chunk_claimed", chunk=str(chunk)):
                self._claims.append(chunk)

    # -------------------------------------------------------------------------
    # Prefix & Balance
    # -------------------------------------------------------------------------

    def set_prefix(self, raw_prefix: str) -> None:
        if not isinstance(raw_prefix, str):
            raise ValidationError("prefix", "Must be a string")
        with self._mutation("set_prefix", "guild.prefix_changed", prefix=raw_prefix):
            self._raw_prefix = raw_prefix
            self._prefix = display_prefix(raw_prefix)

    def deposit(self, amount: Amount) -> None:
        self._adjust_balance("deposit", "guild.deposited", InputValidator.validate_amount(amount))

    def withdraw(self, amount: Amount) -> None:
        """Subtract `amount`. The balance may go negative."""
        self._adjust_balance("withdraw", "guild.withdrew", -InputValidator.validate_amount(amount))

    def _adjust_balance(self, operation: str, event_name: str, delta: Fraction) -> None:
        with self._lock:
            # the stored float must still be able to hold the result
            new_balance = InputValidator.validate_amount(self._balance + delta, "balance")
            with self._mutation(operation, event_name, amount=float(abs(delta))):
                self._balance = new_balance
