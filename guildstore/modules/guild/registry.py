"""
Guild Registry - loading, lookup and creation of guilds
=======================================================

Handles:
- Loading every stored guild record into `Guild` aggregates
- Case-insensitive lookup over the loaded guilds
- Creating a new guild record with seeded ranks
- Cross-guild queries (which guild a player is in, who owns a chunk)

The registry only knows the guilds it loaded. A record written by
`create_guild(store, ...)` is invisible to `exists` / `get` until the next
`reload()`; `GuildRegistry.create_guild` reloads for you.

Malformed records never abort a load: they are skipped, logged at warning,
and reported in `LoadResult.failures`. Only an unreadable storage directory
(`StorageUnavailableError`) propagates.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from guildstore.core.exceptions import MalformedRecordError, RecordNotFoundError
from guildstore.core.logging.logger import LogContext, get_logger
from guildstore.core.storage.record_store import RecordStore, YamlRecordStore
from guildstore.core.validation.input_validator import InputValidator
from guildstore.domain.models.chunk import ChunkRef
from guildstore.domain.models.guild import Guild, new_guild_record
from guildstore.modules.shared.exceptions import (
    GuildAlreadyExistsError,
    GuildNotFoundError,
    ValidationError,
)

logger = get_logger(__name__)


@dataclass
class LoadResult:
    """
    Outcome of loading every stored guild.

    Attributes
    ----------
    guilds : List[Guild]
        Guilds that loaded cleanly, in record-name order
    failures : Dict[str, Exception]
        Record name -> error for every record that was skipped
    """

    guilds: List[Guild] = field(default_factory=list)
    failures: Dict[str, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


# ============================================================================
# Module-level operations
# ============================================================================


def load_guilds(store: RecordStore) -> LoadResult:
    """
    Build one `Guild` per stored record.

    Raises:
        StorageUnavailableError: If the storage directory cannot be listed
    """
    result = LoadResult()

    for name in store.list_names():
        try:
            result.guilds.append(Guild.load(name, store))
        except (MalformedRecordError, GuildNotFoundError, ValidationError) as exc:
            # A record can vanish between listing and reading; treat it like
            # any other unreadable record.
            result.failures[name] = exc
            logger.warning(
                "Skipping unreadable guild record",
                extra={"record": name, "reason": str(exc)},
            )

    logger.info(
        "Guild records loaded",
        extra={"loaded": len(result.guilds), "skipped": len(result.failures)},
    )
    return result


def create_guild(store: RecordStore, name: str, leader: Union[uuid.UUID, str]) -> None:
    """
    Write the initial record for a new guild.

    The record holds the leader, an empty prefix, a zero balance, the seeded
    ranks `member` and `officer` (empty, neither default) and no claims.
    No registry is updated.

    Raises:
        ValidationError: Invalid name or leader
        GuildAlreadyExistsError: A record already uses the name (any case)
        StorageWriteError: The record could not be written
    """
    name = InputValidator.validate_guild_name(name)
    leader_id = InputValidator.validate_player_id(leader, "leader")

    with LogContext(guild=name, player=str(leader_id), operation="create_guild"):
        existing = store.find_name(name)
        if existing is not None:
            raise GuildAlreadyExistsError(existing)

        store.save(name, new_guild_record(leader_id))

        logger.info(
            "Guild created",
            extra={"guild_name": name, "leader": str(leader_id)},
        )


# ============================================================================
# Registry
# ============================================================================


class GuildRegistry:
    """
    The set of guilds currently loaded from a record store.

    Nothing is loaded on construction; call `reload()` first.

    Usage:
        >>> registry = GuildRegistry()
        >>> registry.reload()
        >>> guild = registry.create_guild("Alpha", leader_id)
        >>> registry.exists("alpha")
        True
    """

    def __init__(self, store: Optional[RecordStore] = None) -> None:
        self.store = store if store is not None else YamlRecordStore()
        self._guilds: List[Guild] = []
        self._last_failures: Dict[str, Exception] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._guilds)

    def __repr__(self) -> str:
        return f"GuildRegistry(store={self.store!r}, loaded={len(self._guilds)})"

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def reload(self) -> LoadResult:
        """Replace the loaded guilds with a fresh read of every record."""
        with self._lock, LogContext(operation="reload"):
            result = load_guilds(self.store)
            self._guilds = list(result.guilds)
            self._last_failures = dict(result.failures)
            return result

    @property
    def last_failures(self) -> Dict[str, Exception]:
        with self._lock:
            return dict(self._last_failures)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def all(self) -> Tuple[Guild, ...]:
        with self._lock:
            return tuple(self._guilds)

    def names(self) -> List[str]:
        with self._lock:
            return [guild.name for guild in self._guilds]

    def find(self, name: str) -> Optional[Guild]:
        """Loaded guild whose name matches case-insensitively, or None."""
        wanted = name.casefold()
        with self._lock:
            for guild in self._guilds:
                if guild.name.casefold() == wanted:
                    return guild
        return None

    def get(self, name: str) -> Guild:
        guild = self.find(name)
        if guild is None:
            raise GuildNotFoundError(name)
        return guild

    def exists(self, name: str) -> bool:
        """Case-insensitive membership test over the loaded guilds only."""
        return self.find(name) is not None

    def guild_of(self, player: Union[uuid.UUID, str]) -> Optional[Guild]:
        """The loaded guild `player` holds a rank in, if any."""
        player_id = InputValidator.validate_player_id(player)
        with self._lock:
            for guild in self._guilds:
                if guild.is_member(player_id):
                    return guild
        return None

    def find_claim_owner(self, chunk: ChunkRef) -> Optional[Guild]:
        """The loaded guild claiming `chunk`, if any."""
        with self._lock:
            for guild in self._guilds:
                if guild.is_claimed(chunk):
                    return guild
        return None

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create_guild(self, name: str, leader: Union[uuid.UUID, str]) -> Guild:
        """Create the guild record, reload, and return the new guild."""
        with self._lock:
            create_guild(self.store, name, leader)
            self.reload()
            guild = self.find(name)
            if guild is None:
                # Written but not loadable: surface the reason recorded by reload.
                failure = self._last_failures.get(name)
                if failure is not None:
                    raise failure
                raise GuildNotFoundError(name) from RecordNotFoundError(name)
            return guild
