"""
Guild Record Store

Purpose
-------
Persist one record per guild, keyed by guild name. A record is a plain
mapping (see `guildstore.domain.models.guild.Guild.to_record`) stored as a
YAML document at `<root>/<name><suffix>`.

Design Notes
------------
- Record locations are always built from the storage root and the key; keys
  are validated so they cannot escape the root.
- Writes are atomic: the document is written to a hidden temporary sibling,
  flushed and fsynced, then moved over the target with `os.replace`. A failed
  write leaves the previous record intact.
- Every failure surfaces as a `StorageError` subclass; nothing is swallowed.

What this class does NOT do:
- Interpret record contents (the Guild aggregate does that)
- Enforce name uniqueness (callers use `find_name` first)

Usage
-----
    store = YamlRecordStore(Config.GUILDS_DIR)
    store.save("Alpha", {"leader": "...", "balance": 0.0})
    data = store.load("Alpha")
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from guildstore.core.config.config import Config
from guildstore.core.exceptions import (
    MalformedRecordError,
    RecordNotFoundError,
    StorageUnavailableError,
    StorageWriteError,
)
from guildstore.core.logging.logger import get_logger
from guildstore.core.validation.input_validator import InputValidator

logger = get_logger(__name__)

Record = Dict[str, Any]


class RecordStore(ABC):
    """Key/value persistence for guild records."""

    @abstractmethod
    def load(self, name: str) -> Record:
        """Return the stored record for `name` (RecordNotFoundError if absent)."""

    @abstractmethod
    def save(self, name: str, data: Record) -> None:
        """Create or fully replace the record for `name`."""

    @abstractmethod
    def delete(self, name: str) -> None:
        """Remove the record for `name` (RecordNotFoundError if absent)."""

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Whether a record is stored under exactly `name`."""

    @abstractmethod
    def list_names(self) -> List[str]:
        """All stored record keys, sorted."""

    def find_name(self, name: str) -> Optional[str]:
        """Return the stored key matching `name` case-insensitively, if any."""
        wanted = name.casefold()
        for stored in self.list_names():
            if stored.casefold() == wanted:
                return stored
        return None


class YamlRecordStore(RecordStore):
    """
    Directory of YAML documents, one per guild.

    Args:
        root: Storage directory (defaults to `Config.GUILDS_DIR`)
        suffix: Record file suffix (defaults to `Config.RECORD_SUFFIX`)
    """

    def __init__(
        self,
        root: Optional[Union[str, Path]] = None,
        suffix: Optional[str] = None,
    ) -> None:
        self.root = Path(root) if root is not None else Path(Config.GUILDS_DIR)
        self.suffix = suffix or Config.RECORD_SUFFIX

    def __repr__(self) -> str:
        return f"YamlRecordStore(root={str(self.root)!r}, suffix={self.suffix!r})"

    # -------------------------------------------------------------------------
    # Locations
    # -------------------------------------------------------------------------

    def path_for(self, name: str) -> Path:
        """Location of the record for `name`: `<root>/<name><suffix>`."""
        key = InputValidator.validate_guild_name(name)
        return self.root / f"{key}{self.suffix}"

    def _temp_path_for(self, path: Path) -> Path:
        return path.with_name(f".{path.name}.tmp")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def list_names(self) -> List[str]:
        if not self.root.exists():
            logger.debug(
                "Guild storage directory does not exist yet",
                extra={"root": str(self.root)},
            )
            return []
        if not self.root.is_dir():
            raise StorageUnavailableError(self.root)

        try:
            entries = list(self.root.iterdir())
        except OSError as exc:
            raise StorageUnavailableError(self.root, exc) from exc

        names = [
            entry.name[: -len(self.suffix)]
            for entry in entries
            if entry.name.endswith(self.suffix)
            and not entry.name.startswith(".")
            and entry.is_file()
        ]
        return sorted(names)

    def load(self, name: str) -> Record:
        path = self.path_for(name)
        try:
            with path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle)
        except FileNotFoundError as exc:
            raise RecordNotFoundError(name, path) from exc
        except yaml.YAMLError as exc:
            raise MalformedRecordError(name, "<document>", f"invalid YAML: {exc}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise MalformedRecordError(name, "<document>", f"unreadable: {exc}") from exc

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise MalformedRecordError(
                name,
                "<document>",
                f"expected a mapping, got {type(data).__name__}",
            )
        return data

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def save(self, name: str, data: Record) -> None:
        path = self.path_for(name)
        tmp_path = self._temp_path_for(path)

        try:
            self.root.mkdir(parents=True, exist_ok=True)
            document = yaml.safe_dump(
                data,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )
            with tmp_path.open("w", encoding="utf-8") as handle:
                handle.write(document)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except (OSError, yaml.YAMLError) as exc:
            tmp_path.unlink(missing_ok=True)
            logger.error(
                "Failed to write guild record",
                extra={"record": name, "path": str(path)},
                exc_info=True,
            )
            raise StorageWriteError("save", name, path, exc) from exc

        logger.debug("Guild record written", extra={"record": name, "path": str(path)})

    def delete(self, name: str) -> None:
        path = self.path_for(name)
        try:
            path.unlink()
        except FileNotFoundError as exc:
            raise RecordNotFoundError(name, path) from exc
        except OSError as exc:
            logger.error(
                "Failed to delete guild record",
                extra={"record": name, "path": str(path)},
                exc_info=True,
            )
            raise StorageWriteError("delete", name, path, exc) from exc

        logger.debug("Guild record deleted", extra={"record": name, "path": str(path)})
