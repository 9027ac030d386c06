"""
Core infrastructure layer for Guildstore.

Provides a single import surface for configuration, logging and the
infrastructure exception hierarchy. The record store and validation helpers
depend on domain exceptions, so import them from their own subpackages
(`guildstore.core.storage`, `guildstore.core.validation`).
"""

from __future__ import annotations

from guildstore.core.config import Config
from guildstore.core.exceptions import (
    StructuredError,
    ErrorSeverity,
    GuildStoreInfrastructureException,
    MalformedRecordError,
    RecordNotFoundError,
    StorageError,
    StorageUnavailableError,
    StorageWriteError,
)
from guildstore.core.logging import LogContext, get_logger, setup_logging

__all__ = [
    "Config",
    "StructuredError",
    "ErrorSeverity",
    "GuildStoreInfrastructureException",
    "MalformedRecordError",
    "RecordNotFoundError",
    "StorageError",
    "StorageUnavailableError",
    "StorageWriteError",
    "LogContext",
    "get_logger",
    "setup_logging",
]
