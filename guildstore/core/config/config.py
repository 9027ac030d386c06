"""
Environment-driven settings for Guildstore.

Settings are class attributes on `Config`, read from `GUILDSTORE_*`
environment variables (a `.env` file in the working directory is honored)
when this module is imported. `Config.reload()` re-reads them.

Variable                    Default                 Attribute
--------------------------  ----------------------  ---------------
GUILDSTORE_ENV              development             ENVIRONMENT
GUILDSTORE_DATA_DIR         <project>/data          DATA_DIR
GUILDSTORE_GUILDS_DIR       <data>/guilds           GUILDS_DIR
GUILDSTORE_RECORD_SUFFIX    .yml                    RECORD_SUFFIX
GUILDSTORE_COLOR_CHAR       &                       COLOR_CODE_CHAR
GUILDSTORE_LOG_LEVEL        INFO                    LOG_LEVEL
GUILDSTORE_LOG_JSON         (JSON in production)    LOG_JSON
GUILDSTORE_LOG_TO_FILE      false                   LOG_TO_FILE
GUILDSTORE_LOGS_DIR         <project>/logs          LOGS_DIR

Unparseable values never raise: the default is used and the problem is
logged and listed under `warnings` in `get_config_summary()`.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

load_dotenv()

ENV_PREFIX = "GUILDSTORE_"

_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off"})
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

logger = logging.getLogger(__name__)


class Environment(Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """Case-insensitive parse; unknown names mean development."""
        for member in cls:
            if member.value == value.strip().lower():
                return member
        return cls.DEVELOPMENT


class Config:
    """
    Process-wide settings. Never instantiated.

    >>> Config.GUILDS_DIR
    PosixPath('/srv/guildstore/data/guilds')
    """

    PROJECT_ROOT = Path(__file__).resolve().parents[3]

    ENVIRONMENT: str = Environment.DEVELOPMENT.value

    DATA_DIR: Path = PROJECT_ROOT / "data"
    GUILDS_DIR: Path = DATA_DIR / "guilds"
    RECORD_SUFFIX: str = ".yml"

    COLOR_CODE_CHAR: str = "&"

    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None
    LOG_TO_FILE: bool = False
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    _from_env: List[str] = []
    _warnings: Dict[str, str] = {}

    # -------------------------------------------------------------------------
    # Readers
    # -------------------------------------------------------------------------

    @classmethod
    def _raw(cls, key: str) -> Optional[str]:
        value = os.environ.get(ENV_PREFIX + key)
        if value is not None:
            cls._from_env.append(key)
        return value

    @classmethod
    def _warn(cls, key: str, problem: str) -> None:
        cls._warnings[key] = problem
        logger.warning("Ignoring %s%s: %s", ENV_PREFIX, key, problem)

    @classmethod
    def _text(cls, key: str, default: str) -> str:
        value = cls._raw(key)
        return default if value is None else value

    @classmethod
    def _flag(cls, key: str, default: Optional[bool]) -> Optional[bool]:
        value = cls._raw(key)
        if value is None:
            return default
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        cls._warn(key, f"{value!r} is not a boolean")
        return default

    @classmethod
    def _directory(cls, key: str, default: Path) -> Path:
        """Relative paths are taken from the project root."""
        value = cls._raw(key)
        if value is None:
            return default
        path = Path(value).expanduser()
        return path if path.is_absolute() else cls.PROJECT_ROOT / path

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    @classmethod
    def reload(cls) -> None:
        """Re-read every setting from the environment."""
        cls._from_env = []
        cls._warnings = {}

        cls.ENVIRONMENT = Environment.from_string(cls._text("ENV", "development")).value

        cls.DATA_DIR = cls._directory("DATA_DIR", cls.PROJECT_ROOT / "data")
        cls.GUILDS_DIR = cls._directory("GUILDS_DIR", cls.DATA_DIR / "guilds")
        suffix = cls._text("RECORD_SUFFIX", ".yml")
        cls.RECORD_SUFFIX = suffix if suffix.startswith(".") else "." + suffix

        color_char = cls._text("COLOR_CHAR", "&")
        if len(color_char) != 1:
            cls._warn("COLOR_CHAR", f"{color_char!r} is not a single character")
            color_char = "&"
        cls.COLOR_CODE_CHAR = color_char

        cls.LOG_LEVEL = cls._text("LOG_LEVEL", "INFO").upper()
        cls.LOG_JSON = cls._flag("LOG_JSON", None)
        cls.LOG_TO_FILE = bool(cls._flag("LOG_TO_FILE", False))
        cls.LOGS_DIR = cls._directory("LOGS_DIR", cls.PROJECT_ROOT / "logs")

    @classmethod
    def validate(cls) -> None:
        """
        Check settings that can only be judged as a whole and create the
        directories they name. Directory errors are fatal in production.
        """
        if cls.LOG_LEVEL not in _LOG_LEVELS:
            cls._warn("LOG_LEVEL", f"unknown level {cls.LOG_LEVEL!r}")
            cls.LOG_LEVEL = "INFO"

        directories = [cls.GUILDS_DIR] + ([cls.LOGS_DIR] if cls.LOG_TO_FILE else [])
        for directory in directories:
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                if cls.is_production():
                    raise
                logger.warning("Could not create %s: %s", directory, exc)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT == Environment.PRODUCTION.value

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """Effective settings plus where they came from, for a startup log line."""
        return {
            "environment": cls.ENVIRONMENT,
            "guilds_dir": str(cls.GUILDS_DIR),
            "record_suffix": cls.RECORD_SUFFIX,
            "color_code_char": cls.COLOR_CODE_CHAR,
            "log_level": cls.LOG_LEVEL,
            "log_to_file": cls.LOG_TO_FILE,
            "from_environment": sorted(set(cls._from_env)),
            "warnings": dict(cls._warnings),
        }


Config.reload()
