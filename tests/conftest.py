"""
Pytest configuration and shared fixtures for Guildstore tests.

Provides:
- Record stores rooted in a per-test temporary directory
- Registries over those stores
- Stable player UUIDs and a helper for writing raw guild records
"""

import uuid

import pytest

from guildstore.core.storage import YamlRecordStore
from guildstore.domain.models import Guild
from guildstore.modules.guild import GuildRegistry, create_guild


# ============================================================================
# PLAYERS
# ============================================================================

LEADER = uuid.UUID("00000000-0000-0000-0000-000000000001")
U2 = uuid.UUID("00000000-0000-0000-0000-000000000002")
U3 = uuid.UUID("00000000-0000-0000-0000-000000000003")
U4 = uuid.UUID("00000000-0000-0000-0000-000000000004")


@pytest.fixture
def leader_id():
    return LEADER


@pytest.fixture
def players():
    """Three non-leader players, in a fixed order."""
    return U2, U3, U4


# ============================================================================
# STORAGE
# ============================================================================


@pytest.fixture
def guilds_dir(tmp_path):
    """Empty directory for guild records."""
    path = tmp_path / "guilds"
    path.mkdir()
    return path


@pytest.fixture
def store(guilds_dir):
    """YAML record store over an empty temporary directory."""
    return YamlRecordStore(guilds_dir)


@pytest.fixture
def registry(store):
    """Registry over the temporary store, nothing loaded yet."""
    return GuildRegistry(store)


@pytest.fixture
def write_record(guilds_dir):
    """Write raw YAML text as the record for `name`."""

    def _write(name, text):
        path = guilds_dir / f"{name}.yml"
        path.write_text(text, encoding="utf-8")
        return path

    return _write


# ============================================================================
# GUILDS
# ============================================================================


@pytest.fixture
def alpha(store, leader_id):
    """Freshly created guild: seeded ranks, no default rank."""
    create_guild(store, "Alpha", leader_id)
    return Guild.load("Alpha", store)


@pytest.fixture
def beta(write_record, store):
    """Guild with default rank `member` = [U2]."""
    write_record(
        "Beta",
        f"""\
leader: {LEADER}
prefix: '&b[Beta]'
balance: 100.0
ranks:
  member:
    members:
    - {U2}
    permissions:
    - chat
    default: true
  officer:
    members: []
    permissions:
    - invite
    - kick
    default: false
claims:
- world,1,2
""",
    )
    return Guild.load("Beta", store)
