"""
Integration tests: registry, guild aggregate and YAML store on a real
temporary directory, exercised the way a host server would.
"""

import threading
import uuid

import pytest

from guildstore.domain.models import ChunkRef, Guild
from guildstore.modules.guild import GuildRegistry


@pytest.mark.integration
class TestGuildLifecycle:
    def test_full_lifecycle_survives_restart(self, store, leader_id, players):
        # Arrange
        u2, u3, _ = players
        registry = GuildRegistry(store)

        # Act
        guild = registry.create_guild("Alpha", leader_id)
        guild.set_default_rank("member")
        guild.add_member(u2)
        guild.add_member(u3)
        guild.set_rank(u3, "officer")
        guild.add_permission("officer", "invite")
        guild.claim_chunk(ChunkRef("world", 0, 0))
        guild.set_prefix("&a[A]")
        guild.deposit(0.1)
        guild.deposit(0.2)
        guild.set_name("Alpha Company")

        restarted = GuildRegistry(store)
        restarted.reload()
        loaded = restarted.get("alpha company")

        # Assert
        assert restarted.names() == ["Alpha Company"]
        assert loaded.to_record() == guild.to_record()
        assert loaded.get_rank(u3) == "officer"
        assert loaded.has_permission(u3, "invite")
        assert loaded.prefix == "§a[A] "
        assert restarted.guild_of(u2) is loaded
        assert restarted.find_claim_owner(ChunkRef("world", 0, 0)) is loaded

    def test_concurrent_members_are_all_recorded(self, store, leader_id):
        """Parallel joins on one guild must not lose updates."""
        # Arrange
        registry = GuildRegistry(store)
        guild = registry.create_guild("Crowd", leader_id)
        guild.set_default_rank("member")
        joiners = [uuid.uuid4() for _ in range(20)]

        # Act
        threads = [threading.Thread(target=guild.add_member, args=(player,)) for player in joiners]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        # Assert
        assert set(guild.get_members("member")) == set(joiners)
        assert set(Guild.load("Crowd", store).get_members("member")) == set(joiners)
