"""
Guild Module
============

Loading, lookup and creation of guilds.

Exports:
- GuildRegistry: The loaded set of guilds (reload, lookup, create)
- LoadResult: Guilds loaded plus records skipped during a load
- load_guilds: Build every stored guild from a record store
- create_guild: Write a new guild record without touching any registry
"""

from .registry import GuildRegistry, LoadResult, create_guild, load_guilds

__all__ = [
    "GuildRegistry",
    "LoadResult",
    "load_guilds",
    "create_guild",
]
