"""
Guildstore: guild records for a multiplayer game server.

Guilds (name, leader, prefix, balance, ranks and claimed chunks) are kept as
one YAML record each and loaded into an explicitly constructed registry.
"""

__version__ = "1.0.0"
