"""
Domain models package for Guildstore.

Purpose
-------
Rich domain models that encapsulate guild rules, validation, and state
transitions.

Design Notes
------------
A guild is an aggregate root: every change goes through its methods, which
validate the change, write the full record, and record a domain event.
Claimed chunks are immutable value objects.
"""

from .base import AggregateRoot, DomainEvent, Entity
from .chunk import ChunkRef, decode_chunk, encode_chunk, encode_chunks
from .guild import SEED_RANKS, Guild, Rank, display_prefix, new_guild_record

__all__ = [
    # Base classes
    "Entity",
    "AggregateRoot",
    "DomainEvent",
    # Value objects
    "ChunkRef",
    "encode_chunk",
    "encode_chunks",
    "decode_chunk",
    # Aggregates
    "Guild",
    "Rank",
    "SEED_RANKS",
    "display_prefix",
    "new_guild_record",
]
