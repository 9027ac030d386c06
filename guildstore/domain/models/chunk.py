"""
Chunk references and their record encoding.

A claim points at one map chunk: a world name plus integer chunk
coordinates. Records store claims as `"<world>,<x>,<z>"`; world names may
themselves contain commas, so decoding splits from the right.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

_SEPARATOR = ","


@dataclass(frozen=True)
class ChunkRef:
    """
    Immutable reference to a map chunk.

    Attributes
    ----------
    world : str
        World (dimension) name
    x : int
        Chunk x coordinate
    z : int
        Chunk z coordinate
    """

    world: str
    x: int
    z: int

    def __post_init__(self) -> None:
        if not isinstance(self.world, str) or not self.world:
            raise ValueError("world must be a non-empty string")
        for axis in ("x", "z"):
            value = getattr(self, axis)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{axis} must be an integer, got {value!r}")

    def __str__(self) -> str:
        return encode_chunk(self)


def encode_chunk(chunk: ChunkRef) -> str:
    return f"{chunk.world}{_SEPARATOR}{chunk.x}{_SEPARATOR}{chunk.z}"


def decode_chunk(encoded: str) -> ChunkRef:
    """
    Parse `"<world>,<x>,<z>"`.

    Raises
    ------
    ValueError
        If the string does not have three parts or the coordinates are not
        integers.
    """
    if not isinstance(encoded, str):
        raise ValueError(f"expected a string, got {type(encoded).__name__}")
    parts = encoded.rsplit(_SEPARATOR, 2)
    if len(parts) != 3:
        raise ValueError(f"expected '<world>,<x>,<z>', got {encoded!r}")
    world, x, z = parts
    try:
        return ChunkRef(world, int(x), int(z))
    except ValueError as exc:
        raise ValueError(f"invalid chunk reference {encoded!r}: {exc}") from exc


def encode_chunks(chunks: Iterable[ChunkRef]) -> List[str]:
    return [encode_chunk(chunk) for chunk in chunks]
