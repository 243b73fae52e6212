"""Terrain flag definitions and descriptors for room tiles."""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag
from typing import Dict, Optional


class TerrainFlags(IntFlag):
    """Bitflags stored per tile in a room's terrain buffer.

    The values match the masks reported by the game client so raw terrain
    exports can be loaded without translation.
    """

    PLAIN = 0
    WALL = 1
    SWAMP = 2


@dataclass(frozen=True)
class TerrainDescriptor:
    """Describes the movement characteristics of a terrain type."""

    name: str
    flags: TerrainFlags
    move_cost: Optional[int]
    symbol: str

    def __post_init__(self) -> None:
        if self.move_cost is None and not (self.flags & TerrainFlags.WALL):
            raise ValueError("move_cost must be specified unless terrain is a wall")
        if self.move_cost is not None and self.move_cost <= 0:
            raise ValueError("move_cost must be positive or None")
        if len(self.symbol) != 1:
            raise ValueError("symbol must be a single character")

    @property
    def is_walkable(self) -> bool:
        return self.move_cost is not None


# Catalog of the terrain types a room can contain.
TERRAIN_CATALOG: Dict[str, TerrainDescriptor] = {
    "plain": TerrainDescriptor(
        name="plain",
        flags=TerrainFlags.PLAIN,
        move_cost=1,
        symbol=".",
    ),
    "swamp": TerrainDescriptor(
        name="swamp",
        flags=TerrainFlags.SWAMP,
        move_cost=5,
        symbol="~",
    ),
    "wall": TerrainDescriptor(
        name="wall",
        flags=TerrainFlags.WALL,
        move_cost=None,
        symbol="#",
    ),
}

_BY_SYMBOL: Dict[str, TerrainDescriptor] = {
    descriptor.symbol: descriptor for descriptor in TERRAIN_CATALOG.values()
}


def descriptor_for_symbol(symbol: str) -> TerrainDescriptor:
    """Return the descriptor drawn with ``symbol`` in ASCII room layouts."""

    try:
        return _BY_SYMBOL[symbol]
    except KeyError as exc:
        raise ValueError(f"unknown terrain symbol {symbol!r}") from exc


__all__ = [
    "TerrainFlags",
    "TerrainDescriptor",
    "TERRAIN_CATALOG",
    "descriptor_for_symbol",
]
