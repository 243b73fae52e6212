"""Room naming, world coordinates and room adjacency."""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Optional, Protocol, Tuple, runtime_checkable

ROOM_SIZE = 50
"""Rooms are square grids of ``ROOM_SIZE`` × ``ROOM_SIZE`` tiles."""

_ROOM_NAME = re.compile(r"^([WE])(\d+)([NS])(\d+)$")


class Direction(IntEnum):
    """Edge directions, numbered the way exit ids encode them."""

    NORTH = 0
    EAST = 1
    SOUTH = 2
    WEST = 3

    @property
    def opposite(self) -> "Direction":
        return Direction((self.value + 2) % 4)

    @property
    def offset(self) -> Tuple[int, int]:
        """Room-grid offset of the neighbour in this direction."""

        return _OFFSETS[self]


_OFFSETS = {
    Direction.NORTH: (0, -1),
    Direction.EAST: (1, 0),
    Direction.SOUTH: (0, 1),
    Direction.WEST: (-1, 0),
}


@dataclass(frozen=True, slots=True)
class RoomCoord:
    """Position of a room on the world grid.

    East and south are positive.  ``W0`` maps to ``x = -1`` and ``N0`` to
    ``y = -1`` so that every room name has exactly one coordinate.
    """

    x: int
    y: int

    @classmethod
    def parse(cls, name: str) -> "RoomCoord":
        match = _ROOM_NAME.match(name)
        if match is None:
            raise ValueError(f"malformed room name {name!r}")
        horizontal, h_value, vertical, v_value = match.groups()
        x = int(h_value) if horizontal == "E" else -int(h_value) - 1
        y = int(v_value) if vertical == "S" else -int(v_value) - 1
        return cls(x, y)

    @property
    def name(self) -> str:
        horizontal = f"E{self.x}" if self.x >= 0 else f"W{-self.x - 1}"
        vertical = f"S{self.y}" if self.y >= 0 else f"N{-self.y - 1}"
        return horizontal + vertical

    def step(self, direction: Direction) -> "RoomCoord":
        dx, dy = direction.offset
        return RoomCoord(self.x + dx, self.y + dy)


@dataclass(frozen=True, slots=True)
class WorldPosition:
    """A tile inside a named room."""

    room: str
    x: int
    y: int

    def __post_init__(self) -> None:
        if not (0 <= self.x < ROOM_SIZE and 0 <= self.y < ROOM_SIZE):
            raise ValueError(f"coordinates ({self.x}, {self.y}) are outside the room")

    @property
    def coords(self) -> Tuple[int, int]:
        return self.x, self.y

    def pack(self) -> int:
        """Return the tile index ``x + 50 * y`` used for compact storage."""

        return pack_coords(self.x, self.y)

    @classmethod
    def unpack(cls, room: str, packed: int) -> "WorldPosition":
        x, y = unpack_coords(packed)
        return cls(room, x, y)

    def __str__(self) -> str:
        return f"[{self.room} {self.x},{self.y}]"


def pack_coords(x: int, y: int) -> int:
    return x + ROOM_SIZE * y


def unpack_coords(packed: int) -> Tuple[int, int]:
    return packed % ROOM_SIZE, packed // ROOM_SIZE


@runtime_checkable
class RoomAdjacency(Protocol):
    """Subset of :class:`WorldMap` the navigation mesh relies on."""

    def adjacent_room(self, room: str, direction: Direction) -> Optional[str]:
        """Return the room beyond ``direction`` or ``None`` if there is none."""

    def linear_room_distance(self, a: str, b: str) -> int:
        """Return the number of room crossings on a straight line."""


class WorldMap:
    """Room adjacency over the infinite name grid, optionally restricted.

    When ``rooms`` is given, only those rooms exist; edges leading anywhere
    else have no neighbour.
    """

    def __init__(self, rooms: Optional[Iterable[str]] = None) -> None:
        self._rooms = None if rooms is None else frozenset(rooms)

    def has_room(self, room: str) -> bool:
        return self._rooms is None or room in self._rooms

    def adjacent_room(self, room: str, direction: Direction) -> Optional[str]:
        neighbour = RoomCoord.parse(room).step(Direction(direction)).name
        if not self.has_room(neighbour):
            return None
        return neighbour

    def linear_room_distance(self, a: str, b: str) -> int:
        first = RoomCoord.parse(a)
        second = RoomCoord.parse(b)
        return max(abs(first.x - second.x), abs(first.y - second.y))


__all__ = [
    "Direction",
    "ROOM_SIZE",
    "RoomAdjacency",
    "RoomCoord",
    "WorldMap",
    "WorldPosition",
    "pack_coords",
    "unpack_coords",
]
