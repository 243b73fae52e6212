"""Per-room terrain and cost buffers plus the provider interface around them."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, runtime_checkable

import numpy as np

from modules.maps.terrain_types import TERRAIN_CATALOG, TerrainFlags, descriptor_for_symbol
from modules.maps.world import ROOM_SIZE

BLOCKED_COST = 255
"""Cost-matrix value marking a tile as unwalkable."""

UNWALKABLE = -1
"""Marker used in resolved cost grids for tiles that cannot be entered."""


def _check_shape(array: np.ndarray) -> None:
    if array.shape != (ROOM_SIZE, ROOM_SIZE):
        raise ValueError(f"grid must be {ROOM_SIZE}x{ROOM_SIZE}, got {array.shape}")


@dataclass(slots=True)
class RoomTerrain:
    """Static terrain of one room, indexed ``tiles[x, y]``."""

    room: str
    tiles: np.ndarray

    def __post_init__(self) -> None:
        self.tiles = np.asarray(self.tiles, dtype=np.uint8)
        _check_shape(self.tiles)

    @classmethod
    def from_rows(cls, room: str, rows: Sequence[str]) -> "RoomTerrain":
        """Build terrain from 50 strings of 50 symbols (``.`` ``~`` ``#``)."""

        if len(rows) != ROOM_SIZE or any(len(row) != ROOM_SIZE for row in rows):
            raise ValueError("terrain layout must be 50 rows of 50 symbols")
        tiles = np.zeros((ROOM_SIZE, ROOM_SIZE), dtype=np.uint8)
        for y, row in enumerate(rows):
            for x, symbol in enumerate(row):
                tiles[x, y] = int(descriptor_for_symbol(symbol).flags)
        return cls(room, tiles)

    def get(self, x: int, y: int) -> TerrainFlags:
        return TerrainFlags(int(self.tiles[x, y]))

    def is_wall(self, x: int, y: int) -> bool:
        return bool(self.tiles[x, y] & TerrainFlags.WALL)

    @property
    def wall_mask(self) -> np.ndarray:
        return (self.tiles & TerrainFlags.WALL).astype(bool)


class CostMatrix:
    """Mutable 50×50 tile cost overrides.

    A value of ``0`` means "use the terrain cost", :data:`BLOCKED_COST` marks
    an obstacle and anything in between replaces the terrain cost.
    """

    __slots__ = ("_costs",)

    def __init__(self, costs: Optional[np.ndarray] = None) -> None:
        if costs is None:
            costs = np.zeros((ROOM_SIZE, ROOM_SIZE), dtype=np.uint8)
        costs = np.array(costs, dtype=np.uint8)
        _check_shape(costs)
        self._costs = costs

    def get(self, x: int, y: int) -> int:
        return int(self._costs[x, y])

    def set(self, x: int, y: int, value: int) -> None:
        if not 0 <= value <= BLOCKED_COST:
            raise ValueError("cost must lie between 0 and 255")
        self._costs[x, y] = value

    def clone(self) -> "CostMatrix":
        return CostMatrix(self._costs.copy())

    def as_array(self) -> np.ndarray:
        """Return a read-only view of the raw buffer."""

        view = self._costs.view()
        view.setflags(write=False)
        return view


def resolve_tile_costs(
    terrain: RoomTerrain,
    costs: CostMatrix,
    *,
    plain_cost: int = TERRAIN_CATALOG["plain"].move_cost,
    swamp_cost: int = TERRAIN_CATALOG["swamp"].move_cost,
) -> np.ndarray:
    """Combine terrain and overrides into per-tile step costs.

    Unwalkable tiles are set to :data:`UNWALKABLE`.
    """

    raw = costs.as_array().astype(np.int16)
    base = np.where(terrain.tiles & TerrainFlags.SWAMP, swamp_cost, plain_cost).astype(np.int16)
    resolved = np.where(raw > 0, raw, base)
    resolved[terrain.wall_mask] = UNWALKABLE
    resolved[raw >= BLOCKED_COST] = UNWALKABLE
    return resolved


@dataclass(frozen=True, slots=True)
class PortalStructure:
    """A portal tile and where it leads."""

    x: int
    y: int
    destination_room: str
    destination_shard: Optional[str] = None


@runtime_checkable
class RoomGridProvider(Protocol):
    """Source of terrain, cost overrides and portals for visible rooms."""

    def get_terrain(self, room: str) -> Optional[RoomTerrain]:
        """Return the room's terrain, or ``None`` when it was never seen."""

    def get_cost_matrix(self, room: str) -> Optional[CostMatrix]:
        """Return the room's current cost overrides."""

    def get_portals(self, room: str) -> Sequence[PortalStructure]:
        """Return the portals known to exist in ``room``."""


def get_tile_cost(provider: RoomGridProvider, room: str, x: int, y: int) -> int:
    """Return the cost-matrix value for a tile, :data:`BLOCKED_COST` on walls."""

    terrain = provider.get_terrain(room)
    if terrain is not None and terrain.is_wall(x, y):
        return BLOCKED_COST
    matrix = provider.get_cost_matrix(room)
    return matrix.get(x, y) if matrix is not None else 0


class InMemoryRoomGrids:
    """Dictionary-backed :class:`RoomGridProvider`."""

    def __init__(self) -> None:
        self._terrain: Dict[str, RoomTerrain] = {}
        self._costs: Dict[str, CostMatrix] = {}
        self._portals: Dict[str, List[PortalStructure]] = {}

    def add_room(
        self,
        terrain: RoomTerrain,
        costs: Optional[CostMatrix] = None,
        portals: Iterable[PortalStructure] = (),
    ) -> None:
        self._terrain[terrain.room] = terrain
        self._costs[terrain.room] = costs if costs is not None else CostMatrix()
        self._portals[terrain.room] = list(portals)

    def rooms(self) -> List[str]:
        return list(self._terrain)

    def get_terrain(self, room: str) -> Optional[RoomTerrain]:
        return self._terrain.get(room)

    def get_cost_matrix(self, room: str) -> Optional[CostMatrix]:
        return self._costs.get(room)

    def get_portals(self, room: str) -> Sequence[PortalStructure]:
        return tuple(self._portals.get(room, ()))


__all__ = [
    "BLOCKED_COST",
    "CostMatrix",
    "InMemoryRoomGrids",
    "PortalStructure",
    "RoomGridProvider",
    "RoomTerrain",
    "UNWALKABLE",
    "get_tile_cost",
    "resolve_tile_costs",
]
