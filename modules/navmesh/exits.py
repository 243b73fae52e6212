"""Exit detection along the four edges of a room."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from modules.intel import RoomIntel
from modules.maps.room_grid import CostMatrix, RoomTerrain
from modules.maps.world import ROOM_SIZE, Direction, RoomAdjacency
from modules.navmesh.model import MAX_EXIT_ORDINAL, ExitFeature, GridCoord, make_exit_id

logger = logging.getLogger(__name__)

# Corner tiles never connect two rooms.
EDGE_INDICES = range(1, ROOM_SIZE - 1)


@dataclass(frozen=True, slots=True)
class ExitRun:
    """A detected exit together with every edge tile it spans."""

    feature: ExitFeature
    tiles: Tuple[GridCoord, ...]

    @property
    def id(self) -> int:
        return self.feature.id

    @property
    def center(self) -> GridCoord:
        return self.feature.center


def edge_tile(direction: Direction, index: int) -> GridCoord:
    """Return the coordinates of the ``index``-th tile along an edge."""

    last = ROOM_SIZE - 1
    if direction == Direction.NORTH:
        return index, 0
    if direction == Direction.SOUTH:
        return index, last
    if direction == Direction.WEST:
        return 0, index
    return last, index


def usable_tile_mask(
    terrain: RoomTerrain,
    costs: CostMatrix,
    impassable_threshold: int,
) -> np.ndarray:
    """Return ``mask[x, y]`` of tiles that are neither walls nor too costly."""

    return ~terrain.wall_mask & (costs.as_array() < impassable_threshold)


def split_runs(usable: np.ndarray, direction: Direction) -> List[List[GridCoord]]:
    """Group the usable tiles of one edge into contiguous runs."""

    runs: List[List[GridCoord]] = []
    current: List[GridCoord] = []
    for index in EDGE_INDICES:
        x, y = edge_tile(direction, index)
        if usable[x, y]:
            current.append((x, y))
        elif current:
            runs.append(current)
            current = []
    if current:
        runs.append(current)
    return runs


def _number_runs(direction: Direction, runs: Sequence[List[GridCoord]]) -> List[ExitRun]:
    numbered: List[ExitRun] = []
    for ordinal, tiles in enumerate(runs, start=1):
        if ordinal > MAX_EXIT_ORDINAL:
            logger.warning(
                "Dropping %d exit run(s) on the %s edge beyond the first %d",
                len(runs) - MAX_EXIT_ORDINAL, direction.name.lower(), MAX_EXIT_ORDINAL,
            )
            break
        # Midpoint of the run, rounded towards its start.
        center = tiles[(len(tiles) - 1) // 2]
        feature = ExitFeature(id=make_exit_id(direction, ordinal), center=center)
        numbered.append(ExitRun(feature=feature, tiles=tuple(tiles)))
    return numbered


def direction_is_open(
    room: str,
    direction: Direction,
    world: RoomAdjacency,
    intel: Optional[RoomIntel],
) -> bool:
    """Return whether units can currently leave ``room`` through ``direction``."""

    neighbour = world.adjacent_room(room, direction)
    if neighbour is None:
        return False
    if intel is not None and not intel.rooms_are_same_access_tier(room, neighbour):
        return False
    return True


def detect_exits(
    room: str,
    terrain: RoomTerrain,
    costs: CostMatrix,
    *,
    world: RoomAdjacency,
    intel: Optional[RoomIntel] = None,
    impassable_threshold: int = 200,
) -> List[ExitRun]:
    """Detect the exit features of ``room``, ordered by id.

    Edges whose neighbour does not exist or lies in another access tier
    produce no exits at all.
    """

    usable = usable_tile_mask(terrain, costs, impassable_threshold)
    exits: List[ExitRun] = []
    for direction in Direction:
        if not direction_is_open(room, direction, world, intel):
            logger.debug("%s: %s edge closed, no exits detected", room, direction.name.lower())
            continue
        exits.extend(_number_runs(direction, split_runs(usable, direction)))
    return exits


__all__ = [
    "EDGE_INDICES",
    "ExitRun",
    "detect_exits",
    "direction_is_open",
    "edge_tile",
    "split_runs",
    "usable_tile_mask",
]
