"""Partition a room's walkable area into regions reachable from its exits.

Each unvisited exit seeds a breadth-first flood over 8-connected usable
tiles.  Edge tiles that belong to an exit are never expanded through, since
stepping onto them leaves the room; reaching one only attaches its exit to the
region being flooded.  Walkable pockets no exit can reach stay unlabelled.
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Sequence, Tuple

import numpy as np

from core.pathfinding import NEIGHBOUR_OFFSETS
from modules.maps.world import ROOM_SIZE
from modules.navmesh.exits import ExitRun
from modules.navmesh.model import GridCoord, Region

logger = logging.getLogger(__name__)

UNASSIGNED = -1


@dataclass
class RegionPartition:
    """Result of partitioning one room."""

    regions: List[Region]
    labels: np.ndarray
    """``labels[x, y]`` holds the region index of a tile or ``UNASSIGNED``."""
    exit_regions: Dict[int, int] = field(default_factory=dict)

    def region_of_exit(self, exit_id: int) -> Optional[Region]:
        index = self.exit_regions.get(exit_id)
        return None if index is None else self.regions[index]

    def region_at(self, x: int, y: int) -> Optional[Region]:
        index = int(self.labels[x, y])
        return None if index == UNASSIGNED else self.regions[index]

    def representative_points(self) -> Dict[int, GridCoord]:
        """Map every exit id to the representative point of its region."""

        return {exit_id: self.regions[index].center for exit_id, index in self.exit_regions.items()}

    def tiles_of(self, index: int) -> List[GridCoord]:
        xs, ys = np.nonzero(self.labels == index)
        return list(zip(xs.tolist(), ys.tolist()))


@dataclass
class _Flood:
    index: int
    exits: List[int] = field(default_factory=list)
    first_interior: Optional[GridCoord] = None
    min_x: int = ROOM_SIZE - 1
    min_y: int = ROOM_SIZE - 1
    max_x: int = 0
    max_y: int = 0

    def visit(self, x: int, y: int) -> None:
        if self.first_interior is None:
            self.first_interior = (x, y)
        self.min_x = min(self.min_x, x)
        self.min_y = min(self.min_y, y)
        self.max_x = max(self.max_x, x)
        self.max_y = max(self.max_y, y)


def _ring(cx: int, cy: int, radius: int) -> Tuple[GridCoord, ...]:
    return (
        (cx + radius, cy),
        (cx - radius, cy),
        (cx, cy + radius),
        (cx, cy - radius),
        (cx + radius, cy + radius),
        (cx + radius, cy - radius),
        (cx - radius, cy + radius),
        (cx - radius, cy - radius),
    )


def find_representative_point(
    interior: np.ndarray,
    bounding_box: Tuple[int, int, int, int],
    fallback: GridCoord,
    search_radius: int,
) -> GridCoord:
    """Pick a tile of ``interior`` close to the bounding box center.

    Candidates are probed on growing rings up to ``search_radius - 1`` tiles
    away; ``fallback`` is returned when none of them is part of the region.
    """

    min_x, min_y, max_x, max_y = bounding_box
    cx = (min_x + max_x) // 2
    cy = (min_y + max_y) // 2
    if interior[cx, cy]:
        return cx, cy

    for radius in range(1, search_radius):
        for x, y in _ring(cx, cy, radius):
            if 0 <= x < ROOM_SIZE and 0 <= y < ROOM_SIZE and interior[x, y]:
                return x, y
    return fallback


def partition_regions(
    exits: Sequence[ExitRun],
    usable: np.ndarray,
    *,
    search_radius: int = 25,
) -> RegionPartition:
    """Flood the room from its exits and describe the resulting regions."""

    labels = np.full((ROOM_SIZE, ROOM_SIZE), UNASSIGNED, dtype=np.int16)
    exit_owner = np.zeros((ROOM_SIZE, ROOM_SIZE), dtype=np.int16)
    runs_by_id: Dict[int, ExitRun] = {}
    for run in exits:
        runs_by_id[run.id] = run
        for x, y in run.tiles:
            exit_owner[x, y] = run.id

    regions: List[Region] = []
    exit_regions: Dict[int, int] = {}

    for seed in exits:
        if seed.id in exit_regions:
            continue

        flood = _Flood(index=len(regions))
        _attach_exit(seed, flood, labels, exit_regions)
        queue: Deque[GridCoord] = deque([seed.center])

        while queue:
            x, y = queue.popleft()
            for dx, dy in NEIGHBOUR_OFFSETS:
                nx, ny = x + dx, y + dy
                if not (0 <= nx < ROOM_SIZE and 0 <= ny < ROOM_SIZE):
                    continue
                if not usable[nx, ny]:
                    continue
                owner = int(exit_owner[nx, ny])
                if owner:
                    if owner not in exit_regions:
                        _attach_exit(runs_by_id[owner], flood, labels, exit_regions)
                    continue
                if labels[nx, ny] != UNASSIGNED:
                    continue
                labels[nx, ny] = flood.index
                flood.visit(nx, ny)
                queue.append((nx, ny))

        regions.append(_finish_region(flood, seed, labels, exit_owner, search_radius))

    unassigned = int(np.count_nonzero(usable & (labels == UNASSIGNED)))
    if unassigned:
        logger.debug("%d usable tiles are not reachable from any exit", unassigned)

    return RegionPartition(regions=regions, labels=labels, exit_regions=exit_regions)


def _attach_exit(
    run: ExitRun,
    flood: _Flood,
    labels: np.ndarray,
    exit_regions: Dict[int, int],
) -> None:
    exit_regions[run.id] = flood.index
    flood.exits.append(run.id)
    for x, y in run.tiles:
        labels[x, y] = flood.index


def _finish_region(
    flood: _Flood,
    seed: ExitRun,
    labels: np.ndarray,
    exit_owner: np.ndarray,
    search_radius: int,
) -> Region:
    if flood.first_interior is None:
        # Nothing but edge tiles: the seed exit is its own region.
        cx, cy = seed.center
        return Region(exits=tuple(flood.exits), center=seed.center, bounding_box=(cx, cy, cx, cy))

    bounding_box = (flood.min_x, flood.min_y, flood.max_x, flood.max_y)
    interior = (labels == flood.index) & (exit_owner == 0)
    center = find_representative_point(interior, bounding_box, flood.first_interior, search_radius)
    return Region(exits=tuple(flood.exits), center=center, bounding_box=bounding_box)


__all__ = [
    "RegionPartition",
    "UNASSIGNED",
    "find_representative_point",
    "partition_regions",
]
