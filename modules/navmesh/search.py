"""Best-first search across rooms over precomputed navigation mesh entries.

Graph nodes are exits (and portals) of rooms; edge costs come from the local
path tables, weighted by how risky the room being crossed is.  The search is
bounded by a CPU budget that is checked every time a node is expanded, and it
reports *why* it gave up so callers can tell "no path" from "not enough time".
"""
from __future__ import annotations

import heapq
import logging
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import numpy as np

from config.settings import NavMeshSettings
from core.pathfinding import TileSearch
from modules.intel import RoomIntel
from modules.maps.room_grid import CostMatrix, RoomGridProvider, resolve_tile_costs
from modules.maps.world import RoomAdjacency, WorldPosition
from modules.navmesh.model import (
    ExitFeature,
    GridCoord,
    Region,
    RoomMeshEntry,
    exit_direction,
    mirror_exit_id,
)
from modules.navmesh.store import MeshStore

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
NodeKey = Tuple[str, GridCoord, bool]


class IncompleteReason(str, Enum):
    """Why a query ended without a path."""

    NO_MESH_DATA = "no_mesh_data"
    BUDGET_EXCEEDED = "budget_exceeded"
    PATH_TOO_LONG = "path_too_long"
    NO_PATH = "no_path"

    @property
    def is_retryable(self) -> bool:
        """``True`` when retrying later or with a larger budget may succeed."""

        return self in (IncompleteReason.NO_MESH_DATA, IncompleteReason.BUDGET_EXCEEDED)


@dataclass(frozen=True, slots=True)
class PathOptions:
    """Per-query limits.

    ``cpu_budget_ms`` falls back to the configured default when ``None``.
    """

    cpu_budget_ms: Optional[float] = None
    max_path_length: Optional[int] = None
    allow_danger: bool = False


@dataclass
class PathResult:
    """Outcome of :meth:`MeshPathfinder.find_path`."""

    path: List[WorldPosition] = field(default_factory=list)
    steps: int = 0
    reason: Optional[IncompleteReason] = None
    explored: int = 0

    @property
    def incomplete(self) -> bool:
        return self.reason is not None

    @classmethod
    def found(cls, path: List[WorldPosition], steps: int, explored: int = 0) -> "PathResult":
        return cls(path=path, steps=steps, explored=explored)

    @classmethod
    def failed(cls, reason: IncompleteReason, explored: int = 0) -> "PathResult":
        return cls(reason=reason, explored=explored)


@dataclass(slots=True)
class SearchNode:
    """One entry of the search arena; ``parent`` is an arena index."""

    room: str
    position: WorldPosition
    parent: Optional[int]
    cost: float
    steps: int
    heuristic: int
    exit_id: Optional[int] = None
    is_portal: bool = False
    portal_target: Optional[str] = None
    arrival: bool = False

    @property
    def key(self) -> NodeKey:
        # Arrivals never share a key with the exit node standing on the same tile.
        return self.room, self.position.coords, self.arrival

    @property
    def priority(self) -> float:
        return self.cost + self.heuristic


class SearchArena:
    """Append-only storage of search nodes addressed by index."""

    def __init__(self) -> None:
        self._nodes: List[SearchNode] = []

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, index: int) -> SearchNode:
        return self._nodes[index]

    def add(self, node: SearchNode) -> int:
        self._nodes.append(node)
        return len(self._nodes) - 1

    def lineage(self, index: int) -> List[SearchNode]:
        """Return the nodes from the seed down to ``index``."""

        chain: List[SearchNode] = []
        current: Optional[int] = index
        while current is not None:
            node = self._nodes[current]
            chain.append(node)
            current = node.parent
        chain.reverse()
        return chain

    def to_records(self) -> List[Dict[str, Any]]:
        """Return a JSON-friendly dump of every node, for debugging."""

        records = []
        for node in self._nodes:
            record = asdict(node)
            record["position"] = [node.position.room, node.position.x, node.position.y]
            records.append(record)
        return records


class _Query:
    """Ephemeral state of one ``find_path`` call."""

    def __init__(self, pathfinder: "MeshPathfinder", goal: WorldPosition, options: PathOptions) -> None:
        self.pathfinder = pathfinder
        self.goal = goal
        self.options = options
        self.arena = SearchArena()
        self.open_heap: List[Tuple[float, int, int]] = []
        self.closed: Set[NodeKey] = set()
        self.queued_cost: Dict[NodeKey, float] = {}
        self.goal_region: Optional[Region] = None
        self.explored = 0
        self._counter = 0
        self._grids: Dict[str, Optional[np.ndarray]] = {}
        self._lengths: Dict[Tuple[str, GridCoord, GridCoord], Optional[int]] = {}

    # Local tile searches, memoised for the duration of the call.
    def grid(self, room: str) -> Optional[np.ndarray]:
        if room not in self._grids:
            self._grids[room] = self.pathfinder.resolve_grid(room)
        return self._grids[room]

    def tile_length(self, room: str, origin: GridCoord, target: GridCoord) -> Optional[int]:
        key = (room, origin, target)
        if key not in self._lengths:
            costs = self.grid(room)
            if costs is None:
                self._lengths[key] = None
            else:
                result = self.pathfinder.tile_search(costs, origin, target)
                self._lengths[key] = None if result.incomplete else result.length
        return self._lengths[key]

    def locate_region(self, entry: RoomMeshEntry, position: WorldPosition) -> Optional[Region]:
        """Return the stored region whose representative point ``position`` reaches."""

        for region in entry.regions:
            if self.tile_length(entry.room, position.coords, region.center) is not None:
                return region
        return None

    def push(self, node: SearchNode) -> bool:
        """Queue ``node``; ``False`` when its key is closed or already queued cheaper."""

        key = node.key
        if key in self.closed:
            return False
        best = self.queued_cost.get(key)
        if best is not None and node.cost >= best:
            return False
        self.queued_cost[key] = node.cost
        index = self.arena.add(node)
        self._counter += 1
        heapq.heappush(self.open_heap, (node.priority, self._counter, index))
        return True

    def pop(self) -> Optional[int]:
        while self.open_heap:
            _, _, index = heapq.heappop(self.open_heap)
            node = self.arena[index]
            key = node.key
            if key in self.closed or node.cost > self.queued_cost[key]:
                continue
            self.closed.add(key)
            self.explored += 1
            return index
        return None


class MeshPathfinder:
    """Route between positions in different rooms using the mesh store."""

    def __init__(
        self,
        store: MeshStore,
        grids: RoomGridProvider,
        world: RoomAdjacency,
        tile_search: TileSearch,
        *,
        intel: Optional[RoomIntel] = None,
        settings: Optional[NavMeshSettings] = None,
        clock: Clock = time.perf_counter,
    ) -> None:
        self.store = store
        self.grids = grids
        self.world = world
        self.tile_search = tile_search
        self.intel = intel
        self.settings = settings or NavMeshSettings()
        self.clock = clock

    def resolve_grid(self, room: str) -> Optional[np.ndarray]:
        terrain = self.grids.get_terrain(room)
        if terrain is None:
            return None
        costs = self.grids.get_cost_matrix(room) or CostMatrix()
        return resolve_tile_costs(
            terrain,
            costs,
            plain_cost=self.settings.plain_cost,
            swamp_cost=self.settings.swamp_cost,
        )

    def heuristic(self, room: str, goal_room: str) -> int:
        crossings = max(0, self.world.linear_room_distance(room, goal_room) - 1)
        return crossings * self.settings.room_crossing_estimate

    def cost_multiplier(self, room: str) -> float:
        """Weight applied to lengths inside ``room``; never below 1."""

        if self.intel is None:
            return 1.0
        multiplier = 1.0
        if self.intel.is_owned_by_non_ally(room):
            multiplier *= self.settings.owned_room_multiplier
        elif self.intel.is_reserved(room):
            multiplier *= self.settings.reserved_room_multiplier
        if self.intel.is_dangerous(room):
            multiplier *= self.settings.dangerous_room_multiplier
        return multiplier

    def is_forbidden(self, room: str, options: PathOptions) -> bool:
        return (
            not options.allow_danger
            and self.intel is not None
            and self.intel.is_owned_by_non_ally(room)
        )

    # ------------------------------------------------------------------
    # Query entry point
    # ------------------------------------------------------------------
    def find_path(
        self,
        start: WorldPosition,
        goal: WorldPosition,
        options: Optional[PathOptions] = None,
    ) -> PathResult:
        options = options or PathOptions()
        budget_ms = options.cpu_budget_ms if options.cpu_budget_ms is not None else self.settings.cpu_budget_ms
        started = self.clock()

        start_entry = self.store.get(start.room)
        if start_entry is None:
            logger.debug("No mesh data for start room %s", start.room)
            return PathResult.failed(IncompleteReason.NO_MESH_DATA)

        query = _Query(self, goal, options)
        start_region = query.locate_region(start_entry, start) if start_entry.regions else None
        goal_entry = start_entry if goal.room == start.room else self.store.get(goal.room)
        if goal_entry is not None and goal_entry.regions:
            query.goal_region = query.locate_region(goal_entry, goal)

        if start.room == goal.room:
            direct = self._same_room_path(query, start_entry, start, goal, start_region)
            if direct is not None:
                return direct

        self._seed(query, start_entry, start, start_region)

        while True:
            index = query.pop()
            if index is None:
                break
            elapsed_ms = (self.clock() - started) * 1000.0
            if elapsed_ms > budget_ms:
                logger.debug("Mesh search %s -> %s over budget after %d nodes", start, goal, query.explored)
                return PathResult.failed(IncompleteReason.BUDGET_EXCEEDED, query.explored)

            node = query.arena[index]
            if options.max_path_length is not None and node.steps > options.max_path_length:
                logger.debug("Mesh search %s -> %s exceeded %d steps", start, goal, options.max_path_length)
                return PathResult.failed(IncompleteReason.PATH_TOO_LONG, query.explored)

            if node.arrival:
                return PathResult.found(self._pluck_path(query.arena, index, start), node.steps, query.explored)

            self._expand(query, index, node)

        return PathResult.failed(IncompleteReason.NO_PATH, query.explored)

    # ------------------------------------------------------------------
    # Search steps
    # ------------------------------------------------------------------
    def _same_room_path(
        self,
        query: _Query,
        entry: RoomMeshEntry,
        start: WorldPosition,
        goal: WorldPosition,
        start_region: Optional[Region],
    ) -> Optional[PathResult]:
        if start == goal:
            return PathResult.found([start], 0)
        if entry.regions and (start_region is None or start_region != query.goal_region):
            return None

        length = self._exit_pair_length(entry, start.coords, goal.coords)
        if length is None:
            length = query.tile_length(start.room, start.coords, goal.coords)
        if length is None:
            return None
        return PathResult.found([start, goal], length)

    @staticmethod
    def _exit_pair_length(entry: RoomMeshEntry, origin: GridCoord, target: GridCoord) -> Optional[int]:
        origin_exit = next((e for e in entry.exits if e.center == origin), None)
        target_exit = next((e for e in entry.exits if e.center == target), None)
        if origin_exit is None or target_exit is None:
            return None
        return entry.local_paths.lookup(origin_exit.id, target_exit.id)

    def _seed(
        self,
        query: _Query,
        entry: RoomMeshEntry,
        start: WorldPosition,
        start_region: Optional[Region],
    ) -> None:
        if entry.regions and start_region is None:
            candidates: List[ExitFeature] = []
        else:
            candidates = entry.exits_of_region(start_region)

        heuristic = self.heuristic(start.room, query.goal.room)
        has_grid = query.grid(start.room) is not None
        for exit_feature in candidates:
            if has_grid:
                length = query.tile_length(start.room, start.coords, exit_feature.center)
            else:
                # No tiles to search; assume the walk to the region center.
                length = entry.local_paths.to_center(exit_feature.id)
                if length is None:
                    length = self.settings.room_crossing_estimate
            if length is None:
                continue
            query.push(SearchNode(
                room=start.room,
                position=WorldPosition(start.room, *exit_feature.center),
                parent=None,
                cost=length,
                steps=length,
                heuristic=heuristic,
                exit_id=exit_feature.id,
            ))

        for link in entry.portals:
            if link.is_intershard:
                continue
            query.push(SearchNode(
                room=start.room,
                position=WorldPosition(start.room, *link.position),
                parent=None,
                cost=self.settings.portal_cost,
                steps=self.settings.portal_cost,
                heuristic=heuristic,
                is_portal=True,
                portal_target=link.target_room,
            ))

    def _expand(self, query: _Query, index: int, node: SearchNode) -> None:
        if node.is_portal:
            next_room = node.portal_target
            entry_exit = None
        else:
            next_room = self.world.adjacent_room(node.room, exit_direction(node.exit_id))
            entry_exit = mirror_exit_id(node.exit_id)
        if next_room is None:
            return

        next_entry = self.store.get(next_room)
        if next_entry is None:
            return
        if self.is_forbidden(next_room, query.options):
            return

        if entry_exit is not None:
            entry_feature = next_entry.exit_by_id(entry_exit)
            if entry_feature is None:
                return
            entry_key = (next_room, entry_feature.center, False)
            if entry_key in query.closed:
                return
            query.closed.add(entry_key)

        multiplier = self.cost_multiplier(next_room)

        if next_room == query.goal.room and self._push_arrival(query, index, node, next_entry, entry_exit, multiplier):
            return

        heuristic = self.heuristic(next_room, query.goal.room)
        if entry_exit is not None:
            successors = next_entry.connected_exits(entry_exit)
        else:
            successors = list(next_entry.exits)

        for exit_feature in successors:
            if entry_exit is not None:
                length = next_entry.local_paths.lookup(entry_exit, exit_feature.id)
            else:
                length = next_entry.local_paths.to_center(exit_feature.id)
            if length is None:
                continue
            query.push(SearchNode(
                room=next_room,
                position=WorldPosition(next_room, *exit_feature.center),
                parent=index,
                cost=node.cost + length * multiplier,
                steps=node.steps + length,
                heuristic=heuristic,
                exit_id=exit_feature.id,
            ))

        for link in next_entry.portals:
            if link.is_intershard:
                continue
            if node.is_portal and link.target_room == node.room:
                continue
            length = self.settings.portal_cost
            query.push(SearchNode(
                room=next_room,
                position=WorldPosition(next_room, *link.position),
                parent=index,
                cost=node.cost + length * multiplier,
                steps=node.steps + length,
                heuristic=heuristic,
                is_portal=True,
                portal_target=link.target_room,
            ))

    def _push_arrival(
        self,
        query: _Query,
        index: int,
        node: SearchNode,
        goal_entry: RoomMeshEntry,
        entry_exit: Optional[int],
        multiplier: float,
    ) -> bool:
        """Queue the final hop into the goal room; ``False`` if nothing was queued."""

        goal = query.goal
        if entry_exit is None:
            length: Optional[int] = self.settings.portal_cost
        else:
            if query.goal_region is not None and not query.goal_region.borders(entry_exit):
                return False
            length = goal_entry.local_paths.to_center(entry_exit)
            if length is None:
                entry_center = goal_entry.exit_by_id(entry_exit).center
                length = query.tile_length(goal.room, entry_center, goal.coords)
        if length is None:
            return False

        return query.push(SearchNode(
            room=goal.room,
            position=goal,
            parent=index,
            cost=node.cost + length * multiplier,
            steps=node.steps + length,
            heuristic=0,
            exit_id=entry_exit,
            arrival=True,
        ))

    @staticmethod
    def _pluck_path(arena: SearchArena, index: int, start: WorldPosition) -> List[WorldPosition]:
        path = [start]
        for node in arena.lineage(index):
            if node.position != path[-1]:
                path.append(node.position)
        return path


__all__ = [
    "IncompleteReason",
    "MeshPathfinder",
    "PathOptions",
    "PathResult",
    "SearchArena",
    "SearchNode",
]
