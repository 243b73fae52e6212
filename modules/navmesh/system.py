"""Navigation mesh facade: room generation and cross-room queries."""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Tuple

from config.settings import NavMeshSettings
from core.cache import TickCache
from core.pathfinding import TileSearch, bounded_search
from modules.intel import RoomIntel
from modules.maps.room_grid import CostMatrix, RoomGridProvider, RoomTerrain, resolve_tile_costs
from modules.maps.world import RoomAdjacency, WorldPosition
from modules.navmesh.events import MeshPathIncomplete, RoomMeshGenerated
from modules.navmesh.exits import detect_exits, usable_tile_mask
from modules.navmesh.local_paths import build_local_paths
from modules.navmesh.model import RoomMeshEntry
from modules.navmesh.portals import collect_portal_links
from modules.navmesh.regions import partition_regions
from modules.navmesh.search import MeshPathfinder, PathOptions, PathResult
from modules.navmesh.store import MeshStore
from utils.logger import get_navmesh_logger, log_calls

logger = logging.getLogger(__name__)

TravelKey = Tuple[str, int, str, int]


class NavMesh:
    """Owns the mesh store and answers navigation queries against it.

    Args:
        store: Where room entries are kept between calls.
        grids: Source of terrain, cost matrices and portals.
        world: Room adjacency and distances.
        intel: Optional room risk oracle; without it every room is safe.
        settings: Tunables, defaults when omitted.
        search: Tile search used for local paths, bounded by
            ``settings.max_tile_search_operations`` when omitted.
        event_bus: Optional bus receiving generation and failure events.
        clock: Wall clock in seconds used for the query CPU budget.
    """

    def __init__(
        self,
        store: MeshStore,
        grids: RoomGridProvider,
        world: RoomAdjacency,
        *,
        intel: Optional[RoomIntel] = None,
        settings: Optional[NavMeshSettings] = None,
        search: Optional[TileSearch] = None,
        event_bus: Optional[object] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        get_navmesh_logger()
        self.store = store
        self.grids = grids
        self.world = world
        self.intel = intel
        self.settings = settings or NavMeshSettings()
        self.search = search or bounded_search(self.settings.max_tile_search_operations)
        self.event_bus = event_bus
        self.pathfinder = MeshPathfinder(
            store,
            grids,
            world,
            self.search,
            intel=intel,
            settings=self.settings,
            clock=clock,
        )
        self._travel_times: TickCache[Optional[int]] = TickCache(
            self.settings.travel_time_ttl,
            max_size=self.settings.travel_time_cache_size,
        )

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------
    def needs_refresh(self, room: str, now: int) -> bool:
        entry = self.store.get(room)
        return entry is None or now - entry.generation >= self.settings.generation_interval

    @log_calls
    def generate_or_refresh(self, room: str, now: int, force: bool = False) -> bool:
        """Rebuild the entry of ``room`` when missing, stale or ``force`` is set.

        Returns ``True`` when a new entry was stored.  Rooms without terrain
        data are skipped.
        """

        if not force and not self.needs_refresh(room, now):
            return False

        terrain = self.grids.get_terrain(room)
        if terrain is None:
            logger.debug("%s: no terrain available, mesh not generated", room)
            return False
        matrix = self.grids.get_cost_matrix(room)
        # Generation works on a private copy of the cost matrix.
        costs = matrix.clone() if matrix is not None else CostMatrix()

        entry = self.build_entry(room, now, terrain, costs)
        self.store.put(entry)
        logger.info(
            "%s: mesh generated at tick %d (%d exits, %d regions)",
            room, now, len(entry.exits), entry.region_count,
        )
        if self.event_bus is not None:
            RoomMeshGenerated(
                room=room,
                generation=now,
                exit_count=len(entry.exits),
                region_count=entry.region_count,
            ).publish(self.event_bus)
        return True

    def build_entry(self, room: str, now: int, terrain: RoomTerrain, costs: CostMatrix) -> RoomMeshEntry:
        """Compute a fresh :class:`RoomMeshEntry` without storing it."""

        settings = self.settings
        runs = detect_exits(
            room,
            terrain,
            costs,
            world=self.world,
            intel=self.intel,
            impassable_threshold=settings.impassable_threshold,
        )
        usable = usable_tile_mask(terrain, costs, settings.impassable_threshold)
        partition = partition_regions(runs, usable, search_radius=settings.representative_search_radius)
        logger.debug("%s: %d exits in %d regions", room, len(runs), len(partition.regions))

        tile_costs = resolve_tile_costs(
            terrain,
            costs,
            plain_cost=settings.plain_cost,
            swamp_cost=settings.swamp_cost,
        )
        local_paths = build_local_paths(room, runs, partition.regions, tile_costs, self.search)

        return RoomMeshEntry(
            room=room,
            generation=now,
            exits=tuple(run.feature for run in runs),
            regions=tuple(partition.regions) if len(partition.regions) > 1 else (),
            local_paths=local_paths,
            portals=collect_portal_links(self.grids.get_portals(room)),
        )

    def refresh_stale(self, now: int) -> int:
        """Regenerate every stored room whose entry has aged out."""

        refreshed = 0
        for room in self.store.stale_rooms(now, self.settings.generation_interval):
            if self.generate_or_refresh(room, now):
                refreshed += 1
        return refreshed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def find_path(
        self,
        start: WorldPosition,
        goal: WorldPosition,
        options: Optional[PathOptions] = None,
    ) -> PathResult:
        result = self.pathfinder.find_path(start, goal, options)
        if result.incomplete:
            logger.debug("Path %s -> %s incomplete: %s", start, goal, result.reason.value)
            if self.event_bus is not None:
                MeshPathIncomplete(
                    start=str(start),
                    goal=str(goal),
                    reason=result.reason.value,
                    explored=result.explored,
                ).publish(self.event_bus)
        return result

    def estimate_travel_time(self, start: WorldPosition, goal: WorldPosition, now: int) -> Optional[int]:
        """Return the step count between two positions, or ``None`` without a path.

        Answers are cached for ``travel_time_ttl`` ticks.  Failures that may
        succeed on a later attempt are never cached.
        """

        key: TravelKey = (start.room, start.pack(), goal.room, goal.pack())

        def _compute() -> Tuple[Optional[int], bool]:
            result = self.find_path(start, goal)
            if result.incomplete:
                return None, not result.reason.is_retryable
            return result.steps, True

        return self._travel_times.get_or_compute(key, now, _compute)

    def collect_garbage(self, now: int) -> int:
        """Drop expired travel time estimates."""

        return self._travel_times.collect_garbage(now)


__all__ = ["NavMesh"]
