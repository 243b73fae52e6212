"""Precompute tile lengths between the exits of every region."""
from __future__ import annotations

import logging
from typing import Dict, Sequence

import numpy as np

from core.pathfinding import TileSearch
from modules.navmesh.exits import ExitRun
from modules.navmesh.model import REPRESENTATIVE_POINT, GridCoord, LocalPathTable, Region

logger = logging.getLogger(__name__)


def build_local_paths(
    room: str,
    exits: Sequence[ExitRun],
    regions: Sequence[Region],
    costs: np.ndarray,
    search: TileSearch,
) -> LocalPathTable:
    """Return the local path table of a room.

    For every region this stores the length from each bordering exit to the
    representative point and, once per unordered pair, between two bordering
    exits.  Searches that cannot reach their goal leave no entry.
    """

    table = LocalPathTable()
    centers: Dict[int, GridCoord] = {run.id: run.center for run in exits}
    failures = 0

    for region in regions:
        for position, exit_id in enumerate(region.exits):
            origin = centers[exit_id]

            result = search(costs, origin, region.center)
            if result.incomplete:
                failures += 1
                logger.debug("%s: no local path from exit %d to region center %s", room, exit_id, region.center)
            else:
                table.set(exit_id, REPRESENTATIVE_POINT, result.length)

            for other_id in region.exits[position + 1:]:
                result = search(costs, origin, centers[other_id])
                if result.incomplete:
                    failures += 1
                    logger.debug("%s: no local path between exits %d and %d", room, exit_id, other_id)
                    continue
                table.set(exit_id, other_id, result.length)

    if failures:
        logger.debug("%s: %d local searches failed", room, failures)
    return table


__all__ = ["build_local_paths"]
