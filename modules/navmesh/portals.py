"""Collapse a room's portal structures into one link per destination."""
from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from modules.maps.room_grid import PortalStructure
from modules.navmesh.model import GridCoord, PortalLink


def _nearest_to_centroid(tiles: List[GridCoord]) -> GridCoord:
    mean_x = sum(x for x, _ in tiles) / len(tiles)
    mean_y = sum(y for _, y in tiles) / len(tiles)
    return min(tiles, key=lambda tile: (tile[0] - mean_x) ** 2 + (tile[1] - mean_y) ** 2)


def collect_portal_links(portals: Iterable[PortalStructure]) -> Tuple[PortalLink, ...]:
    """Group portals by destination and keep the tile nearest each group's centroid.

    Links are sorted by destination so regenerated entries compare equal.
    """

    groups: Dict[Tuple[str, Optional[str]], List[GridCoord]] = defaultdict(list)
    for portal in portals:
        groups[(portal.destination_room, portal.destination_shard)].append((portal.x, portal.y))

    links = [
        PortalLink(target_room=room, position=_nearest_to_centroid(tiles), target_shard=shard)
        for (room, shard), tiles in groups.items()
    ]
    links.sort(key=lambda link: (link.target_shard or "", link.target_room))
    return tuple(links)


__all__ = ["collect_portal_links"]
