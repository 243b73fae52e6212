"""Persisted navigation mesh records and the exit id numbering scheme.

Exit ids pack an edge direction and a per-edge ordinal as
``ordinal + 20 * direction``.  Ordinals start at 1 so that id ``0`` can stand
for a region's representative point in local path tables.  Crossing a room
boundary turns north into south and east into west, which the numbering
expresses as :func:`mirror_exit_id`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from modules.maps.world import Direction, pack_coords, unpack_coords

GridCoord = Tuple[int, int]

EXIT_SLOTS_PER_DIRECTION = 20
MAX_EXIT_ORDINAL = EXIT_SLOTS_PER_DIRECTION - 1
EXIT_ID_SPACE = EXIT_SLOTS_PER_DIRECTION * len(Direction)
REPRESENTATIVE_POINT = 0
"""Pseudo exit id addressing a region's representative point."""


def make_exit_id(direction: Direction, ordinal: int) -> int:
    if not 1 <= ordinal <= MAX_EXIT_ORDINAL:
        raise ValueError(f"exit ordinal must lie between 1 and {MAX_EXIT_ORDINAL}")
    return ordinal + EXIT_SLOTS_PER_DIRECTION * int(direction)


def exit_direction(exit_id: int) -> Direction:
    return Direction(exit_id // EXIT_SLOTS_PER_DIRECTION)


def exit_ordinal(exit_id: int) -> int:
    return exit_id % EXIT_SLOTS_PER_DIRECTION


def mirror_exit_id(exit_id: int) -> int:
    """Return the id of the matching exit on the other side of the boundary."""

    return (exit_id + EXIT_ID_SPACE // 2) % EXIT_ID_SPACE


def is_valid_exit_id(exit_id: int) -> bool:
    return 0 <= exit_id < EXIT_ID_SPACE and exit_ordinal(exit_id) != 0


@dataclass(frozen=True, slots=True)
class ExitFeature:
    """A contiguous walkable run of tiles along one room edge."""

    id: int
    center: GridCoord

    def __post_init__(self) -> None:
        if not is_valid_exit_id(self.id):
            raise ValueError(f"invalid exit id {self.id}")

    @property
    def direction(self) -> Direction:
        return exit_direction(self.id)

    @property
    def ordinal(self) -> int:
        return exit_ordinal(self.id)


@dataclass(frozen=True, slots=True)
class Region:
    """A connected walkable area of a room and the exits bordering it."""

    exits: Tuple[int, ...]
    center: GridCoord
    bounding_box: Tuple[int, int, int, int]
    """``(min_x, min_y, max_x, max_y)`` of the flooded interior tiles."""

    def borders(self, exit_id: int) -> bool:
        return exit_id in self.exits


class LocalPathTable:
    """Sparse tile lengths between exits of the same region.

    Exit pairs are stored once and looked up from either side; the
    ``(exit, 0)`` entries hold the length to the region's representative
    point.
    """

    __slots__ = ("_lengths",)

    def __init__(self, lengths: Optional[Dict[Tuple[int, int], int]] = None) -> None:
        self._lengths: Dict[Tuple[int, int], int] = dict(lengths or {})

    def __len__(self) -> int:
        return len(self._lengths)

    def __iter__(self) -> Iterator[Tuple[Tuple[int, int], int]]:
        return iter(self._lengths.items())

    def __eq__(self, other: object) -> bool:
        return isinstance(other, LocalPathTable) and self._lengths == other._lengths

    def __repr__(self) -> str:
        return f"LocalPathTable({self._lengths!r})"

    def set(self, origin: int, target: int, length: int) -> None:
        if length < 0:
            raise ValueError("path length cannot be negative")
        self._lengths[(origin, target)] = int(length)

    def has_pair(self, a: int, b: int) -> bool:
        return (a, b) in self._lengths or (b, a) in self._lengths

    def lookup(self, a: int, b: int) -> Optional[int]:
        """Return the stored length between ``a`` and ``b`` in either order."""

        length = self._lengths.get((a, b))
        if length is None and b != REPRESENTATIVE_POINT:
            length = self._lengths.get((b, a))
        return length

    def to_center(self, exit_id: int) -> Optional[int]:
        return self._lengths.get((exit_id, REPRESENTATIVE_POINT))

    def to_records(self) -> List[List[int]]:
        return [[a, b, length] for (a, b), length in sorted(self._lengths.items())]

    @classmethod
    def from_records(cls, records: Iterable[Iterable[int]]) -> "LocalPathTable":
        table = cls()
        for a, b, length in records:
            table.set(int(a), int(b), int(length))
        return table


@dataclass(frozen=True, slots=True)
class PortalLink:
    """All portals of a room that lead to the same destination, as one link."""

    target_room: str
    position: GridCoord
    target_shard: Optional[str] = None

    @property
    def is_intershard(self) -> bool:
        return self.target_shard is not None


@dataclass(slots=True)
class RoomMeshEntry:
    """Everything the mesh knows about one room for one generation."""

    room: str
    generation: int
    exits: Tuple[ExitFeature, ...] = ()
    regions: Tuple[Region, ...] = ()
    local_paths: LocalPathTable = field(default_factory=LocalPathTable)
    portals: Tuple[PortalLink, ...] = ()

    @property
    def region_count(self) -> int:
        """Number of regions, counting the implicit one of single-region rooms."""

        if self.regions:
            return len(self.regions)
        return 1 if self.exits else 0

    def exit_by_id(self, exit_id: int) -> Optional[ExitFeature]:
        for exit_feature in self.exits:
            if exit_feature.id == exit_id:
                return exit_feature
        return None

    def region_for_exit(self, exit_id: int) -> Optional[Region]:
        for region in self.regions:
            if region.borders(exit_id):
                return region
        return None

    def connected_exits(self, exit_id: int) -> List[ExitFeature]:
        """Return the other exits sharing a region with ``exit_id``.

        Single-region rooms do not store regions, so every other exit counts.
        Returns an empty list when ``exit_id`` is not part of any stored region.
        """

        if not self.regions:
            return [e for e in self.exits if e.id != exit_id]
        region = self.region_for_exit(exit_id)
        if region is None:
            return []
        return [e for e in self.exits if e.id != exit_id and region.borders(e.id)]

    def exits_of_region(self, region: Optional[Region]) -> List[ExitFeature]:
        if region is None:
            return list(self.exits)
        return [e for e in self.exits if region.borders(e.id)]

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "room": self.room,
            "gen": self.generation,
            "exits": [{"id": e.id, "center": pack_coords(*e.center)} for e in self.exits],
            "paths": self.local_paths.to_records(),
        }
        if self.regions:
            data["regions"] = [
                {
                    "exits": list(r.exits),
                    "center": pack_coords(*r.center),
                    "bbox": list(r.bounding_box),
                }
                for r in self.regions
            ]
        if self.portals:
            data["portals"] = [
                {"room": p.target_room, "shard": p.target_shard, "pos": pack_coords(*p.position)}
                for p in self.portals
            ]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoomMeshEntry":
        exits = tuple(
            ExitFeature(id=int(item["id"]), center=unpack_coords(int(item["center"])))
            for item in data.get("exits", ())
        )
        regions = tuple(
            Region(
                exits=tuple(int(e) for e in item["exits"]),
                center=unpack_coords(int(item["center"])),
                bounding_box=tuple(item.get("bbox", (0, 0, 0, 0))),
            )
            for item in data.get("regions", ())
        )
        portals = tuple(
            PortalLink(
                target_room=item["room"],
                position=unpack_coords(int(item["pos"])),
                target_shard=item.get("shard"),
            )
            for item in data.get("portals", ())
        )
        return cls(
            room=data["room"],
            generation=int(data["gen"]),
            exits=exits,
            regions=regions,
            local_paths=LocalPathTable.from_records(data.get("paths", ())),
            portals=portals,
        )


__all__ = [
    "EXIT_ID_SPACE",
    "EXIT_SLOTS_PER_DIRECTION",
    "ExitFeature",
    "LocalPathTable",
    "MAX_EXIT_ORDINAL",
    "PortalLink",
    "REPRESENTATIVE_POINT",
    "Region",
    "RoomMeshEntry",
    "exit_direction",
    "exit_ordinal",
    "is_valid_exit_id",
    "make_exit_id",
    "mirror_exit_id",
]
