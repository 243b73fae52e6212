"""Read-only room risk information consulted while routing."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Protocol, Set, runtime_checkable

DEFAULT_ACCESS_TIER = "normal"


@runtime_checkable
class RoomIntel(Protocol):
    """Risk oracle queried by mesh generation and the mesh pathfinder."""

    def is_owned_by_non_ally(self, room: str) -> bool:
        """Return ``True`` when a player other than us or an ally controls the room."""

    def is_reserved(self, room: str) -> bool:
        """Return ``True`` when the room is reserved by someone else."""

    def is_dangerous(self, room: str) -> bool:
        """Return ``True`` when hostiles or keepers are known to be present."""

    def rooms_are_same_access_tier(self, a: str, b: str) -> bool:
        """Return ``True`` when units can cross directly between ``a`` and ``b``."""


@dataclass
class RoomReport:
    """Last known state of a single room."""

    owner: Optional[str] = None
    reserved_by: Optional[str] = None
    dangerous: bool = False
    access_tier: str = DEFAULT_ACCESS_TIER


@dataclass
class StaticRoomIntel:
    """Dictionary-backed :class:`RoomIntel` fed from scouting reports.

    Rooms without a report are treated as unowned, safe and in the default
    access tier.
    """

    player: str = "me"
    allies: Set[str] = field(default_factory=set)
    reports: Dict[str, RoomReport] = field(default_factory=dict)

    def report(self, room: str, **changes: object) -> RoomReport:
        """Create or update the report for ``room``."""

        current = self.reports.setdefault(room, RoomReport())
        for key, value in changes.items():
            if not hasattr(current, key):
                raise AttributeError(f"RoomReport has no field {key!r}")
            setattr(current, key, value)
        return current

    def _report(self, room: str) -> RoomReport:
        return self.reports.get(room) or RoomReport()

    def _is_friendly(self, player: Optional[str]) -> bool:
        return player is None or player == self.player or player in self.allies

    def is_owned_by_non_ally(self, room: str) -> bool:
        return not self._is_friendly(self._report(room).owner)

    def is_reserved(self, room: str) -> bool:
        return not self._is_friendly(self._report(room).reserved_by)

    def is_dangerous(self, room: str) -> bool:
        return self._report(room).dangerous

    def rooms_are_same_access_tier(self, a: str, b: str) -> bool:
        return self._report(a).access_tier == self._report(b).access_tier

    def known_rooms(self) -> Iterable[str]:
        return tuple(self.reports)


__all__ = ["DEFAULT_ACCESS_TIER", "RoomIntel", "RoomReport", "StaticRoomIntel"]
