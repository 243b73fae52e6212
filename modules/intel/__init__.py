"""Room risk oracle used by the navigation mesh."""
from .system import DEFAULT_ACCESS_TIER, RoomIntel, RoomReport, StaticRoomIntel

__all__ = [
    "DEFAULT_ACCESS_TIER",
    "RoomIntel",
    "RoomReport",
    "StaticRoomIntel",
]
