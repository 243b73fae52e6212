"""Event definitions emitted by the navigation mesh."""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Protocol, runtime_checkable


ROOM_MESH_GENERATED = "navmesh.room_generated"
"""Event topic emitted after a room's mesh entry has been (re)built."""

PATH_INCOMPLETE = "navmesh.path_incomplete"
"""Event topic emitted when a mesh query ends without a path."""


@runtime_checkable
class _PublishesEvents(Protocol):
    """Protocol capturing the subset of the event bus used here."""

    def publish(self, event_type: str, **payload: object) -> None:
        """Publish an event to all subscribers."""


@dataclass(frozen=True, slots=True)
class RoomMeshGenerated:
    """Notification that ``room`` has a fresh mesh entry."""

    room: str
    generation: int
    exit_count: int
    region_count: int

    topic: ClassVar[str] = ROOM_MESH_GENERATED

    def publish(self, bus: _PublishesEvents) -> None:
        """Convenience helper mirroring ``EventBus.publish``."""

        bus.publish(
            self.topic,
            room=self.room,
            generation=self.generation,
            exit_count=self.exit_count,
            region_count=self.region_count,
        )


@dataclass(frozen=True, slots=True)
class MeshPathIncomplete:
    """Notification that a query between two positions gave up."""

    start: str
    goal: str
    reason: str
    explored: int

    topic: ClassVar[str] = PATH_INCOMPLETE

    def publish(self, bus: _PublishesEvents) -> None:
        bus.publish(self.topic, start=self.start, goal=self.goal, reason=self.reason, explored=self.explored)


__all__ = [
    "MeshPathIncomplete",
    "PATH_INCOMPLETE",
    "ROOM_MESH_GENERATED",
    "RoomMeshGenerated",
]
