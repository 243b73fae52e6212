"""Room-level navigation mesh: generation, storage and cross-room search."""
from .model import ExitFeature, LocalPathTable, PortalLink, Region, RoomMeshEntry, mirror_exit_id
from .search import IncompleteReason, MeshPathfinder, PathOptions, PathResult
from .store import MeshStore
from .system import NavMesh

__all__ = [
    "ExitFeature",
    "IncompleteReason",
    "LocalPathTable",
    "MeshPathfinder",
    "MeshStore",
    "NavMesh",
    "PathOptions",
    "PathResult",
    "PortalLink",
    "Region",
    "RoomMeshEntry",
    "mirror_exit_id",
]
