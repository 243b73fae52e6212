"""Persistence of navigation mesh entries.

The store is created once at startup and handed to :class:`NavMesh`.  When
backed by a file it loads lazily on first access and writes the whole
snapshot back whenever an entry is replaced.  Entries are only ever read and
replaced as a whole.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from modules.navmesh.model import RoomMeshEntry

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class MeshStore:
    """Room-keyed store of :class:`RoomMeshEntry` records."""

    def __init__(self, path: Optional[Union[str, Path]] = None, *, autosave: bool = True) -> None:
        self._path = Path(path) if path is not None else None
        self._autosave = autosave
        self._entries: Dict[str, RoomMeshEntry] = {}
        self._loaded = self._path is None

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        if self._path is None or not self._path.exists():
            return
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                snapshot = json.load(f)
            self._entries = self._entries_from_snapshot(snapshot)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            # Start empty; rooms are regenerated on demand.
            logger.error("Ignoring unreadable mesh snapshot %s: %s", self._path, e)
            self._entries = {}
            return
        logger.info("Loaded %d mesh entries from %s", len(self._entries), self._path)

    # ------------------------------------------------------------------
    # Entry access
    # ------------------------------------------------------------------
    def get(self, room: str) -> Optional[RoomMeshEntry]:
        self._ensure_loaded()
        return self._entries.get(room)

    def put(self, entry: RoomMeshEntry) -> None:
        """Replace the entry for ``entry.room``."""

        self._ensure_loaded()
        self._entries[entry.room] = entry
        if self._autosave and self._path is not None:
            self.save()

    def drop(self, room: str) -> bool:
        self._ensure_loaded()
        removed = self._entries.pop(room, None) is not None
        if removed and self._autosave and self._path is not None:
            self.save()
        return removed

    def __contains__(self, room: object) -> bool:
        self._ensure_loaded()
        return room in self._entries

    def __len__(self) -> int:
        self._ensure_loaded()
        return len(self._entries)

    def __iter__(self) -> Iterator[RoomMeshEntry]:
        self._ensure_loaded()
        return iter(list(self._entries.values()))

    def rooms(self) -> List[str]:
        self._ensure_loaded()
        return sorted(self._entries)

    def stale_rooms(self, now: int, interval: int) -> List[str]:
        """Return rooms whose entries are at least ``interval`` ticks old."""

        self._ensure_loaded()
        return sorted(room for room, entry in self._entries.items() if now - entry.generation >= interval)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        self._ensure_loaded()
        return {
            "version": SNAPSHOT_VERSION,
            "rooms": {room: entry.to_dict() for room, entry in sorted(self._entries.items())},
        }

    @classmethod
    def from_dict(cls, snapshot: Dict[str, Any]) -> "MeshStore":
        store = cls()
        store._entries = cls._entries_from_snapshot(snapshot)
        return store

    @staticmethod
    def _entries_from_snapshot(snapshot: Dict[str, Any]) -> Dict[str, RoomMeshEntry]:
        version = snapshot.get("version")
        if version != SNAPSHOT_VERSION:
            raise ValueError(f"unsupported mesh snapshot version {version!r}")
        return {room: RoomMeshEntry.from_dict(data) for room, data in snapshot.get("rooms", {}).items()}

    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        target = Path(path) if path is not None else self._path
        if target is None:
            raise ValueError("no path configured for this mesh store")
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f)
        return target


__all__ = ["MeshStore", "SNAPSHOT_VERSION"]
