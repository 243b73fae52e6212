"""Tunable parameters of the navigation mesh."""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping

from config.config_loader import ConfigLoader

DEFAULT_CONFIG_FILE = "config/navmesh.yaml"


@dataclass(frozen=True, slots=True)
class NavMeshSettings:
    """Configuration bundle shared by mesh generation and mesh queries."""

    generation_interval: int = 10_000
    impassable_threshold: int = 200
    room_crossing_estimate: int = 50
    portal_cost: int = 25
    representative_search_radius: int = 25
    owned_room_multiplier: float = 5.0
    reserved_room_multiplier: float = 1.5
    dangerous_room_multiplier: float = 2.0
    cpu_budget_ms: float = 20.0
    travel_time_ttl: int = 1000
    travel_time_cache_size: int = 1000
    max_tile_search_operations: int = 4000
    plain_cost: int = 1
    swamp_cost: int = 5

    def __post_init__(self) -> None:
        if self.generation_interval < 0:
            raise ValueError("generation_interval cannot be negative")
        if not 0 < self.impassable_threshold <= 255:
            raise ValueError("impassable_threshold must lie between 1 and 255")
        for field_name, value in (
            ("room_crossing_estimate", self.room_crossing_estimate),
            ("portal_cost", self.portal_cost),
            ("travel_time_ttl", self.travel_time_ttl),
        ):
            if value < 0:
                raise ValueError(f"{field_name} cannot be negative")
        for field_name, value in (
            ("representative_search_radius", self.representative_search_radius),
            ("travel_time_cache_size", self.travel_time_cache_size),
            ("max_tile_search_operations", self.max_tile_search_operations),
            ("plain_cost", self.plain_cost),
            ("swamp_cost", self.swamp_cost),
        ):
            if value <= 0:
                raise ValueError(f"{field_name} must be positive")
        for field_name, value in (
            ("owned_room_multiplier", self.owned_room_multiplier),
            ("reserved_room_multiplier", self.reserved_room_multiplier),
            ("dangerous_room_multiplier", self.dangerous_room_multiplier),
        ):
            if value < 1.0:
                raise ValueError(f"{field_name} must be at least 1")
        if self.cpu_budget_ms < 0:
            raise ValueError("cpu_budget_ms cannot be negative")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "NavMeshSettings":
        """Build settings from a mapping, ignoring unknown keys."""

        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in values.items() if key in known})

    @classmethod
    def from_loader(cls, loader: ConfigLoader) -> "NavMeshSettings":
        return cls.from_mapping(loader.get("navmesh", default={}) or {})

    @classmethod
    def load(cls, config_file: str = DEFAULT_CONFIG_FILE) -> "NavMeshSettings":
        """Read the ``navmesh`` section of a YAML file; missing files give defaults."""

        return cls.from_loader(ConfigLoader(config_file))


__all__ = ["DEFAULT_CONFIG_FILE", "NavMeshSettings"]
