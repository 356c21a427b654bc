from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

from .errors import ConfigError


@dataclass
class LiftConfig:
    """Lift start position, timings (in simulated seconds) and capacity.

    ``capacity=None`` selects the capacity-less lift, which never refuses a
    collection and never needs an emergency retreat.
    """

    start_floor: int = 1
    floor_travel_time: int = 10
    collection_time: int = 5
    drop_time: int = 5
    capacity: Optional[int] = 8

    def __post_init__(self) -> None:
        for name in ("floor_travel_time", "collection_time", "drop_time"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 1:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        if not isinstance(self.start_floor, int):
            raise ConfigError(f"start_floor must be an integer, got {self.start_floor!r}")
        if self.capacity is not None and (not isinstance(self.capacity, int) or self.capacity < 1):
            raise ConfigError(f"capacity must be a positive integer or None, got {self.capacity!r}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LiftConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        return cls(**data)
