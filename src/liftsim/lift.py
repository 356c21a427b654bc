from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from .config import LiftConfig
from .errors import CapacityExceeded
from .request import Request


class Direction(Enum):
    NONE = 0
    UP = 1
    DOWN = -1

    @property
    def label(self) -> str:
        return self.name.capitalize()

    def reversed(self) -> "Direction":
        if self is Direction.UP:
            return Direction.DOWN
        if self is Direction.DOWN:
            return Direction.UP
        return Direction.NONE

    @classmethod
    def toward(cls, from_floor: int, to_floor: int) -> "Direction":
        if to_floor > from_floor:
            return cls.UP
        if to_floor < from_floor:
            return cls.DOWN
        return cls.NONE


# Lift states. Each variant carries only the fields that matter while the lift
# is in it; ``countdown`` is the number of ticks left before the action
# completes, and completion happens on the tick it is found at zero.


@dataclass(frozen=True)
class Idle:
    label: str = "Idle"


@dataclass(frozen=True)
class Moving:
    label: str
    countdown: int


@dataclass(frozen=True)
class Retreating:
    """Emergency detour toward the nearest drop while the lift is full."""

    evacuee: Request
    countdown: int
    label: str = "EmergencyRetreating"


@dataclass(frozen=True)
class Collecting:
    label: str
    passenger: Request
    countdown: int


@dataclass(frozen=True)
class Dropping:
    label: str
    passenger: Request
    countdown: int


LiftState = Union[Idle, Moving, Retreating, Collecting, Dropping]


@dataclass
class Lift:
    """Position, load and state of the single lift being simulated."""

    capacity: Optional[int] = 8
    current_floor: int = 1
    floor_travel_time: int = 10
    collection_time: int = 5
    drop_time: int = 5
    passengers: Dict[int, Request] = field(default_factory=dict)
    state: LiftState = field(default_factory=Idle)
    committed_target: Optional[Request] = None
    direction: Direction = Direction.NONE

    @classmethod
    def from_config(cls, config: LiftConfig) -> "Lift":
        return cls(
            capacity=config.capacity,
            current_floor=config.start_floor,
            floor_travel_time=config.floor_travel_time,
            collection_time=config.collection_time,
            drop_time=config.drop_time,
        )

    @property
    def load(self) -> int:
        return len(self.passengers)

    @property
    def emergency_target(self) -> Optional[Request]:
        state = self.state
        if isinstance(state, Retreating):
            return state.evacuee
        if isinstance(state, Dropping) and state.label == "EmergencyDropping":
            return state.passenger
        return None

    def has_room(self) -> bool:
        """The one capacity check every collection path goes through."""
        return self.capacity is None or self.load < self.capacity

    def is_full(self) -> bool:
        return not self.has_room()

    def carries(self, request: Optional[Request]) -> bool:
        return request is not None and request.id in self.passengers

    def board(self, request: Request) -> None:
        if request.origin_floor != self.current_floor:
            raise ValueError(
                f"Passenger {request.id} boards at floor {request.origin_floor}, "
                f"lift is at floor {self.current_floor}"
            )
        if not self.has_room():
            raise CapacityExceeded(
                f"Cannot board passenger {request.id}: lift is at capacity {self.capacity}"
            )
        self.passengers[request.id] = request

    def alight(self, request: Request) -> None:
        if request.dest_floor != self.current_floor:
            raise ValueError(
                f"Passenger {request.id} alights at floor {request.dest_floor}, "
                f"lift is at floor {self.current_floor}"
            )
        del self.passengers[request.id]

    def due_here(self) -> Tuple[Request, ...]:
        """Passengers aboard whose destination is the current floor."""
        return tuple(p for p in self.passengers.values() if p.dest_floor == self.current_floor)

    def step_toward(self, floor: int) -> None:
        if self.current_floor < floor:
            self.current_floor += 1
        elif self.current_floor > floor:
            self.current_floor -= 1

    def aboard_ids(self) -> Tuple[int, ...]:
        return tuple(sorted(self.passengers))
