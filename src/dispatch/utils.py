from __future__ import annotations

from dataclasses import replace
from typing import Callable, Dict, List, Tuple

from liftsim.errors import CapacityExceeded
from liftsim.events import EventKind, LogEntry
from liftsim.lift import Collecting, Dropping, Lift, Moving
from liftsim.request import Request


class TickRecorder:
    """Collects the log entries produced while a policy advances one tick.

    Each entry snapshots the lift's floor and passengers at the moment it is
    recorded; ``annotate`` adds the policy-specific columns.
    """

    def __init__(self, lift: Lift, clock: int, annotate: Callable[[Lift], Dict[str, object]]) -> None:
        self.lift = lift
        self.clock = clock
        self.annotate = annotate
        self.entries: List[LogEntry] = []

    def __call__(self, event: Tuple[EventKind, str]) -> None:
        kind, description = event
        self.entries.append(
            LogEntry(
                time=self.clock,
                floor=self.lift.current_floor,
                kind=kind,
                description=description,
                aboard=self.lift.aboard_ids(),
                boarding_order=tuple(self.lift.passengers),
                **self.annotate(self.lift),
            )
        )


def tick_down(lift: Lift) -> bool:
    """Spend one tick on the current timed action.

    Returns True when the action completes on this tick, False while it is
    still counting down.
    """
    state = lift.state
    if state.countdown > 0:
        lift.state = replace(state, countdown=state.countdown - 1)
        return False
    return True


def begin_move(lift: Lift, label: str) -> None:
    lift.state = Moving(label, countdown=lift.floor_travel_time - 1)


def begin_collect(lift: Lift, passenger: Request, label: str) -> None:
    if not lift.has_room():
        raise CapacityExceeded(
            f"Refusing to start collecting passenger {passenger.id}: lift is full"
        )
    lift.state = Collecting(label, passenger, countdown=lift.collection_time - 1)


def begin_drop(lift: Lift, passenger: Request, label: str) -> None:
    lift.state = Dropping(label, passenger, countdown=lift.drop_time - 1)


def nearest_drop(lift: Lift) -> Request:
    """Passenger aboard whose destination is closest to the current floor, lowest id on ties."""
    floor = lift.current_floor
    return min(lift.passengers.values(), key=lambda p: (abs(p.dest_floor - floor), p.id))
