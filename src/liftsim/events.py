from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Tuple

from .lift import Direction


class EventKind(str, Enum):
    STATE_CHANGE = "state-change"
    FLOOR_ARRIVAL = "floor-arrival"
    COLLECTION_COMPLETE = "collection-complete"
    DROP_COMPLETE = "drop-complete"


@dataclass(frozen=True)
class LogEntry:
    time: int
    floor: int
    kind: EventKind
    description: str
    aboard: Tuple[int, ...]
    target_id: Optional[int] = None
    direction: Optional[Direction] = None
    boarding_order: Tuple[int, ...] = ()

    @property
    def aboard_text(self) -> str:
        return ",".join(str(passenger_id) for passenger_id in self.aboard)

    @property
    def boarding_text(self) -> str:
        return ",".join(str(passenger_id) for passenger_id in self.boarding_order)


class EventLog:
    """Append-only, time-ordered record of everything the lift did."""

    def __init__(self) -> None:
        self._entries: List[LogEntry] = []

    def append(self, entry: LogEntry) -> None:
        if self._entries and entry.time < self._entries[-1].time:
            raise ValueError(
                f"Log entry at t={entry.time} precedes last entry at t={self._entries[-1].time}"
            )
        self._entries.append(entry)

    def extend(self, entries: Iterable[LogEntry]) -> None:
        for entry in entries:
            self.append(entry)

    def of_kind(self, kind: EventKind) -> List[LogEntry]:
        return [entry for entry in self._entries if entry.kind is kind]

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> LogEntry:
        return self._entries[index]


def state_change(label: str, verb: str = "changed") -> Tuple[EventKind, str]:
    return EventKind.STATE_CHANGE, f"Lift {verb} state to {label}"


def floor_arrival(floor: int) -> Tuple[EventKind, str]:
    return EventKind.FLOOR_ARRIVAL, f"Lift arrived at floor {floor}"


def collection_complete(passenger_id: int) -> Tuple[EventKind, str]:
    return EventKind.COLLECTION_COMPLETE, f"Passenger ID {passenger_id} collection completed"


def drop_complete(passenger_id: int) -> Tuple[EventKind, str]:
    return EventKind.DROP_COMPLETE, f"Passenger ID {passenger_id} drop off completed"
