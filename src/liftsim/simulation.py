from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional

from .config import LiftConfig
from .errors import InvalidRequestError, TickLimitExceeded
from .events import EventKind, EventLog, LogEntry
from .ledger import CallLedger
from .lift import Lift
from .request import Request

if TYPE_CHECKING:  # pragma: no cover - import cycle safe typing
    from dispatch.interface import DispatchPolicy

logger = logging.getLogger(__name__)

DEFAULT_TICK_LIMIT = 10000


@dataclass
class SimulationResult:
    total_seconds: int
    log: EventLog
    served: List[Request]


def validate_requests(requests: Iterable[Request]) -> List[Request]:
    """Reject the whole batch if any request is unusable."""
    validated: List[Request] = []
    seen = set()
    for request in requests:
        if request.id <= 0:
            raise InvalidRequestError(f"Passenger ID must be positive, got {request.id}")
        if request.id in seen:
            raise InvalidRequestError(f"Duplicate passenger ID {request.id}")
        if request.release_time < 0:
            raise InvalidRequestError(
                f"Passenger {request.id} has a negative release time {request.release_time}"
            )
        if request.is_troll:
            raise InvalidRequestError(
                f"Troll found: passenger {request.id} has the same start and destination floors."
            )
        seen.add(request.id)
        validated.append(request)
    return validated


class Simulation:
    """Single lift run, advanced one simulated second per ``step``.

    The simulation owns its lift, ledger and log; nothing is shared between
    instances.
    """

    def __init__(
        self,
        requests: Iterable[Request],
        policy: "DispatchPolicy",
        config: Optional[LiftConfig] = None,
        tick_limit: int = DEFAULT_TICK_LIMIT,
    ) -> None:
        self.requests = validate_requests(requests)
        self.policy = policy
        self.config = config or LiftConfig()
        self.tick_limit = tick_limit
        self.lift = Lift.from_config(self.config)
        self.ledger = CallLedger()
        self.log = EventLog()
        self.current_time: int = 0
        self.event_hooks: Dict[str, List[Callable[[object], None]]] = {}
        self._unreleased: Dict[int, List[Request]] = defaultdict(list)
        for request in self.requests:
            self._unreleased[request.release_time].append(request)

    @property
    def finished(self) -> bool:
        return len(self.ledger.served) == len(self.requests)

    @property
    def elapsed(self) -> int:
        """Time of the last tick processed (0 before the first tick)."""
        return max(self.current_time - 1, 0)

    def run(self) -> SimulationResult:
        logger.info(
            "Running %d requests with the %s policy (tick limit %d)",
            len(self.requests),
            self.policy.name,
            self.tick_limit,
        )
        while not self.finished:
            if self.current_time >= self.tick_limit:
                logger.error(
                    "Tick limit %d reached with %d of %d passengers served",
                    self.tick_limit,
                    len(self.ledger.served),
                    len(self.requests),
                )
                raise TickLimitExceeded(self.tick_limit, len(self.ledger.served), len(self.requests))
            self.step()
        logger.info("All %d passengers served at t=%d", len(self.requests), self.elapsed)
        return SimulationResult(
            total_seconds=self.elapsed, log=self.log, served=list(self.ledger.served)
        )

    def step(self) -> List[LogEntry]:
        released = self.ledger.release(self._unreleased.pop(self.current_time, []))
        if released:
            logger.debug(
                "t=%d released %s", self.current_time, [request.id for request in released]
            )
            self._emit("release", {"time": self.current_time, "ids": [r.id for r in released]})

        entries = self.policy.advance(self.lift, self.ledger, self.current_time)
        self.log.extend(entries)
        for entry in entries:
            if entry.kind is EventKind.DROP_COMPLETE:
                logger.debug("t=%d %s at floor %d", entry.time, entry.description, entry.floor)
                self._emit("served", entry)
        if entries:
            self._emit("log", entries)

        self.current_time += 1
        return entries

    def on_event(self, event: str, callback: Callable[[object], None]) -> None:
        self.event_hooks.setdefault(event, []).append(callback)

    def snapshot(self) -> dict:
        target = self.lift.committed_target
        evacuee = self.lift.emergency_target
        return {
            "time": self.elapsed,
            "policy": self.policy.name,
            "floor": self.lift.current_floor,
            "state": self.lift.state.label,
            "direction": self.lift.direction.label,
            "target": target.id if target is not None else 0,
            "evacuee": evacuee.id if evacuee is not None else None,
            "aboard": list(self.lift.aboard_ids()),
            "open_calls": [request.id for request in self.ledger],
            "served": len(self.ledger.served),
            "total": len(self.requests),
            "finished": self.finished,
        }

    def _emit(self, event: str, payload: object) -> None:
        for callback in self.event_hooks.get(event, []):
            callback(payload)


def run_until_complete(
    requests: Iterable[Request],
    policy: "DispatchPolicy",
    tick_limit: int = DEFAULT_TICK_LIMIT,
    config: Optional[LiftConfig] = None,
) -> SimulationResult:
    return Simulation(requests, policy, config=config, tick_limit=tick_limit).run()
