"""Simulation primitives for LiftSim."""

from .config import LiftConfig
from .errors import (
    CapacityExceeded,
    ConfigError,
    DispatchError,
    InputFileError,
    InvalidRequestError,
    LiftSimError,
    LogWriteError,
    TickLimitExceeded,
)
from .events import EventKind, EventLog, LogEntry
from .ledger import CallLedger
from .lift import Direction, Lift
from .request import Request, call_order
from .simulation import Simulation, SimulationResult, run_until_complete

__all__ = [
    "CallLedger",
    "CapacityExceeded",
    "ConfigError",
    "DispatchError",
    "Direction",
    "EventKind",
    "EventLog",
    "InputFileError",
    "InvalidRequestError",
    "Lift",
    "LiftConfig",
    "LiftSimError",
    "LogEntry",
    "LogWriteError",
    "Request",
    "Simulation",
    "SimulationResult",
    "TickLimitExceeded",
    "call_order",
    "run_until_complete",
]
