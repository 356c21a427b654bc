from __future__ import annotations

from typing import Dict, List, Protocol, Tuple

from liftsim.events import LogEntry
from liftsim.ledger import CallLedger
from liftsim.lift import Lift


class DispatchPolicy(Protocol):
    """Strategy interface deciding what the lift does on each tick."""

    name: str
    log_columns: Tuple[str, ...]

    def advance(self, lift: Lift, ledger: CallLedger, clock: int) -> List[LogEntry]:
        """
        Advance ``lift`` by one simulated second at time ``clock``.

        Implementations mutate the lift (position, passengers, state) and the
        ledger (serving dropped passengers) in place and return the log
        entries produced during the tick, in order.
        """
        ...

    def log_row(self, entry: LogEntry) -> Dict[str, object]:
        """Return ``entry`` keyed by ``log_columns`` for the CSV/JSON log."""
        ...
