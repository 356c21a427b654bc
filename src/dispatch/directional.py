from __future__ import annotations

from typing import Dict, List

from liftsim.events import (
    LogEntry,
    collection_complete,
    drop_complete,
    floor_arrival,
    state_change,
)
from liftsim.ledger import CallLedger
from liftsim.lift import Collecting, Direction, Dropping, Idle, Lift, Moving
from liftsim.request import earliest

from .utils import TickRecorder, begin_collect, begin_drop, begin_move, tick_down

IDLE = "Idle"
MOVING_UP = "MovingUp"
MOVING_DOWN = "MovingDown"
COLLECTING = "Collecting"
DROPPING = "Dropping"

STATE_VERB = "updated"


class DirectionalSweepPolicy:
    """Sweeps in one direction until nothing is left ahead, then turns round.

    While sweeping the lift stops at every floor where a passenger aboard
    wants to get out, or where a call is waiting and there is room.
    """

    name = "directional"
    log_columns = ("Time", "Floor", "Event", "LiftDirection", "PassengersInLift")

    def advance(self, lift: Lift, ledger: CallLedger, clock: int) -> List[LogEntry]:
        record = TickRecorder(lift, clock, self._annotate)
        state = lift.state
        if isinstance(state, Idle):
            self._leave_idle(lift, ledger, record)
        elif isinstance(state, Moving):
            self._travel(lift, ledger, record)
        elif isinstance(state, Collecting):
            self._finish_collecting(lift, ledger, record, state)
        elif isinstance(state, Dropping):
            self._finish_dropping(lift, ledger, record, state)
        return record.entries

    def log_row(self, entry: LogEntry) -> Dict[str, object]:
        direction = entry.direction or Direction.NONE
        return {
            "Time": entry.time,
            "Floor": entry.floor,
            "Event": entry.description,
            "LiftDirection": direction.label,
            "PassengersInLift": entry.boarding_text,
        }

    def _annotate(self, lift: Lift) -> Dict[str, object]:
        return {"direction": lift.direction}

    def _leave_idle(self, lift: Lift, ledger: CallLedger, record: TickRecorder) -> None:
        call = ledger.earliest()
        if call is None:
            return
        if call.origin_floor == lift.current_floor:
            begin_collect(lift, call, COLLECTING)
            record(state_change(COLLECTING, STATE_VERB))
            return
        lift.direction = Direction.toward(lift.current_floor, call.origin_floor)
        self._start_sweep(lift, record)

    def _travel(self, lift: Lift, ledger: CallLedger, record: TickRecorder) -> None:
        if not tick_down(lift):
            return
        lift.current_floor += lift.direction.value
        record(floor_arrival(lift.current_floor))
        if not self._serve_floor(lift, ledger, record):
            # Nothing to do here; carry on in the same direction.
            begin_move(lift, lift.state.label)

    def _finish_collecting(
        self, lift: Lift, ledger: CallLedger, record: TickRecorder, state: Collecting
    ) -> None:
        if not tick_down(lift):
            return
        lift.board(state.passenger)
        record(collection_complete(state.passenger.id))
        if self._collect_here(lift, ledger, record):
            return
        self._turn_or_continue(lift, ledger, record)

    def _finish_dropping(
        self, lift: Lift, ledger: CallLedger, record: TickRecorder, state: Dropping
    ) -> None:
        if not tick_down(lift):
            return
        lift.alight(state.passenger)
        ledger.serve(state.passenger)
        record(drop_complete(state.passenger.id))
        if not len(ledger):
            lift.state = Idle()
            lift.direction = Direction.NONE
            record(state_change(IDLE, STATE_VERB))
            return
        if self._serve_floor(lift, ledger, record):
            return
        self._turn_or_continue(lift, ledger, record)

    def _serve_floor(self, lift: Lift, ledger: CallLedger, record: TickRecorder) -> bool:
        """Start a drop, or failing that a collection, at the current floor."""
        leaving = earliest(lift.due_here())
        if leaving is not None:
            begin_drop(lift, leaving, DROPPING)
            record(state_change(DROPPING, STATE_VERB))
            return True
        return self._collect_here(lift, ledger, record)

    def _collect_here(self, lift: Lift, ledger: CallLedger, record: TickRecorder) -> bool:
        if lift.is_full():
            return False
        call = ledger.first_waiting_at(lift.current_floor, lift.passengers)
        if call is None:
            return False
        begin_collect(lift, call, COLLECTING)
        record(state_change(COLLECTING, STATE_VERB))
        return True

    def _turn_or_continue(self, lift: Lift, ledger: CallLedger, record: TickRecorder) -> None:
        if lift.direction is Direction.NONE:
            # Only reachable after collecting on the spot from Idle, so everyone
            # aboard boarded here: follow the earliest passenger.
            lead = earliest(lift.passengers.values())
            lift.direction = Direction(lead.direction)
        elif not self.work_ahead(lift, ledger):
            lift.direction = lift.direction.reversed()
        self._start_sweep(lift, record)

    def work_ahead(self, lift: Lift, ledger: CallLedger) -> bool:
        """Is there a drop, or a call the lift has room for, past this floor?"""
        step = lift.direction.value
        floor = lift.current_floor
        if any((p.dest_floor - floor) * step > 0 for p in lift.passengers.values()):
            return True
        return lift.has_room() and bool(ledger.waiting_beyond(floor, step, lift.passengers))

    def _start_sweep(self, lift: Lift, record: TickRecorder) -> None:
        label = MOVING_UP if lift.direction is Direction.UP else MOVING_DOWN
        begin_move(lift, label)
        record(state_change(label, STATE_VERB))
