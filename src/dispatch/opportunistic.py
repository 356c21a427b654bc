from __future__ import annotations

from typing import Dict, List

from liftsim.errors import DispatchError
from liftsim.events import (
    LogEntry,
    collection_complete,
    drop_complete,
    floor_arrival,
    state_change,
)
from liftsim.ledger import CallLedger
from liftsim.lift import Collecting, Dropping, Idle, Lift, Moving, Retreating
from liftsim.request import Request, earliest

from .utils import (
    TickRecorder,
    begin_collect,
    begin_drop,
    begin_move,
    nearest_drop,
    tick_down,
)

IDLE = "Idle"
MOVING_TO_COLLECT = "MovingToCollect"
MOVING_TO_DROP = "MovingToDrop"
COLLECTING = "Collecting"
DROPPING = "Dropping"
COLLECTING_EXTRA = "CollectingExtra"
DROPPING_EXTRA = "DroppingExtra"
EMERGENCY_RETREATING = "EmergencyRetreating"
EMERGENCY_DROPPING = "EmergencyDropping"
EMERGENCY_RETURNING = "EmergencyReturning"


class OpportunisticFifoPolicy:
    """Serves one committed target at a time, in release order.

    On the way to collecting and dropping the target, every floor the lift
    stands at is checked for side work. Highest priority first:

    1. drop the target if it is aboard and this is its destination;
    2. drop any other passenger whose destination is this floor;
    3. collect the target if this is its origin floor;
    4. collect any other call waiting here, if there is room.

    Arriving at the target's origin with a full lift starts an emergency
    retreat: the lift drops the passenger with the nearest destination and
    comes straight back for the target, doing nothing else on the way.
    """

    name = "opportunistic"
    log_columns = ("Time", "Floor", "Event", "TargetPassenger", "PassengersInLift")

    def advance(self, lift: Lift, ledger: CallLedger, clock: int) -> List[LogEntry]:
        record = TickRecorder(lift, clock, self._annotate)
        state = lift.state
        if isinstance(state, Idle):
            self._leave_idle(lift, ledger, record)
        elif isinstance(state, Retreating):
            self._retreat(lift, record, state)
        elif isinstance(state, Moving):
            self._travel(lift, ledger, record, state)
        elif isinstance(state, Collecting):
            self._finish_collecting(lift, ledger, record, state)
        elif isinstance(state, Dropping):
            self._finish_dropping(lift, ledger, record, state)
        return record.entries

    def log_row(self, entry: LogEntry) -> Dict[str, object]:
        return {
            "Time": entry.time,
            "Floor": entry.floor,
            "Event": entry.description,
            "TargetPassenger": entry.target_id or 0,
            "PassengersInLift": entry.aboard_text,
        }

    def _annotate(self, lift: Lift) -> Dict[str, object]:
        target = lift.committed_target
        return {"target_id": target.id if target is not None else 0}

    # -- state handlers -------------------------------------------------

    def _leave_idle(self, lift: Lift, ledger: CallLedger, record: TickRecorder) -> None:
        target = ledger.earliest()
        if target is None:
            return
        self._commit(lift, target, record)
        if target.origin_floor == lift.current_floor:
            record(floor_arrival(lift.current_floor))
        self._decide(lift, ledger, record)

    def _travel(self, lift: Lift, ledger: CallLedger, record: TickRecorder, state: Moving) -> None:
        if not tick_down(lift):
            return
        lift.step_toward(self._heading(lift))
        record(floor_arrival(lift.current_floor))
        if state.label == EMERGENCY_RETURNING:
            if lift.current_floor != self._heading(lift):
                begin_move(lift, EMERGENCY_RETURNING)
            else:
                # The seat freed by the detour is still free; no state-change row.
                begin_collect(lift, self._target(lift), COLLECTING)
            return
        self._decide(lift, ledger, record)

    def _retreat(self, lift: Lift, record: TickRecorder, state: Retreating) -> None:
        if not tick_down(lift):
            return
        evacuee = state.evacuee
        lift.step_toward(evacuee.dest_floor)
        record(floor_arrival(lift.current_floor))
        if lift.current_floor == evacuee.dest_floor:
            begin_drop(lift, evacuee, EMERGENCY_DROPPING)
            record(state_change(EMERGENCY_DROPPING))
        else:
            lift.state = Retreating(evacuee, countdown=lift.floor_travel_time - 1)

    def _finish_collecting(
        self, lift: Lift, ledger: CallLedger, record: TickRecorder, state: Collecting
    ) -> None:
        if not tick_down(lift):
            return
        lift.board(state.passenger)
        record(collection_complete(state.passenger.id))
        self._decide(lift, ledger, record)

    def _finish_dropping(
        self, lift: Lift, ledger: CallLedger, record: TickRecorder, state: Dropping
    ) -> None:
        if not tick_down(lift):
            return
        passenger = state.passenger
        lift.alight(passenger)
        ledger.serve(passenger)
        record(drop_complete(passenger.id))

        if state.label == EMERGENCY_DROPPING:
            self._move(lift, EMERGENCY_RETURNING, record)
            return

        target = lift.committed_target
        if target is not None and target.id == passenger.id:
            lift.committed_target = None
            next_target = ledger.earliest()
            if next_target is None:
                lift.state = Idle()
                record(state_change(IDLE))
                return
            self._commit(lift, next_target, record)
        self._decide(lift, ledger, record)

    # -- decisions ------------------------------------------------------

    def _commit(self, lift: Lift, target: Request, record: TickRecorder) -> None:
        lift.committed_target = target
        label = MOVING_TO_DROP if lift.carries(target) else MOVING_TO_COLLECT
        begin_move(lift, label)
        record(state_change(label))

    def _decide(self, lift: Lift, ledger: CallLedger, record: TickRecorder) -> None:
        """Pick the next action for a lift standing at its current floor."""
        target = self._target(lift)
        floor = lift.current_floor
        target_aboard = lift.carries(target)

        if target_aboard and target.dest_floor == floor:
            begin_drop(lift, target, DROPPING)
            record(state_change(DROPPING))
            return

        extra_drop = earliest(p for p in lift.due_here() if p.id != target.id)
        if extra_drop is not None:
            begin_drop(lift, extra_drop, DROPPING_EXTRA)
            record(state_change(DROPPING_EXTRA))
            return

        if not target_aboard and target.origin_floor == floor:
            if lift.is_full():
                self._start_emergency(lift, record)
            else:
                begin_collect(lift, target, COLLECTING)
                record(state_change(COLLECTING))
            return

        if lift.has_room():
            extra_collect = ledger.first_waiting_at(floor, lift.passengers)
            if extra_collect is not None:
                begin_collect(lift, extra_collect, COLLECTING_EXTRA)
                record(state_change(COLLECTING_EXTRA))
                return

        self._move(lift, MOVING_TO_DROP if target_aboard else MOVING_TO_COLLECT, record)

    def _start_emergency(self, lift: Lift, record: TickRecorder) -> None:
        evacuee = nearest_drop(lift)
        lift.state = Retreating(evacuee, countdown=lift.floor_travel_time - 1)
        record(state_change(EMERGENCY_RETREATING))

    def _move(self, lift: Lift, label: str, record: TickRecorder) -> None:
        # Carrying on through a floor in the same state is not a state change.
        changed = lift.state.label != label
        begin_move(lift, label)
        if changed:
            record(state_change(label))

    def _heading(self, lift: Lift) -> int:
        target = self._target(lift)
        return target.dest_floor if lift.carries(target) else target.origin_floor

    def _target(self, lift: Lift) -> Request:
        target = lift.committed_target
        if target is None:
            raise DispatchError(
                f"Lift is {lift.state.label} at floor {lift.current_floor} with no committed target"
            )
        return target
