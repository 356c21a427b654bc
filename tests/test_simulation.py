import pytest

from dispatch import DirectionalSweepPolicy, OpportunisticFifoPolicy, get_policy
from liftsim import EventKind, LiftConfig, Simulation, TickLimitExceeded, run_until_complete
from liftsim.lift import Collecting, Dropping, Idle, Moving, Retreating

from .helpers import make_requests, passenger_id, random_requests

POLICIES = [OpportunisticFifoPolicy, DirectionalSweepPolicy]
CAPACITIES = [1, 2, 8, None]


@pytest.mark.parametrize("policy_cls", POLICIES)
@pytest.mark.parametrize("capacity", CAPACITIES)
@pytest.mark.parametrize("seed", range(8))
def test_random_workloads_hold_the_lift_invariants(policy_cls, capacity, seed):
    requests = random_requests(seed)
    simulation = Simulation(
        requests, policy_cls(), config=LiftConfig(capacity=capacity), tick_limit=100000
    )
    while not simulation.finished:
        assert simulation.current_time < simulation.tick_limit
        simulation.step()
        lift = simulation.lift
        assert isinstance(lift.state, (Idle, Moving, Retreating, Collecting, Dropping))
        if capacity is not None:
            assert lift.load <= capacity
        assert 1 <= lift.current_floor <= 10

    log = list(simulation.log)
    times = [entry.time for entry in log]
    assert times == sorted(times)

    collected = {}
    dropped = {}
    for index, entry in enumerate(log):
        if entry.kind is EventKind.COLLECTION_COMPLETE:
            collected.setdefault(passenger_id(entry), []).append((index, entry))
        elif entry.kind is EventKind.DROP_COMPLETE:
            dropped.setdefault(passenger_id(entry), []).append((index, entry))

    by_id = {request.id: request for request in requests}
    assert set(collected) == set(by_id)
    assert set(dropped) == set(by_id)
    for passenger, request in by_id.items():
        assert len(collected[passenger]) == 1
        assert len(dropped[passenger]) == 1
        (pick_index, pick), (drop_index, drop) = collected[passenger][0], dropped[passenger][0]
        assert pick_index < drop_index
        assert pick.floor == request.origin_floor
        assert drop.floor == request.dest_floor
        assert pick.time >= request.release_time
        assert passenger in pick.aboard
        assert passenger not in drop.aboard

    served_ids = sorted(request.id for request in simulation.ledger.served)
    assert served_ids == sorted(by_id)


@pytest.mark.parametrize("policy_cls", POLICIES)
def test_tick_limit_bounds_the_run(policy_cls):
    requests = make_requests((1, 1, 5, 0))
    assert run_until_complete(requests, policy_cls(), tick_limit=51).total_seconds == 50

    with pytest.raises(TickLimitExceeded) as excinfo:
        run_until_complete(requests, policy_cls(), tick_limit=50)
    assert excinfo.value.served == 0
    assert excinfo.value.total == 1


@pytest.mark.parametrize("policy_cls", POLICIES)
def test_no_requests_finishes_immediately(policy_cls):
    result = run_until_complete([], policy_cls())
    assert result.total_seconds == 0
    assert len(result.log) == 0


def test_custom_timings_scale_the_run():
    config = LiftConfig(start_floor=3, floor_travel_time=2, collection_time=1, drop_time=1)
    result = run_until_complete(make_requests((1, 3, 6, 0)), OpportunisticFifoPolicy(), config=config)
    # collect on the spot (1s), three floors (6s), drop (1s)
    assert result.total_seconds == 8


def test_event_hooks_fire():
    simulation = Simulation(make_requests((1, 2, 4, 3), (2, 4, 1, 3)), get_policy("opportunistic"))
    released, served = [], []
    simulation.on_event("release", lambda payload: released.append(payload))
    simulation.on_event("served", lambda entry: served.append(passenger_id(entry)))
    simulation.run()

    assert released == [{"time": 3, "ids": [1, 2]}]
    assert sorted(served) == [1, 2]


def test_snapshot_reports_progress():
    simulation = Simulation(make_requests((1, 1, 5, 0)), DirectionalSweepPolicy())
    for _ in range(6):
        simulation.step()
    snapshot = simulation.snapshot()
    assert snapshot["time"] == 5
    assert snapshot["state"] == "MovingUp"
    assert snapshot["direction"] == "Up"
    assert snapshot["aboard"] == [1]
    assert snapshot["served"] == 0
    assert snapshot["finished"] is False


@pytest.mark.parametrize("policy_name", ["opportunistic", "directional"])
def test_runs_are_independent(policy_name):
    requests = random_requests(42)
    first = run_until_complete(requests, get_policy(policy_name))
    second = run_until_complete(requests, get_policy(policy_name))
    assert first.total_seconds == second.total_seconds
    assert list(first.log) == list(second.log)


def test_unknown_policy_is_rejected():
    with pytest.raises(ValueError, match="Unknown policy 'elevator-of-doom'"):
        get_policy("elevator-of-doom")
