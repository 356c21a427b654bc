import asyncio

from fastapi.testclient import TestClient

from dispatch import DirectionalSweepPolicy
from liftsim import Simulation
from server.app import SimulationManager, app, simulate

from .helpers import make_requests

client = TestClient(app)

SCENARIO_A = [{"id": 1, "origin_floor": 1, "dest_floor": 5, "release_time": 0}]


def test_list_policies():
    response = client.get("/policies")
    assert response.status_code == 200
    assert response.json() == {"policies": ["directional", "opportunistic"]}


def test_simulate_returns_total_and_log_rows():
    response = client.post("/simulate", json={"requests": SCENARIO_A})
    assert response.status_code == 200
    body = response.json()
    assert body["policy"] == "opportunistic"
    assert body["total_seconds"] == 50
    assert body["columns"] == ["Time", "Floor", "Event", "TargetPassenger", "PassengersInLift"]
    assert len(body["rows"]) == 12
    assert body["rows"][-1]["Event"] == "Lift changed state to Idle"


def test_simulate_with_config():
    response = client.post(
        "/simulate",
        json={
            "policy": "directional",
            "requests": SCENARIO_A,
            "config": {"floor_travel_time": 2, "capacity": None},
        },
    )
    assert response.status_code == 200
    assert response.json()["total_seconds"] == 18


def test_simulate_rejects_troll():
    calls = SCENARIO_A + [{"id": 2, "origin_floor": 4, "dest_floor": 4, "release_time": 0}]
    response = client.post("/simulate", json={"requests": calls})
    assert response.status_code == 400
    assert "Troll found" in response.json()["detail"]


def test_simulate_rejects_unknown_policy():
    response = client.post("/simulate", json={"policy": "paternoster", "requests": SCENARIO_A})
    assert response.status_code == 400
    assert "Unknown policy" in response.json()["detail"]


def test_simulate_reports_tick_limit():
    response = client.post("/simulate", json={"requests": SCENARIO_A, "tick_limit": 10})
    assert response.status_code == 409
    assert response.json()["detail"]["served"] == 0
    assert response.json()["detail"]["total"] == 1


def test_simulate_validates_payload():
    bad = [{"id": 0, "origin_floor": 1, "dest_floor": 5, "release_time": 0}]
    assert client.post("/simulate", json={"requests": bad}).status_code == 422
    zero_drop = {"requests": SCENARIO_A, "config": {"drop_time": 0}}
    assert client.post("/simulate", json=zero_drop).status_code == 422


def test_replay_rejects_unknown_policy():
    response = client.post("/replay", json={"policy": "paternoster", "requests": SCENARIO_A})
    assert response.status_code == 400


def test_state_endpoint():
    assert "loaded" in client.get("/state").json()


def test_manager_replays_to_completion():
    async def replay():
        manager = SimulationManager()
        assert manager.current_state() == {"loaded": False}
        simulation = Simulation(make_requests((1, 1, 5, 0)), DirectionalSweepPolicy())
        initial = await manager.load(simulation, tick_interval=0)
        assert initial["loaded"] is True
        assert initial["finished"] is False
        await manager.wait()
        return manager.current_state()

    state = asyncio.run(replay())
    assert state["finished"] is True
    assert state["time"] == 50
    assert state["state"] == "Idle"
    assert state["error"] is None


def test_manager_reports_tick_limit():
    async def replay():
        manager = SimulationManager()
        simulation = Simulation(make_requests((1, 1, 5, 0)), DirectionalSweepPolicy(), tick_limit=20)
        await manager.load(simulation, tick_interval=0)
        await manager.wait()
        return manager.current_state()

    state = asyncio.run(replay())
    assert state["finished"] is False
    assert state["error"].startswith("Tick limit 20 reached")


class RecordingClient:
    """Stands in for a websocket; notes whether the manager lock was held on send."""

    def __init__(self, manager):
        self.manager = manager
        self.locked_on_send = []

    async def send_text(self, message):
        self.locked_on_send.append(self.manager._lock.locked())


def test_manager_broadcasts_outside_its_lock():
    async def replay(tick_limit):
        manager = SimulationManager()
        client = RecordingClient(manager)
        manager.clients.add(client)
        simulation = Simulation(
            make_requests((1, 1, 5, 0)), DirectionalSweepPolicy(), tick_limit=tick_limit
        )
        await manager.load(simulation, tick_interval=0)
        await manager.wait()
        return client.locked_on_send

    finished = asyncio.run(replay(tick_limit=100))
    stalled = asyncio.run(replay(tick_limit=20))
    assert len(finished) == 51
    assert len(stalled) == 21
    assert not any(finished + stalled)


def test_simulate_runs_off_the_event_loop():
    assert not asyncio.iscoroutinefunction(simulate)
