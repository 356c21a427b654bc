from __future__ import annotations

import asyncio
import contextlib
import json
from typing import Dict, List, Optional, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from dispatch import POLICY_REGISTRY, DispatchPolicy, get_policy
from liftsim import LiftConfig, Request, Simulation, TickLimitExceeded
from liftsim.simulation import DEFAULT_TICK_LIMIT


class CallModel(BaseModel):
    id: int = Field(gt=0)
    origin_floor: int
    dest_floor: int
    release_time: int = Field(ge=0)

    def to_request(self) -> Request:
        return Request(
            id=self.id,
            origin_floor=self.origin_floor,
            dest_floor=self.dest_floor,
            release_time=self.release_time,
        )


class LiftConfigModel(BaseModel):
    start_floor: int = 1
    floor_travel_time: int = Field(default=10, ge=1)
    collection_time: int = Field(default=5, ge=1)
    drop_time: int = Field(default=5, ge=1)
    capacity: Optional[int] = Field(default=8, ge=1)

    def to_config(self) -> LiftConfig:
        return LiftConfig(**self.model_dump())


class SimulateRequest(BaseModel):
    policy: str = "opportunistic"
    requests: List[CallModel]
    config: LiftConfigModel = Field(default_factory=LiftConfigModel)
    tick_limit: int = Field(default=DEFAULT_TICK_LIMIT, gt=0)


class ReplayRequest(SimulateRequest):
    tick_interval: float = Field(default=0.25, ge=0)


def build_simulation(payload: SimulateRequest) -> Simulation:
    """Raises ValueError for an unknown policy or unusable calls."""
    policy = get_policy(payload.policy)
    return Simulation(
        [call.to_request() for call in payload.requests],
        policy,
        config=payload.config.to_config(),
        tick_limit=payload.tick_limit,
    )


def log_rows(policy: DispatchPolicy, entries) -> List[Dict[str, object]]:
    return [policy.log_row(entry) for entry in entries]


class SimulationManager:
    """Replays one simulation a tick at a time and streams it to websocket clients."""

    def __init__(self, tick_interval: float = 0.25) -> None:
        self.simulation: Optional[Simulation] = None
        self.tick_interval = tick_interval
        self.error: Optional[str] = None
        self.clients: Set[WebSocket] = set()
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    async def load(self, simulation: Simulation, tick_interval: Optional[float] = None) -> dict:
        await self.stop()
        async with self._lock:
            self.simulation = simulation
            self.error = None
            if tick_interval is not None:
                self.tick_interval = tick_interval
            state = self.current_state()
        self._task = asyncio.create_task(self._run())
        return state

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def wait(self) -> None:
        if self._task:
            await self._task

    async def _run(self) -> None:
        simulation = self.simulation
        while simulation is not None and not simulation.finished:
            async with self._lock:
                stalled = simulation.current_time >= simulation.tick_limit
                if stalled:
                    self.error = str(
                        TickLimitExceeded(
                            simulation.tick_limit,
                            len(simulation.ledger.served),
                            len(simulation.requests),
                        )
                    )
                    payload = self.current_state()
                else:
                    entries = simulation.step()
                    payload = self.current_state()
                    payload["entries"] = log_rows(simulation.policy, entries)
            await self.broadcast(payload)
            if stalled:
                return
            await asyncio.sleep(self.tick_interval)

    async def broadcast(self, payload: dict) -> None:
        message = json.dumps(payload)
        disconnected: Set[WebSocket] = set()
        for client in set(self.clients):
            try:
                await client.send_text(message)
            except WebSocketDisconnect:
                disconnected.add(client)
        for client in disconnected:
            await self.unregister(client)

    async def register(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.clients.add(websocket)
        await websocket.send_text(json.dumps(self.current_state()))

    async def unregister(self, websocket: WebSocket) -> None:
        if websocket in self.clients:
            self.clients.remove(websocket)
        with contextlib.suppress(Exception):
            await websocket.close()

    def current_state(self) -> dict:
        if self.simulation is None:
            return {"loaded": False}
        state = self.simulation.snapshot()
        state["loaded"] = True
        state["error"] = self.error
        return state


manager = SimulationManager()
app = FastAPI(title="LiftSim Simulation API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await manager.stop()


@app.get("/policies")
async def list_policies() -> dict:
    return {"policies": sorted(POLICY_REGISTRY)}


@app.post("/simulate")
def simulate(payload: SimulateRequest) -> dict:
    try:
        simulation = build_simulation(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    try:
        result = simulation.run()
    except TickLimitExceeded as exc:
        raise HTTPException(
            status_code=409,
            detail={"message": str(exc), "served": exc.served, "total": exc.total},
        )
    policy = simulation.policy
    return {
        "policy": policy.name,
        "total_seconds": result.total_seconds,
        "columns": list(policy.log_columns),
        "rows": log_rows(policy, result.log),
    }


@app.post("/replay")
async def replay(payload: ReplayRequest) -> dict:
    try:
        simulation = build_simulation(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return await manager.load(simulation, tick_interval=payload.tick_interval)


@app.get("/state")
async def get_state() -> dict:
    return manager.current_state()


@app.websocket("/ws/stream")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await manager.register(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await manager.unregister(websocket)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.app:app", host="0.0.0.0", port=8000, reload=False)
