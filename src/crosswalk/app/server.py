from __future__ import annotations

import asyncio
import json
import logging
import os
from collections import deque
from dataclasses import asdict
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional, Tuple

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..sim.core.config import SimulationConfig
from ..sim.core.world import World
from ..sim.types.snapshot import Snapshot

logger = logging.getLogger(__name__)

DEFAULT_BACKLOG = 256


def encode_snapshot(snapshot: Snapshot) -> str:
    """JSON frame sent to viewers: one crossing snapshot plus its tick."""
    return json.dumps(
        {
            "type": "snapshot",
            "tick": snapshot.tick,
            "payload": {
                "tick": snapshot.tick,
                "metrics": asdict(snapshot.metrics) if snapshot.metrics is not None else None,
                "agents": snapshot.agents,
                "world": asdict(snapshot.world),
                "metadata": asdict(snapshot.metadata),
                "occupancy": snapshot.occupancy,
            },
        }
    )


class SnapshotBacklog:
    """Encoded snapshots not yet acknowledged by viewers, oldest first.

    Bounded: once `limit` frames are waiting the oldest one is dropped.
    """

    def __init__(self, limit: int = DEFAULT_BACKLOG) -> None:
        self._frames: Deque[Tuple[int, str]] = deque(maxlen=max(1, limit))
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._frames)

    @property
    def ticks(self) -> List[int]:
        return [tick for tick, _ in self._frames]

    async def push(self, tick: int, frame: str) -> None:
        async with self._lock:
            self._frames.append((tick, frame))

    async def acknowledge(self, tick: int) -> None:
        async with self._lock:
            while self._frames and self._frames[0][0] <= tick:
                self._frames.popleft()

    async def newer_than(self, tick: int) -> List[Tuple[int, str]]:
        async with self._lock:
            return [item for item in self._frames if item[0] > tick]

    async def clear(self) -> None:
        async with self._lock:
            self._frames.clear()


class SimulationController:
    """Drives a crossing world on the event loop and streams it to viewers."""

    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1, backlog: int = DEFAULT_BACKLOG):
        self.config = config
        self.world = World(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.tick = 0
        self.speed_multiplier = 1.0
        self.backlog = SnapshotBacklog(backlog)
        # viewer -> last tick delivered to it
        self.viewers: Dict[WebSocket, int] = {}
        self._world_lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())
        self.running = True

    async def stop(self) -> None:
        self.running = False

    def set_speed(self, multiplier: float) -> float:
        self.speed_multiplier = max(0.1, min(5.0, multiplier))
        return self.speed_multiplier

    async def reset(self) -> None:
        async with self._world_lock:
            self.world.reset()
            self.tick = 0
        await self.backlog.clear()
        for viewer in self.viewers:
            self.viewers[viewer] = -1
        await self.publish()

    async def advance(self) -> None:
        async with self._world_lock:
            self.world.step(self.tick)
            self.tick += 1
        if self.tick % self.broadcast_interval == 0:
            await self.publish()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.config.time_step / self.speed_multiplier)
            if self.running:
                await self.advance()

    async def publish(self) -> None:
        """Queue the current snapshot and push pending frames to every viewer.

        Nothing is queued while no viewer is attached; a viewer that connects
        later starts from the snapshot published after it joined.
        """
        if not self.viewers:
            return
        snapshot = self.world.snapshot(self.tick)
        await self.backlog.push(snapshot.tick, encode_snapshot(snapshot))
        for viewer in list(self.viewers):
            try:
                await self._deliver(viewer)
            except WebSocketDisconnect:
                logger.info("Viewer disconnected during delivery")
                self.detach(viewer)

    async def _deliver(self, viewer: WebSocket) -> None:
        for tick, frame in await self.backlog.newer_than(self.viewers.get(viewer, -1)):
            await viewer.send_text(frame)
            self.viewers[viewer] = tick

    async def attach(self, viewer: WebSocket) -> None:
        self.viewers[viewer] = -1
        await self.publish()

    def detach(self, viewer: WebSocket) -> None:
        self.viewers.pop(viewer, None)

    def agent_state(self, agent_id: int) -> Optional[Dict[str, Any]]:
        for payload in self.world.snapshot(self.tick).agents:
            if payload["id"] == agent_id:
                return payload
        return None

    def status(self) -> Dict[str, Any]:
        metrics = self.world.metrics
        return {
            "running": self.running,
            "tick": self.tick,
            "agents": len(self.world.agents),
            "active_follows": len(self.world.relations),
            "viewers": len(self.viewers),
            "backlog": len(self.backlog),
            "metrics": asdict(metrics) if metrics is not None else None,
        }


def _load_config() -> SimulationConfig:
    config_path = os.environ.get("CROSSWALK_CONFIG")
    if config_path:
        return SimulationConfig.from_yaml(Path(config_path))
    return SimulationConfig()


app = FastAPI(title="Crosswalk Simulation")
controller = SimulationController(_load_config())


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


@app.get("/api/status")
async def status() -> JSONResponse:
    return JSONResponse(controller.status())


@app.get("/api/config")
async def config() -> JSONResponse:
    return JSONResponse(asdict(controller.config))


@app.get("/api/occupancy")
async def occupancy() -> JSONResponse:
    grid = controller.world.grid
    return JSONResponse(
        {
            "width": grid.width,
            "height": grid.height,
            "cell_size": grid.cell_size,
            "occupied": grid.occupied_count(),
            "rows": grid.rows(),
        }
    )


@app.get("/api/agents/{agent_id}")
async def agent(agent_id: int) -> JSONResponse:
    payload = controller.agent_state(agent_id)
    if payload is None:
        raise HTTPException(status_code=404, detail=f"No agent {agent_id}")
    return JSONResponse(payload)


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    await controller.start()
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    await controller.stop()
    return JSONResponse({"running": False})


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    await controller.reset()
    return JSONResponse({"running": controller.running, "tick": controller.tick})


@app.post("/api/control/step")
async def step_simulation() -> JSONResponse:
    await controller.advance()
    return JSONResponse({"tick": controller.tick})


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    return JSONResponse({"multiplier": controller.set_speed(float(payload.get("multiplier", 1.0)))})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    await controller.attach(websocket)
    try:
        while True:
            message = await websocket.receive_text()
            try:
                payload = json.loads(message)
            except json.JSONDecodeError:
                logger.debug("Ignoring non-JSON viewer message")
                continue
            if payload.get("type") == "ack" and isinstance(payload.get("tick"), int):
                await controller.backlog.acknowledge(payload["tick"])
    except WebSocketDisconnect:
        controller.detach(websocket)


__all__ = ["app", "controller", "encode_snapshot", "SimulationController", "SnapshotBacklog"]
