import asyncio
import json

from crosswalk.app.server import SimulationController, SnapshotBacklog
from crosswalk.sim.core.config import SimulationConfig


class RecordingViewer:
    def __init__(self) -> None:
        self.frames = []

    async def send_text(self, text: str) -> None:
        self.frames.append(json.loads(text))


def test_backlog_ack_cleanup() -> None:
    controller = SimulationController(SimulationConfig())
    viewer = RecordingViewer()

    async def exercise() -> None:
        await controller.attach(viewer)
        await controller.advance()
        await controller.advance()
        assert controller.backlog.ticks == [0, 1, 2]
        assert [frame["tick"] for frame in viewer.frames] == [0, 1, 2]
        await controller.backlog.acknowledge(1)
        assert controller.backlog.ticks == [2]

    asyncio.run(exercise())


def test_nothing_is_queued_without_viewers() -> None:
    controller = SimulationController(SimulationConfig())

    async def exercise() -> None:
        for _ in range(20):
            await controller.advance()
        assert len(controller.backlog) == 0
        assert controller.tick == 20

    asyncio.run(exercise())


def test_unacknowledged_backlog_is_bounded() -> None:
    controller = SimulationController(SimulationConfig(), backlog=4)
    viewer = RecordingViewer()

    async def exercise() -> None:
        await controller.attach(viewer)
        for _ in range(10):
            await controller.advance()
        assert controller.backlog.ticks == [7, 8, 9, 10]
        assert len(viewer.frames) == 11

    asyncio.run(exercise())


def test_backlog_only_returns_frames_newer_than_tick() -> None:
    backlog = SnapshotBacklog(limit=8)

    async def exercise() -> None:
        for tick in range(3):
            await backlog.push(tick, str(tick))
        assert await backlog.newer_than(0) == [(1, "1"), (2, "2")]
        await backlog.clear()
        assert len(backlog) == 0

    asyncio.run(exercise())


def test_snapshot_frame_carries_crossing_state() -> None:
    controller = SimulationController(SimulationConfig(seed=2))
    viewer = RecordingViewer()

    async def exercise() -> None:
        await controller.attach(viewer)
        await controller.advance()

    asyncio.run(exercise())

    message = viewer.frames[-1]
    assert message["type"] == "snapshot"
    assert message["tick"] == 1
    body = message["payload"]
    assert body["metrics"]["agents"] == len(controller.world.agents)
    assert len(body["occupancy"]) == controller.config.grid.height
    assert body["agents"][0]["behaviour"]
    assert controller.agent_state(body["agents"][0]["id"])["id"] == body["agents"][0]["id"]
    assert controller.agent_state(10_000) is None
    assert controller.status()["viewers"] == 1
