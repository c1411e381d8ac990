"""Realtime tests — ConnectionRegistry, Connection queues, BroadcastHub fan-out."""

import asyncio
import json

import pytest

from orderboard.realtime.connections import Connection
from orderboard.realtime.pubsub import build_frame


async def _drain(connection: Connection) -> None:
    """Run the sender until everything queued has been sent."""
    task = asyncio.create_task(connection.run_sender())
    for _ in range(5):
        await asyncio.sleep(0)
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)


def _types(ws) -> list[str]:
    return [json.loads(frame)["type"] for frame in ws.sent]


# ═══════════════════════════════════════════════════════════
# Registry
# ═══════════════════════════════════════════════════════════


def test_join_and_leave(registry, fake_ws):
    conn = Connection(fake_ws())
    registry.join(conn)
    assert conn in registry.active_connections()
    assert len(registry) == 1

    registry.leave(conn)
    assert conn not in registry.active_connections()
    assert len(registry) == 0


def test_leave_is_idempotent(registry, fake_ws):
    conn = Connection(fake_ws())
    registry.leave(conn)  # never joined
    registry.join(conn)
    registry.leave(conn)
    registry.leave(conn)
    assert len(registry) == 0


def test_active_connections_is_read_only(registry, fake_ws):
    registry.join(Connection(fake_ws()))
    view = registry.active_connections()
    with pytest.raises(AttributeError):
        view.add(Connection(fake_ws()))


# ═══════════════════════════════════════════════════════════
# Hub
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_publish_reaches_every_connection_once(registry, hub, fake_ws):
    sockets = [fake_ws() for _ in range(3)]
    conns = [Connection(ws) for ws in sockets]
    for conn in conns:
        registry.join(conn)

    assert hub.publish("newOrder", {"id": "1"}) == 3
    for conn in conns:
        await _drain(conn)

    for ws in sockets:
        assert ws.sent == [build_frame("newOrder", {"id": "1"})]


@pytest.mark.asyncio
async def test_publish_preserves_order_per_connection(registry, hub, fake_ws):
    ws = fake_ws()
    conn = Connection(ws)
    registry.join(conn)

    hub.publish("newOrder", {"n": 1})
    hub.publish("updateOrder", {"n": 2})
    hub.publish("updateOrder", {"n": 3})
    await _drain(conn)

    assert [json.loads(f)["data"]["n"] for f in ws.sent] == [1, 2, 3]


@pytest.mark.asyncio
async def test_publish_skips_departed_connections(registry, hub, fake_ws):
    stays, goes = fake_ws(), fake_ws()
    conn_stays, conn_goes = Connection(stays), Connection(goes)
    registry.join(conn_stays)
    registry.join(conn_goes)
    registry.leave(conn_goes)

    assert hub.publish("newOrder", {}) == 1
    await _drain(conn_stays)
    await _drain(conn_goes)
    assert _types(stays) == ["newOrder"]
    assert goes.sent == []


@pytest.mark.asyncio
async def test_broken_connection_is_skipped(registry, hub, fake_ws):
    healthy, broken = fake_ws(), fake_ws(broken=True)
    conn_ok, conn_broken = Connection(healthy), Connection(broken)
    registry.join(conn_ok)
    registry.join(conn_broken)

    hub.publish("newOrder", {"n": 1})
    await _drain(conn_ok)
    await _drain(conn_broken)
    assert conn_broken.closed

    # Next publish skips the broken one without raising
    assert hub.publish("newOrder", {"n": 2}) == 1
    await _drain(conn_ok)
    assert len(healthy.sent) == 2


def test_slow_consumer_is_dropped_without_blocking(registry, hub, fake_ws):
    slow = Connection(fake_ws(), queue_size=2)
    fast = Connection(fake_ws(), queue_size=10)
    registry.join(slow)
    registry.join(fast)

    assert hub.publish("newOrder", {"n": 1}) == 2
    assert hub.publish("newOrder", {"n": 2}) == 2
    assert hub.publish("newOrder", {"n": 3}) == 1
    assert slow.closed
    assert not fast.closed
    assert fast.pending == 3


def test_publish_with_no_connections(hub):
    assert hub.publish("newOrder", {"id": "x"}) == 0


@pytest.mark.asyncio
async def test_sender_stops_after_close(fake_ws):
    ws = fake_ws()
    conn = Connection(ws)
    task = asyncio.create_task(conn.run_sender())
    await asyncio.sleep(0)
    conn.close()
    await asyncio.wait_for(task, timeout=1)
    assert not conn.offer("late")
    assert ws.sent == []


class StalledWebSocket:
    """A peer that never finishes receiving a frame."""

    def __init__(self):
        self.sent: list[str] = []
        self._never = asyncio.Event()

    async def send_text(self, data: str) -> None:
        await self._never.wait()
        self.sent.append(data)


@pytest.mark.asyncio
async def test_slow_consumer_interrupts_stalled_send(registry, hub):
    ws = StalledWebSocket()
    conn = Connection(ws, queue_size=2)
    registry.join(conn)
    task = conn.start_sender()

    assert hub.publish("newOrder", {"n": 1}) == 1
    for _ in range(3):
        await asyncio.sleep(0)  # sender picks up frame 1 and stalls on it

    assert hub.publish("newOrder", {"n": 2}) == 1
    assert hub.publish("newOrder", {"n": 3}) == 1
    assert hub.publish("newOrder", {"n": 4}) == 0

    await asyncio.wait_for(asyncio.gather(task, return_exceptions=True), timeout=1)
    assert task.cancelled()
    assert conn.closed
    assert conn.close_code == 1013
    assert ws.sent == []


def test_normal_close_keeps_normal_code(fake_ws):
    conn = Connection(fake_ws())
    conn.close()
    conn.close(code=1013)  # first close wins
    assert conn.close_code == 1000
