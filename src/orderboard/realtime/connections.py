"""Live WebSocket connections and the registry that tracks them.

Learn: Each Connection owns a bounded outbound queue and a single sender
task that drains it in order. Publishers only ever call offer(), which
never awaits, so one slow client cannot hold up fan-out to the others.
A client that falls a full queue behind is dropped: its sender task is
cancelled (even mid-send on a stalled peer) and the socket is closed
with 1013 Try Again Later. It recovers by reconnecting and receiving a
fresh snapshot.
"""

import asyncio
import uuid
from asyncio import Queue, QueueFull

import structlog
from fastapi import WebSocket, status

logger = structlog.get_logger()


class Connection:
    """One live push-channel client."""

    def __init__(self, websocket: WebSocket, queue_size: int = 256):
        self.id = uuid.uuid4().hex[:12]
        self.websocket = websocket
        self.closed = False
        self.close_code = status.WS_1000_NORMAL_CLOSURE
        self._queue: Queue[str] = Queue(maxsize=queue_size)
        self._sender: asyncio.Task | None = None

    def offer(self, frame: str) -> bool:
        """Queue a frame without waiting. Returns False if it was not queued."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(frame)
        except QueueFull:
            logger.warning("ws.slow_consumer_dropped", connection_id=self.id)
            self.close(code=status.WS_1013_TRY_AGAIN_LATER)
            if self._sender is not None:
                self._sender.cancel()
            return False
        return True

    async def send_now(self, frame: str) -> None:
        """Send directly on the socket, bypassing the queue.

        Only used for the initial snapshot, before the sender starts.
        """
        await self.websocket.send_text(frame)

    def start_sender(self) -> asyncio.Task:
        """Spawn the task that drains the queue onto the socket."""
        self._sender = asyncio.create_task(self.run_sender())
        return self._sender

    async def run_sender(self) -> None:
        """Drain the queue onto the socket until the connection closes."""
        while not self.closed:
            frame = await self._queue.get()
            if self.closed:
                break
            try:
                await self.websocket.send_text(frame)
            except Exception as e:
                logger.debug("ws.send_failed", connection_id=self.id, error=str(e))
                self.close()

    def close(self, code: int = status.WS_1000_NORMAL_CLOSURE) -> None:
        """Stop accepting frames and wake the sender so it can exit.

        `code` is what the socket should be closed with; the first close wins.
        """
        if self.closed:
            return
        self.closed = True
        self.close_code = code
        try:
            self._queue.put_nowait("")
        except QueueFull:
            pass  # sender is busy and will see `closed` after its current send

    @property
    def pending(self) -> int:
        return self._queue.qsize()


class ConnectionRegistry:
    """The set of currently live connections.

    Created once per app and shared by reference between the WebSocket
    listener (join/leave) and the BroadcastHub (enumeration).
    """

    def __init__(self):
        self._connections: set[Connection] = set()

    def join(self, connection: Connection) -> None:
        self._connections.add(connection)

    def leave(self, connection: Connection) -> None:
        """Deregister. Leaving twice, or never having joined, is a no-op."""
        self._connections.discard(connection)

    def active_connections(self) -> frozenset[Connection]:
        return frozenset(self._connections)

    def __len__(self) -> int:
        return len(self._connections)
