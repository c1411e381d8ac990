"""WebSocket endpoint — the push-channel side of the gateway.

Learn: Each client connects to / (or /ws). The handler:
1. Joins the ConnectionRegistry
2. Sends an `initial` frame with the full ordered snapshot, directly
3. Starts the connection's sender task (live events queued since the
   join are delivered after the snapshot, in publish order)
4. Treats every inbound message as the content of a new order

Two concurrent tasks run: the sender and the client listener. When either
finishes (usually client disconnect), the other is cancelled and the
connection leaves the registry.
"""

import asyncio

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError
from starlette.websockets import WebSocketState

from orderboard.config import settings
from orderboard.errors import StorageError, ValidationFailure
from orderboard.events.types import INITIAL
from orderboard.realtime.connections import Connection, ConnectionRegistry
from orderboard.realtime.pubsub import build_frame
from orderboard.schemas.order import parse_push_message
from orderboard.services.order_service import OrderService

logger = structlog.get_logger()
router = APIRouter()


async def handle_push_message(service: OrderService, payload: str | bytes, log) -> None:
    """Create an order from a raw push-channel message.

    There is no caller to answer, so failures are logged and dropped.
    """
    try:
        body = parse_push_message(payload)
    except ValidationError:
        log.warning("ws.message_rejected", reason="blank content")
        return
    try:
        await service.create_order(body.content)
    except ValidationFailure as e:
        log.warning("ws.message_rejected", reason=str(e))
    except Exception:
        log.exception("ws.create_failed")


@router.websocket("/")
@router.websocket("/ws")
async def orders_websocket(websocket: WebSocket):
    """WebSocket endpoint for live order events."""
    registry: ConnectionRegistry = websocket.app.state.registry
    service: OrderService = websocket.app.state.order_service

    await websocket.accept()
    connection = Connection(websocket, queue_size=settings.ws_send_queue_size)
    log = logger.bind(connection_id=connection.id)
    registry.join(connection)
    log.info("ws.connected", connections=len(registry))

    async def client_listener():
        """Every inbound message is a create request."""
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return
            payload = message.get("text")
            if payload is None:
                payload = message.get("bytes") or b""
            await handle_push_message(service, payload, log)

    try:
        try:
            snapshot = await service.list_orders()
        except StorageError:
            log.exception("ws.snapshot_failed")
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
            return

        try:
            await connection.send_now(build_frame(
                INITIAL, [o.model_dump(mode="json", by_alias=True) for o in snapshot]
            ))
        except Exception as e:
            # Peer went away between accept and the first frame
            log.debug("ws.snapshot_send_failed", error=str(e))
            return

        sender_task = connection.start_sender()
        client_task = asyncio.create_task(client_listener())

        done, pending = await asyncio.wait(
            [sender_task, client_task],
            return_when=asyncio.FIRST_COMPLETED,
        )
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                log.error("ws.task_failed", error=str(task.exception()))
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
    except WebSocketDisconnect:
        pass
    finally:
        registry.leave(connection)
        connection.close()
        if (
            websocket.client_state == WebSocketState.CONNECTED
            and websocket.application_state == WebSocketState.CONNECTED
        ):
            try:
                await websocket.close(code=connection.close_code)
            except Exception as e:
                log.debug("ws.close_failed", error=str(e))
        log.info("ws.disconnected", connections=len(registry))
