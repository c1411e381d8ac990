"""Order service — the only path through which orders change.

Learn: Every mutation is two explicit steps:
1. Commit through the OrderStore (durable before we go on)
2. Publish the resulting event through the BroadcastHub (best-effort)

Step 2 never runs if step 1 fails, so clients never hear about a change
that was not persisted. Step 2 failing never undoes step 1 or fails the
caller: between the two steps the store is ahead of the clients, and
that window is accepted.
"""

import uuid
from typing import Optional

import structlog

from orderboard.db.models import OrderStatus
from orderboard.db.store import OrderStore
from orderboard.errors import InvalidContentError, InvalidStatusError
from orderboard.events.types import ORDER_CREATED, ORDER_UPDATED
from orderboard.realtime.pubsub import BroadcastHub
from orderboard.schemas.order import OrderRead

logger = structlog.get_logger()


def _coerce_status(status: OrderStatus | str) -> OrderStatus:
    try:
        return OrderStatus(status)
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise InvalidStatusError(
            f"Unknown status '{status}'. Allowed: {allowed}"
        ) from None


class OrderService:
    """Business logic for creating, listing and updating orders."""

    def __init__(self, store: OrderStore, hub: BroadcastHub):
        self.store = store
        self.hub = hub

    # ─── Read ────────────────────────────────────────────

    async def list_orders(
        self, status: Optional[OrderStatus | str] = None
    ) -> list[OrderRead]:
        if status is not None:
            status = _coerce_status(status)
        return await self.store.list(status)

    # ─── Create ──────────────────────────────────────────

    async def create_order(self, content: str) -> OrderRead:
        """Create a pending order and announce it.

        Raises:
            InvalidContentError: if content is empty or blank
            StorageError: if the write did not persist
        """
        if not content or not content.strip():
            raise InvalidContentError("Order content must not be empty")

        order = await self.store.create(content)
        logger.info("orders.created", order_id=str(order.id))
        self._broadcast(ORDER_CREATED, order)
        return order

    # ─── Status changes ──────────────────────────────────

    async def update_status(
        self, order_id: uuid.UUID | str, status: OrderStatus | str
    ) -> Optional[OrderRead]:
        """Move an order to a new status and announce it.

        Learn: Transitions are unrestricted within the recognized set,
        and setting the current status again is a valid no-op transition.

        Returns None (and publishes nothing) if the order does not exist.

        Raises:
            InvalidStatusError: if status is not recognized (store untouched)
            StorageError: if the write did not persist
        """
        new_status = _coerce_status(status)
        order = await self.store.update_status(order_id, new_status)
        if order is None:
            logger.info("orders.not_found", order_id=str(order_id))
            return None

        logger.info("orders.status_changed", order_id=str(order.id), status=new_status.value)
        self._broadcast(ORDER_UPDATED, order)
        return order

    def _broadcast(self, event_type: str, order: OrderRead) -> None:
        try:
            self.hub.publish(event_type, order.model_dump(mode="json", by_alias=True))
        except Exception:
            logger.exception("orders.broadcast_failed", event_type=event_type, order_id=str(order.id))
