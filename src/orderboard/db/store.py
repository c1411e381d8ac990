"""Order store — durable persistence and ordered retrieval of orders.

Learn: Each operation opens its own session and commits before returning,
so a record handed back by create() or update_status() is already durable.
Results are converted to frozen OrderRead snapshots inside the session;
ORM rows never leave this module.

Ordering: created_at ascending, then seq (insertion order) for ties.

Every database failure is re-raised as StorageError. The store never
retries; that is the caller's decision.
"""

import uuid
from typing import Optional

from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderboard.db.models import Order, OrderStatus, new_uuid, utcnow
from orderboard.errors import StorageError
from orderboard.schemas.order import OrderRead

# Driver-level connection failures (e.g. asyncpg refusing a connection)
# can surface as plain OSError rather than a SQLAlchemy wrapper.
_DB_ERRORS = (SQLAlchemyError, OSError)


def _parse_id(order_id: uuid.UUID | str) -> Optional[uuid.UUID]:
    if isinstance(order_id, uuid.UUID):
        return order_id
    try:
        return uuid.UUID(str(order_id))
    except ValueError:
        return None


class OrderStore:
    """Append-only order table with in-place status transitions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create(self, content: str) -> OrderRead:
        """Insert a pending order and return it once committed."""
        try:
            async with self.session_factory() as session:
                order = Order(
                    id=new_uuid(),
                    content=content,
                    status=OrderStatus.PENDING.value,
                    created_at=utcnow(),
                )
                session.add(order)
                await session.commit()
                return OrderRead.model_validate(order)
        except _DB_ERRORS as e:
            raise StorageError("could not create order") from e

    async def list(self, status: Optional[OrderStatus] = None) -> list[OrderRead]:
        """All orders (optionally one status), oldest first."""
        query = select(Order).order_by(Order.created_at, Order.seq)
        if status is not None:
            query = query.where(Order.status == OrderStatus(status).value)
        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                return [OrderRead.model_validate(o) for o in result.scalars().all()]
        except _DB_ERRORS as e:
            raise StorageError("could not list orders") from e

    async def update_status(
        self, order_id: uuid.UUID | str, status: OrderStatus
    ) -> Optional[OrderRead]:
        """Set an order's status. Returns None if no such order exists."""
        parsed = _parse_id(order_id)
        if parsed is None:
            return None
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(Order).where(Order.id == parsed)
                )
                order = result.scalars().first()
                if order is None:
                    return None
                order.status = OrderStatus(status).value
                await session.commit()
                return OrderRead.model_validate(order)
        except _DB_ERRORS as e:
            raise StorageError("could not update order") from e

    async def ping(self) -> None:
        """Round-trip to the database. Raises StorageError if unreachable."""
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
        except _DB_ERRORS as e:
            raise StorageError("database unreachable") from e
