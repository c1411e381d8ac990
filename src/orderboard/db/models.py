"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Alembic migrations in db/migrations mirror what is declared here.

Key concepts:
- `seq` is the storage primary key: an auto-increment insertion counter
  that breaks ties between orders created in the same instant.
- `id` is the public identifier (UUID4). Clients never see `seq`.
- Generic `Uuid` type so the same model runs on PostgreSQL and SQLite.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class OrderStatus(str, enum.Enum):
    """Recognized order statuses. Anything else is rejected."""

    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Order(Base):
    """A single order on the board.

    Learn: Orders are append-only. `content` and `created_at` never change
    after insert; `status` is the only column ever updated.
    """

    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("id", name="uq_orders_id"),
        Index("ix_orders_created_at_seq", "created_at", "seq"),
        Index("ix_orders_status", "status"),
    )

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), nullable=False, default=new_uuid
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=OrderStatus.PENDING.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
