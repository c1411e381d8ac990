"""Pydantic schemas for orders.

Learn: Pydantic v2 models validate request/response data. Separate
"Create" schemas (input) from "Read" schemas (output) for clean APIs.
Both entry points (HTTP body and WebSocket text) are parsed into these
models before anything reaches the service layer.
"""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from orderboard.db.models import OrderStatus


class OrderCreate(BaseModel):
    content: str = Field(..., min_length=1)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content must not be blank")
        return value


class StatusUpdate(BaseModel):
    status: OrderStatus


class OrderRead(BaseModel):
    """Immutable snapshot of a stored order.

    This is what leaves the store: HTTP responses and WebSocket frames
    are built from it, never from live ORM rows.
    """

    id: uuid.UUID
    content: str
    status: OrderStatus
    created_at: datetime = Field(serialization_alias="createdAt")

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive datetimes; everything is stored as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


def parse_push_message(payload: str | bytes) -> OrderCreate:
    """Parse an inbound WebSocket message into a create request.

    The push channel carries raw text: the whole payload is the content.
    Raises pydantic.ValidationError for blank payloads.
    """
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")
    return OrderCreate(content=payload)
