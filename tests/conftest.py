"""Test fixtures — a fresh SQLite database per test.

Learn: Every test gets its own database file under tmp_path, with the
schema created straight from the ORM metadata. The async engine uses
NullPool so no connection outlives the event loop that opened it; that
lets the same fixtures serve pytest-asyncio tests (httpx AsyncClient)
and Starlette's TestClient (which runs the app on its own loop).
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from orderboard.db.engine import build_session_factory
from orderboard.db.models import Base
from orderboard.db.store import OrderStore
from orderboard.main import create_app
from orderboard.realtime.connections import ConnectionRegistry
from orderboard.realtime.pubsub import BroadcastHub
from orderboard.services.order_service import OrderService


class FakeWebSocket:
    """Stands in for a Starlette WebSocket on the send side."""

    def __init__(self, broken: bool = False):
        self.sent: list[str] = []
        self.broken = broken

    async def send_text(self, data: str) -> None:
        if self.broken:
            raise RuntimeError("connection reset by peer")
        self.sent.append(data)


@pytest.fixture()
def db_path(tmp_path):
    path = tmp_path / "orderboard.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()
    return path


@pytest.fixture()
def session_factory(db_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    return build_session_factory(engine)


@pytest.fixture()
def broken_session_factory(tmp_path):
    """Points at a database that cannot be opened — every operation fails."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'orderboard.db'}"
    engine = create_async_engine(url, poolclass=NullPool)
    return build_session_factory(engine)


@pytest.fixture()
def store(session_factory):
    return OrderStore(session_factory)


@pytest.fixture()
def registry():
    return ConnectionRegistry()


@pytest.fixture()
def hub(registry):
    return BroadcastHub(registry)


@pytest.fixture()
def service(store, hub):
    return OrderService(store, hub)


@pytest.fixture()
def app(session_factory):
    return create_app(session_factory=session_factory)


@pytest.fixture()
async def client(app):
    """HTTP client talking to the app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def fake_ws():
    """Factory for FakeWebSocket instances."""
    return FakeWebSocket
