"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance with its components wired leaf-first and kept on app.state:

    store → registry → hub(registry) → order_service(store, hub)

Nothing is a module global, so tests build an app around their own
database by passing a session factory.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderboard import __version__
from orderboard.api import api_router
from orderboard.config import settings
from orderboard.db.engine import build_engine, build_session_factory
from orderboard.db.store import OrderStore
from orderboard.errors import StorageError
from orderboard.realtime.connections import ConnectionRegistry
from orderboard.realtime.pubsub import BroadcastHub
from orderboard.services.order_service import OrderService

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "orderboard.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    yield

    logger.info("orderboard.shutdown", connections=len(app.state.registry))

    # Wake every sender so the WebSocket handlers unwind
    for connection in app.state.registry.active_connections():
        connection.close()

    if app.state.engine is not None:
        await app.state.engine.dispose()


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("orderboard.storage_error", path=request.url.path, error=str(exc.__cause__ or exc))
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("orderboard.unhandled_error", path=request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    If no session factory is given, an engine is created from
    ORDERBOARD_DATABASE_URL and disposed on shutdown.
    """
    app = FastAPI(
        title="Order Board",
        description="Real-time order board — HTTP for changes, WebSocket for live updates",
        version=__version__,
        lifespan=lifespan,
    )

    engine = None
    if session_factory is None:
        engine = build_engine()
        session_factory = build_session_factory(engine)

    app.state.engine = engine
    app.state.store = OrderStore(session_factory)
    app.state.registry = ConnectionRegistry()
    app.state.hub = BroadcastHub(app.state.registry)
    app.state.order_service = OrderService(app.state.store, app.state.hub)

    # ── Middleware stack ──────────────────────────────────────
    from orderboard.middleware.request_id import RequestIdMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Mount API routes
    app.include_router(api_router)

    # Mount WebSocket route (same paths as the HTTP API)
    from orderboard.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app
