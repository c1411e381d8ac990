"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
async_sessionmaker for one unit of work per store operation.

The engine is built by the app factory, not at import time, so tests
(and the CLI) can import the package without a database driver configured.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from orderboard.config import settings


def build_engine(url: str | None = None) -> AsyncEngine:
    """Create the engine for `url` (defaults to ORDERBOARD_DATABASE_URL).

    Pool sizing only applies to server databases; SQLite picks its own pool.
    """
    url = url or settings.database_url
    kwargs = {"echo": settings.debug}
    if not url.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
    return create_async_engine(url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory — each store operation gets its own session."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
