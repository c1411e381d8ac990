"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running
and the database is reachable. Also reports how many WebSocket
clients are connected.
"""

from fastapi import APIRouter, Request

from orderboard import __version__
from orderboard.errors import StorageError

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        await request.app.state.store.ping()
        checks["database"] = "ok"
    except StorageError as e:
        checks["database"] = f"error: {e}"

    status = "healthy" if all(
        v == "ok" for k, v in checks.items() if k != "version"
    ) else "degraded"

    return {
        "status": status,
        **checks,
        "connections": len(request.app.state.registry),
    }
