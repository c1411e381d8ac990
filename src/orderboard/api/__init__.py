"""API route aggregation.

All routers registered here get mounted in main.py. There is no
authentication layer: every client of the board is trusted.
"""

from fastapi import APIRouter

from orderboard.api.health import router as health_router
from orderboard.api.orders import router as orders_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(orders_router, tags=["orders"])
