"""Order API routes — the request/response side of the gateway.

Learn: These routes translate HTTP to service calls and handle error
responses. The service does validation, persistence and broadcasting;
routes only pick status codes:
- success → 200/201 with the record(s)
- unknown id → 404
- bad body → 422 (pydantic), rejected by the service → 400
- StorageError → 500, generic message (see main.py exception handlers)

Paths are fixed by existing clients: `/` and `/operations`.
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from orderboard.db.models import OrderStatus
from orderboard.errors import ValidationFailure
from orderboard.schemas.order import OrderCreate, OrderRead, StatusUpdate
from orderboard.services.order_service import OrderService

router = APIRouter()


def _svc(request: Request) -> OrderService:
    return request.app.state.order_service


@router.get("/", response_model=list[OrderRead])
async def list_orders(svc: OrderService = Depends(_svc)):
    """All orders, oldest first."""
    return await svc.list_orders()


@router.post("/", response_model=OrderRead, status_code=201)
async def create_order(body: OrderCreate, svc: OrderService = Depends(_svc)):
    """Create a pending order and broadcast it to every WebSocket client."""
    try:
        return await svc.create_order(body.content)
    except ValidationFailure as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/operations", response_model=list[OrderRead])
async def list_pending_orders(svc: OrderService = Depends(_svc)):
    """Orders still waiting to be worked on, oldest first."""
    return await svc.list_orders(OrderStatus.PENDING)


@router.put("/operations/{order_id}", response_model=OrderRead)
async def update_order_status(
    order_id: str,
    body: StatusUpdate,
    svc: OrderService = Depends(_svc),
):
    """Change an order's status and broadcast the update."""
    try:
        order = await svc.update_status(order_id, body.status)
    except ValidationFailure as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order
