"""Order Board CLI — run the server and poke at a running board.

Usage:
    orderboard serve                              # Run the API + WebSocket server
    orderboard list                               # All orders, oldest first
    orderboard list --pending                     # Only pending orders
    orderboard create "2x espresso"               # Create an order
    orderboard set-status <order-id> shipped      # Change an order's status
"""

from __future__ import annotations

import asyncio
import json
import os
import sys

import click
import httpx

from orderboard import __version__
from orderboard.db.models import OrderStatus

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:3001"


def _api_url() -> str:
    return os.environ.get("ORDERBOARD_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the order board."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=10.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fail(resp: httpx.Response) -> None:
    try:
        detail = resp.json().get("detail", resp.text)
    except ValueError:
        detail = resp.text
    click.secho(f"Error {resp.status_code}: {detail}", fg="red", err=True)
    sys.exit(1)


def _status_color(status: str) -> str:
    colors = {
        "pending": "yellow",
        "processing": "cyan",
        "shipped": "blue",
        "completed": "green",
        "cancelled": "red",
    }
    return colors.get(status, "white")


def _print_order(order: dict) -> None:
    status = click.style(order["status"].ljust(10), fg=_status_color(order["status"]))
    click.echo(f"{order['id']}  {status}  {order['createdAt']}  {order['content']}")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="orderboard")
def main():
    """Order Board — real-time order tracking."""


@main.command()
@click.option("--host", default=None, help="Bind address (default: ORDERBOARD_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: ORDERBOARD_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the order board server."""
    import uvicorn

    from orderboard.config import settings

    uvicorn.run(
        "orderboard.main:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("list")
@click.option("--pending", is_flag=True, help="Only show pending orders")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def list_orders(pending: bool, as_json: bool):
    """List orders, oldest first."""
    asyncio.run(_list_impl(pending, as_json))


async def _list_impl(pending: bool, as_json: bool):
    async with _client() as c:
        r = await c.get("/operations" if pending else "/")
        if r.is_error:
            _fail(r)
        orders = r.json()

    if as_json:
        click.echo(json.dumps(orders, indent=2))
        return
    if not orders:
        click.echo("No orders.")
        return
    for order in orders:
        _print_order(order)


@main.command()
@click.argument("content")
def create(content: str):
    """Create a new pending order."""
    asyncio.run(_create_impl(content))


async def _create_impl(content: str):
    async with _client() as c:
        r = await c.post("/", json={"content": content})
        if r.is_error:
            _fail(r)
        _print_order(r.json())


@main.command("set-status")
@click.argument("order_id")
@click.argument("status", type=click.Choice([s.value for s in OrderStatus]))
def set_status(order_id: str, status: str):
    """Change the status of ORDER_ID."""
    asyncio.run(_set_status_impl(order_id, status))


async def _set_status_impl(order_id: str, status: str):
    async with _client() as c:
        r = await c.put(f"/operations/{order_id}", json={"status": status})
        if r.is_error:
            _fail(r)
        _print_order(r.json())


if __name__ == "__main__":
    main()
