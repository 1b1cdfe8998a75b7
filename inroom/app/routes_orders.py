"""Order lifecycle routes."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import HTMLResponse, PlainTextResponse

from .auth import require_passphrase
from .deps import get_service
from .repos.orders_repo import OrderFilter
from .reporting.bill import render_bill_html, render_bill_text
from .schemas import QuantityUpdate, serialize_order, serialize_summary
from .services.orders import OrderService
from .utils.responses import ok

router = APIRouter(prefix="/api/orders", dependencies=[Depends(require_passphrase)])


@router.get("")
async def list_orders(
    status: Optional[str] = None,
    payment_status: Optional[str] = None,
    room_no: Optional[str] = None,
    created_from: Optional[datetime] = None,
    created_to: Optional[datetime] = None,
    limit: int = 200,
    service: OrderService = Depends(get_service),
) -> dict:
    order_filter = OrderFilter(
        status=status,
        payment_status=payment_status,
        room_no=room_no,
        created_from=created_from,
        created_to=created_to,
        limit=max(1, min(limit, 1000)),
    )
    summaries = await service.list_orders(order_filter)
    return ok([serialize_summary(s) for s in summaries])


@router.post("")
async def create_order(
    payload: dict = Body(...), service: OrderService = Depends(get_service)
) -> dict:
    order = await service.create_order(payload)
    return ok(serialize_order(order))


@router.get("/{order_id}")
async def get_order(order_id: str, service: OrderService = Depends(get_service)) -> dict:
    return ok(serialize_order(await service.get_order(order_id)))


@router.post("/{order_id}/items")
async def add_items(
    order_id: str,
    payload: dict = Body(...),
    service: OrderService = Depends(get_service),
) -> dict:
    """Add items; keys already on the order have their quantity increased."""

    order = await service.add_items_to_order(order_id, payload)
    return ok(serialize_order(order))


@router.patch("/{order_id}/items/{item_key}")
async def set_quantity(
    order_id: str,
    item_key: str,
    payload: QuantityUpdate,
    service: OrderService = Depends(get_service),
) -> dict:
    """Set a line's quantity; zero or less removes the line."""

    order = await service.update_item_quantity(order_id, item_key, payload.qty)
    return ok(serialize_order(order))


@router.delete("/{order_id}/items/{item_key}")
async def remove_item(
    order_id: str, item_key: str, service: OrderService = Depends(get_service)
) -> dict:
    return ok(serialize_order(await service.remove_item(order_id, item_key)))


@router.patch("/{order_id}")
async def update_order(
    order_id: str,
    payload: dict = Body(...),
    service: OrderService = Depends(get_service),
) -> dict:
    """Update status, payment status, requested time or notes."""

    return ok(serialize_order(await service.update_order(order_id, payload)))


@router.post("/{order_id}/whatsapp")
async def send_whatsapp(order_id: str, service: OrderService = Depends(get_service)) -> dict:
    """Send the kitchen ticket over the configured channel."""

    order = await service.notify_kitchen(order_id)
    return ok({"sent": True, "order": serialize_order(order)})


@router.get("/{order_id}/print")
async def print_bill(
    order_id: str,
    format: str = "html",
    service: OrderService = Depends(get_service),
):
    """Return the printable bill as HTML (default) or thermal text."""

    bill = await service.render_bill(order_id)
    if format == "text":
        return PlainTextResponse(render_bill_text(bill))
    return HTMLResponse(render_bill_html(bill))
