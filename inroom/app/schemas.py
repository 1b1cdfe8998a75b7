"""Request payloads and response serializers."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .domain.menu import MenuItem
from .domain.order import Order
from .repos.orders_repo import OrderSummary


class OrderItemIn(BaseModel):
    """Single line requested by the caller.

    ``name`` and ``price`` are accepted for compatibility with cart payloads
    but the menu snapshot for ``item_key`` is what gets stored.
    """

    item_key: str = Field(min_length=1)
    qty: int = Field(gt=0, strict=True)
    name: Optional[str] = None
    price: Optional[int] = Field(default=None, ge=0)


class OrderCreate(BaseModel):
    guest_name: str = ""
    room_no: str = Field(min_length=1)
    notes: str = ""
    menu_version: Optional[str] = None
    source: str = "staff"
    requested_time: Optional[str] = None
    items: List[OrderItemIn] = Field(min_length=1)


class AddItems(BaseModel):
    items: List[OrderItemIn] = Field(min_length=1)


class QuantityUpdate(BaseModel):
    qty: int = Field(strict=True)


class OrderUpdate(BaseModel):
    """Partial update; omitted fields are left alone."""

    status: Optional[str] = None
    payment_status: Optional[str] = None
    requested_time: Optional[str] = None
    notes: Optional[str] = None


class MenuItemIn(BaseModel):
    item_key: str = Field(min_length=1)
    name: str = Field(min_length=1)
    price: int = Field(ge=0)
    category: str = ""
    description: str = ""
    image: str = ""


class MenuUpload(BaseModel):
    version: str = Field(min_length=1)
    items: List[MenuItemIn] = Field(min_length=1)


class LoginRequest(BaseModel):
    passphrase: str


def serialize_order(order: Order) -> dict:
    """Return a JSON-ready mapping for ``order``."""

    return {
        "id": order.id,
        "order_no": order.order_no,
        "created_at": order.created_at.isoformat(),
        "updated_at": order.updated_at.isoformat(),
        "guest_name": order.guest_name,
        "room_no": order.room_no,
        "notes": order.notes,
        "source": order.source,
        "menu_version": order.menu_version,
        "status": order.status.value,
        "payment_status": order.payment_status.value,
        "requested_time": order.requested_time,
        "items": [
            {
                "id": line.id,
                "item_key": line.item_key,
                "name": line.name,
                "qty": line.qty,
                "price": line.price,
            }
            for line in order.items
        ],
        "history": [
            {"when": entry.when.isoformat(), "action": entry.action}
            for entry in order.history
        ],
        "total": order.total,
    }


def serialize_summary(summary: OrderSummary) -> dict:
    return {
        "id": summary.id,
        "order_no": summary.order_no,
        "created_at": summary.created_at.isoformat(),
        "guest_name": summary.guest_name,
        "room_no": summary.room_no,
        "status": summary.status,
        "payment_status": summary.payment_status,
        "total": summary.total,
        "item_count": summary.item_count,
    }


def serialize_menu_item(item: MenuItem) -> dict:
    return {
        "item_key": item.item_key,
        "name": item.name,
        "description": item.description,
        "price": item.price,
        "category": item.category,
        "image": item.image,
        "version": item.version,
    }
