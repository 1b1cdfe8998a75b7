"""Order lifecycle service.

This is the entry point used by the HTTP layer and by scripts. It validates
caller payloads, snapshots menu names and prices into order lines, runs
aggregate operations through the repository's per-order write path and
produces the reporting projections.

Caller input is validated before any lock is taken. Checks that depend on
the current order (for example an unknown item key on a quantity change)
happen inside the mutation and abort without writing.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Iterable, Mapping
from zoneinfo import ZoneInfo

import pydantic

from config import Settings

from ..domain.errors import NotificationError, ValidationError
from ..domain.order import LineInput, Order
from ..obs.context import bound_order
from ..providers.base import NotificationBridge
from ..reporting.bill import Bill, to_printable_bill
from ..reporting.exports import day_bounds, export_range, render_csv
from ..repos.menu_repo import MenuRepo
from ..repos.orders_repo import OrderFilter, OrderSummary, OrdersRepo
from ..schemas import AddItems, OrderCreate, OrderItemIn, OrderUpdate
from .kitchen import build_kitchen_message

logger = logging.getLogger("orders")


def _parse(model: type[pydantic.BaseModel], payload: Any) -> Any:
    """Validate ``payload`` against ``model`` and raise our ``ValidationError``."""

    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as exc:
        errors = [
            {"loc": list(e["loc"]), "msg": e["msg"]}
            for e in exc.errors(include_url=False)
        ]
        raise ValidationError("invalid request payload", {"errors": errors}) from None


def parse_day(value: date | str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(
            "date required (YYYY-MM-DD)", {"field": "date", "value": value}
        ) from None


class OrderService:
    """Core-facing operations over orders, the menu and the kitchen channel."""

    def __init__(
        self,
        orders: OrdersRepo,
        menu: MenuRepo,
        bridge: NotificationBridge,
        settings: Settings,
    ) -> None:
        self.orders = orders
        self.menu = menu
        self.bridge = bridge
        self.settings = settings
        self.tz = ZoneInfo(settings.export_timezone)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    async def _snapshot(
        self, version: str, items: Iterable[OrderItemIn]
    ) -> list[LineInput]:
        """Copy menu names and prices for ``items`` from menu ``version``."""

        menu_items = await self.menu.list_items(version)
        catalog = {item.item_key: item for item in menu_items}
        lines = []
        for idx, item in enumerate(items):
            entry = catalog.get(item.item_key)
            if entry is None:
                raise ValidationError(
                    f"unknown item {item.item_key!r} for menu {version!r}",
                    {"index": idx, "item_key": item.item_key},
                )
            lines.append(
                LineInput(
                    item_key=entry.item_key,
                    name=entry.name,
                    qty=item.qty,
                    price=entry.price,
                )
            )
        return lines

    # ------------------------------------------------------------------
    # orders
    # ------------------------------------------------------------------
    async def create_order(self, payload: Mapping[str, Any] | OrderCreate) -> Order:
        data: OrderCreate = _parse(OrderCreate, payload)
        version = data.menu_version or self.settings.default_menu_version
        lines = await self._snapshot(version, data.items)
        order = Order.create(
            guest_name=data.guest_name,
            room_no=data.room_no,
            notes=data.notes,
            menu_version=version,
            initial_items=lines,
            source=data.source,
            requested_time=data.requested_time,
        )
        await self.orders.create(order)
        return order

    async def get_order(self, order_id: str) -> Order:
        return await self.orders.get(order_id)

    async def list_orders(
        self, order_filter: OrderFilter | None = None
    ) -> list[OrderSummary]:
        return await self.orders.list(order_filter)

    async def add_items_to_order(self, order_id: str, items: Any) -> Order:
        if isinstance(items, Mapping):
            data: AddItems = _parse(AddItems, items)
        else:
            data = _parse(AddItems, {"items": items})
        current = await self.orders.get(order_id)
        lines = await self._snapshot(current.menu_version, data.items)
        return await self.orders.save_mutation(order_id, lambda o: o.add_items(lines))

    async def update_item_quantity(self, order_id: str, item_key: str, qty: int) -> Order:
        if isinstance(qty, bool) or not isinstance(qty, int):
            raise ValidationError("qty must be an integer", {"field": "qty"})
        return await self.orders.save_mutation(
            order_id, lambda o: o.update_quantity(item_key, qty)
        )

    async def remove_item(self, order_id: str, item_key: str) -> Order:
        return await self.orders.save_mutation(order_id, lambda o: o.remove_item(item_key))

    async def update_order(
        self, order_id: str, fields: Mapping[str, Any] | OrderUpdate
    ) -> Order:
        data: OrderUpdate = _parse(OrderUpdate, fields)
        return await self.orders.save_mutation(
            order_id,
            lambda o: o.update_fields(
                status=data.status,
                payment_status=data.payment_status,
                requested_time=data.requested_time,
                notes=data.notes,
            ),
        )

    # ------------------------------------------------------------------
    # reporting
    # ------------------------------------------------------------------
    async def export_orders(self, day: date | str) -> list[str]:
        """Return CSV rows for orders created on ``day`` in the export timezone."""

        start, end = day_bounds(parse_day(day), self.tz)
        orders = await self.orders.list_created_between(start, end)
        return export_range(orders, start, end)

    async def export_csv(self, day: date | str) -> str:
        return render_csv(await self.export_orders(day))

    async def render_bill(self, order_id: str) -> Bill:
        order = await self.orders.get(order_id)
        return to_printable_bill(
            order, self.settings.property_name, self.settings.currency_symbol
        )

    # ------------------------------------------------------------------
    # kitchen
    # ------------------------------------------------------------------
    async def notify_kitchen(self, order_id: str) -> Order:
        """Send the kitchen ticket and record it once delivery is confirmed.

        The blocking send runs in a worker thread, outside the order's write
        lock. A failed send leaves the order untouched and raises
        :class:`NotificationError`.
        """

        order = await self.orders.get(order_id)
        message = build_kitchen_message(order, self.settings.currency_symbol)
        channel = self.bridge.channel
        with bound_order(order_id):
            try:
                delivered = await asyncio.to_thread(self.bridge.send, order, message)
            except NotificationError:
                logger.warning("kitchen notification failed for %s", order.order_no)
                raise
            except Exception as exc:
                logger.exception("kitchen channel error for %s", order.order_no)
                raise NotificationError(
                    f"Failed to send {channel}", {"order_no": order.order_no}
                ) from exc
            if not delivered:
                logger.warning("kitchen notification not delivered for %s", order.order_no)
                raise NotificationError(
                    f"Failed to send {channel}", {"order_no": order.order_no}
                )
        return await self.orders.save_mutation(
            order_id, lambda o: o.record_notification(channel, "sent")
        )
