"""Order aggregate: line items, totals, status and audit history.

The aggregate enforces the order invariants in memory. Persistence is the
repository's concern; callers run these operations inside
``OrdersRepo.save_mutation`` so that the read-modify-write span is
serialized per order.

Every operation validates its input before touching state, so a rejected
call leaves the order exactly as it was. Every successful operation appends
exactly one history entry; an operation that changes nothing appends none.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence

from .errors import NotFoundError, ValidationError
from .history import History, utcnow
from .order_status import (
    OrderStatus,
    PaymentStatus,
    parse_payment_status,
    parse_status,
)


@dataclass(frozen=True)
class LineInput:
    """An item about to be added, with name and price already snapshotted."""

    item_key: str
    name: str
    qty: int
    price: int


@dataclass
class OrderLine:
    """A line on an order; ``name`` and ``price`` are copies taken at add time."""

    id: str
    item_key: str
    name: str
    qty: int
    price: int

    @property
    def amount(self) -> int:
        return self.qty * self.price


def _new_id() -> str:
    return uuid.uuid4().hex


def validate_lines(items: Sequence[LineInput]) -> None:
    """Raise :class:`ValidationError` unless every line is well formed."""

    if not items:
        raise ValidationError("at least one item is required")
    for idx, item in enumerate(items):
        if not item.item_key or not str(item.item_key).strip():
            raise ValidationError("item_key is required", {"index": idx})
        if not item.name or not str(item.name).strip():
            raise ValidationError("item name is required", {"index": idx})
        if isinstance(item.qty, bool) or not isinstance(item.qty, int) or item.qty <= 0:
            raise ValidationError(
                "qty must be a positive integer",
                {"index": idx, "item_key": item.item_key},
            )
        if (
            isinstance(item.price, bool)
            or not isinstance(item.price, int)
            or item.price < 0
        ):
            raise ValidationError(
                "price must be a non-negative integer",
                {"index": idx, "item_key": item.item_key},
            )


@dataclass
class Order:
    """A guest's in-room dining order."""

    id: str
    order_no: str
    created_at: datetime
    updated_at: datetime
    guest_name: str
    room_no: str
    notes: str
    source: str
    menu_version: str
    status: OrderStatus = OrderStatus.NEW
    payment_status: PaymentStatus = PaymentStatus.NOT_PAID
    requested_time: str | None = None
    items: list[OrderLine] = field(default_factory=list)
    history: History = field(default_factory=History)
    total: int = 0

    # ------------------------------------------------------------------
    # creation
    # ------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        *,
        guest_name: str,
        room_no: str,
        notes: str,
        menu_version: str,
        initial_items: Sequence[LineInput],
        source: str,
        requested_time: str | None = None,
        now: datetime | None = None,
    ) -> "Order":
        """Build a new order with status ``New`` and payment ``Not Paid``.

        ``order_no`` is left blank; the repository assigns it when the order
        is first persisted.
        """

        if not room_no or not room_no.strip():
            raise ValidationError("room_no is required", {"field": "room_no"})
        validate_lines(initial_items)

        now = now or utcnow()
        order = cls(
            id=_new_id(),
            order_no="",
            created_at=now,
            updated_at=now,
            guest_name=(guest_name or "").strip(),
            room_no=room_no.strip(),
            notes=notes or "",
            source=source or "staff",
            menu_version=menu_version,
            requested_time=requested_time or None,
        )
        for item in initial_items:
            order._merge_line(item)
        order._recompute_total()
        order.history.append("Order created", now)
        return order

    # ------------------------------------------------------------------
    # item mutations
    # ------------------------------------------------------------------
    def add_items(
        self, items: Sequence[LineInput], now: datetime | None = None
    ) -> "Order":
        """Merge ``items`` into the order.

        An ``item_key`` already on the order has its quantity increased by the
        incoming quantity; new keys are appended as new lines.
        """

        validate_lines(items)
        for item in items:
            self._merge_line(item)
        count = sum(item.qty for item in items)
        self._commit(f"Added {count} item(s)", now)
        return self

    def update_quantity(
        self, item_key: str, qty: int, now: datetime | None = None
    ) -> "Order":
        """Set the quantity of ``item_key``; ``qty <= 0`` removes the line."""

        if isinstance(qty, bool) or not isinstance(qty, int):
            raise ValidationError("qty must be an integer", {"item_key": item_key})
        line = self.find_line(item_key)
        if line is None:
            raise NotFoundError(
                f"item {item_key!r} is not on order", {"item_key": item_key}
            )
        if qty <= 0:
            self.items.remove(line)
            action = f"Removed {line.name}"
        elif qty == line.qty:
            return self
        else:
            action = f"{line.name} qty: {line.qty} -> {qty}"
            line.qty = qty
        self._commit(action, now)
        return self

    def remove_item(self, item_key: str, now: datetime | None = None) -> "Order":
        """Remove ``item_key`` from the order."""

        return self.update_quantity(item_key, 0, now)

    # ------------------------------------------------------------------
    # field updates
    # ------------------------------------------------------------------
    def update_fields(
        self,
        *,
        status: str | None = None,
        payment_status: str | None = None,
        requested_time: str | None = None,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> "Order":
        """Apply the given fields, recording one combined history entry.

        ``None`` means "not provided". An empty ``requested_time`` clears it.
        Fields equal to their current value are ignored; if nothing differs
        the order is returned untouched.
        """

        new_status = parse_status(status) if status is not None else None
        new_payment = (
            parse_payment_status(payment_status) if payment_status is not None else None
        )

        changes: list[str] = []
        if new_status is not None and new_status != self.status:
            changes.append(f"Status: {self.status.value} -> {new_status.value}")
            self.status = new_status
        if new_payment is not None and new_payment != self.payment_status:
            changes.append(
                f"Payment: {self.payment_status.value} -> {new_payment.value}"
            )
            self.payment_status = new_payment
        if requested_time is not None:
            wanted = requested_time.strip() or None
            if wanted != self.requested_time:
                changes.append(
                    f"Requested time: {self.requested_time or '-'} -> {wanted or '-'}"
                )
                self.requested_time = wanted
        if notes is not None and notes != self.notes:
            changes.append("Notes updated")
            self.notes = notes

        if changes:
            self._commit("; ".join(changes), now)
        return self

    def record_notification(
        self, channel: str, outcome: str = "sent", now: datetime | None = None
    ) -> "Order":
        """Record a delivered kitchen notification."""

        self._commit(f"{channel} {outcome} to kitchen", now)
        return self

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def find_line(self, item_key: str) -> OrderLine | None:
        for line in self.items:
            if line.item_key == item_key:
                return line
        return None

    def computed_total(self) -> int:
        return sum(line.amount for line in self.items)

    def item_count(self) -> int:
        return sum(line.qty for line in self.items)

    def _merge_line(self, item: LineInput) -> None:
        existing = self.find_line(item.item_key)
        if existing is not None:
            existing.qty += item.qty
            return
        self.items.append(
            OrderLine(
                id=_new_id(),
                item_key=item.item_key,
                name=item.name,
                qty=item.qty,
                price=item.price,
            )
        )

    def _recompute_total(self) -> None:
        self.total = self.computed_total()

    def _commit(self, action: str, now: datetime | None) -> None:
        now = now or utcnow()
        self._recompute_total()
        self.updated_at = now
        self.history.append(action, now)
