"""Printable bill documents and their renderers."""

# bill.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..domain.order import Order

TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"
_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR), autoescape=select_autoescape()
)

# Tax is not charged on in-room dining under the current policy.
TAX_RATE = 0


@dataclass(frozen=True)
class BillLine:
    """Single line item on a bill."""

    name: str
    qty: int
    rate: int

    @property
    def amount(self) -> int:
        return self.qty * self.rate


@dataclass(frozen=True)
class Bill:
    """Structured bill for one order; amounts are in minor currency units."""

    property_name: str
    order_no: str
    guest_name: str
    room_no: str
    created_at: datetime
    updated_at: datetime
    payment_status: str
    requested_time: str | None
    notes: str
    lines: tuple[BillLine, ...] = field(default_factory=tuple)
    subtotal: int = 0
    tax: int = 0
    total: int = 0
    currency: str = "₹"


def to_printable_bill(order: Order, property_name: str, currency: str = "₹") -> Bill:
    """Build a :class:`Bill` from ``order`` without side effects.

    ``subtotal`` is the order's cached total, which equals the sum of its
    line amounts.
    """

    lines = tuple(
        BillLine(name=line.name, qty=line.qty, rate=line.price) for line in order.items
    )
    subtotal = order.total
    tax = subtotal * TAX_RATE
    return Bill(
        property_name=property_name,
        order_no=order.order_no,
        guest_name=order.guest_name,
        room_no=order.room_no,
        created_at=order.created_at,
        updated_at=order.updated_at,
        payment_status=order.payment_status.value,
        requested_time=order.requested_time,
        notes=order.notes,
        lines=lines,
        subtotal=subtotal,
        tax=tax,
        total=subtotal + tax,
        currency=currency,
    )


def render_bill_html(bill: Bill, auto_print: bool = True) -> str:
    """Render ``bill`` as a narrow receipt-style HTML page."""

    template = _env.get_template("bill.html")
    return template.render(bill=bill, auto_print=auto_print)


def render_bill_text(bill: Bill, width: int = 32) -> str:
    """Render ``bill`` for an 80mm thermal printer."""

    def row(left: str, right: str) -> str:
        room = max(width - len(right) - 1, 1)
        return f"{left[:room]:<{room}} {right}"

    money = bill.currency
    lines = [
        bill.property_name.center(width).rstrip(),
        f"Order: {bill.order_no}",
        f"Date: {bill.created_at:%Y-%m-%d %H:%M}",
        f"Guest: {bill.guest_name or '-'} | Room: {bill.room_no or '-'}",
        "-" * width,
    ]
    for line in bill.lines:
        lines.append(row(f"{line.qty} x {line.name}", f"{money}{line.amount}"))
    lines.append("-" * width)
    lines.append(row("Subtotal", f"{money}{bill.subtotal}"))
    lines.append(row("Tax", f"{money}{bill.tax}"))
    lines.append(row("Total", f"{money}{bill.total}"))
    lines.append(f"Payment status: {bill.payment_status}")
    return "\n".join(lines)
