"""CSV export of orders.

Rows are derived from the persisted order alone. Item names and prices come
from the line snapshots, never from the live menu.
"""

from __future__ import annotations

import csv
import io
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, Sequence

from ..domain.order import Order

CSV_HEADER = (
    "order_no",
    "created_at",
    "guest_name",
    "room_no",
    "total",
    "status",
    "payment_status",
    "items",
)


def flatten_items(order: Order) -> str:
    """Return the order's lines as ``"2x Naan|1x Dal Makhani"``."""
    return "|".join(f"{line.qty}x {line.name}" for line in order.items)


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _write(fields: Iterable[object]) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="").writerow(fields)
    return buffer.getvalue()


def csv_fields(order: Order) -> tuple:
    return (
        order.order_no,
        _iso(order.created_at),
        order.guest_name,
        order.room_no,
        order.total,
        order.status.value,
        order.payment_status.value,
        flatten_items(order),
    )


def to_csv_row(order: Order) -> str:
    """Render ``order`` as one CSV line without a trailing newline.

    Fields containing the delimiter, quotes or line breaks are quoted.
    """
    return _write(csv_fields(order))


def day_bounds(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """Return the first and last instant of ``day`` in ``tz``."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = start + timedelta(days=1) - timedelta(microseconds=1)
    return start, end


def export_range(
    orders: Iterable[Order], start: datetime, end: datetime
) -> list[str]:
    """Return CSV rows for orders created in ``[start, end]``, oldest first."""
    selected = [o for o in orders if start <= o.created_at <= end]
    selected.sort(key=lambda o: (o.created_at, o.order_no))
    return [to_csv_row(o) for o in selected]


def render_csv(rows: Sequence[str]) -> str:
    """Join ``rows`` under the header line."""
    return "\n".join([_write(CSV_HEADER), *rows])
