import csv
import io
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from inroom.app.domain import LineInput, Order, ValidationError
from inroom.app.reporting.exports import (
    CSV_HEADER,
    day_bounds,
    flatten_items,
    render_csv,
    to_csv_row,
)

NAAN = LineInput("naan", "Naan", 2, 60)
DAL = LineInput("dal_makhani", "Dal Makhani", 1, 200)


def _order(when, guest="Asha", items=(NAAN, DAL)):
    return Order.create(
        guest_name=guest,
        room_no="204",
        notes="",
        menu_version="RestoVersion",
        initial_items=list(items),
        source="staff",
        now=when,
    )


def test_row_layout():
    order = _order(datetime(2024, 1, 15, 8, 30, tzinfo=timezone.utc))
    order.order_no = "RS240115-0001"
    row = to_csv_row(order)
    assert row == (
        "RS240115-0001,2024-01-15T08:30:00Z,Asha,204,320,New,Not Paid,"
        "2x Naan|1x Dal Makhani"
    )
    assert flatten_items(order) == "2x Naan|1x Dal Makhani"


def test_fields_with_delimiters_are_quoted():
    order = _order(
        datetime(2024, 1, 15, 8, 30, tzinfo=timezone.utc), guest='Rao, "Sunny"'
    )
    parsed = next(csv.reader(io.StringIO(to_csv_row(order))))
    assert parsed[2] == 'Rao, "Sunny"'
    assert len(parsed) == len(CSV_HEADER)


def test_render_csv_starts_with_header():
    text = render_csv([])
    assert text == ",".join(CSV_HEADER)


def test_day_bounds_follow_timezone():
    start, end = day_bounds(date(2024, 1, 15), ZoneInfo("Asia/Kolkata"))
    assert start.astimezone(timezone.utc) == datetime(2024, 1, 14, 18, 30, tzinfo=timezone.utc)
    assert end > start


@pytest.mark.anyio
async def test_export_selects_day_and_sorts(service, orders_repo):
    when = [
        datetime(2024, 1, 15, 20, 0, tzinfo=timezone.utc),
        datetime(2024, 1, 14, 23, 59, tzinfo=timezone.utc),
        datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc),
        datetime(2024, 1, 16, 0, 0, tzinfo=timezone.utc),
    ]
    orders = [_order(w, guest=f"Guest {i}") for i, w in enumerate(when)]
    for order in orders:
        await orders_repo.create(order)

    rows = await service.export_orders("2024-01-15")
    assert len(rows) == 2
    assert rows[0].split(",")[1] == "2024-01-15T08:00:00Z"
    assert rows[1].split(",")[1] == "2024-01-15T20:00:00Z"

    assert await service.export_orders(date(2024, 1, 17)) == []


@pytest.mark.anyio
async def test_export_uses_line_snapshots(service):
    order = await service.create_order(
        {"room_no": "101", "items": [{"item_key": "naan", "qty": 2}]}
    )
    await service.menu.publish_version(
        "Winter", [{"item_key": "naan", "name": "Garlic Naan", "price": 99}]
    )
    day = order.created_at.date()
    rows = await service.export_orders(day)
    assert rows[0].endswith(",120,New,Not Paid,2x Naan")


@pytest.mark.anyio
async def test_export_rejects_bad_date(service):
    with pytest.raises(ValidationError):
        await service.export_orders("15/01/2024")
