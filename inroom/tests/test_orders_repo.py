import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import SQLAlchemyError

from inroom.app.domain import (
    ConcurrencyError,
    LineInput,
    NotFoundError,
    Order,
    OrderStatus,
)
from inroom.app.repos.orders_repo import OrderFilter
from inroom.app.repos_sqlalchemy import orders_repo_sql
from inroom.app.repos_sqlalchemy.orders_repo_sql import OrdersRepoSQL

PANEER = LineInput("paneer_tikka", "Paneer Tikka Masala", 2, 255)
NAAN = LineInput("naan", "Naan", 1, 60)
DAL = LineInput("dal_makhani", "Dal Makhani", 1, 200)


def _new(room="204", now=None, items=(PANEER,)):
    return Order.create(
        guest_name="Asha",
        room_no=room,
        notes="",
        menu_version="RestoVersion",
        initial_items=list(items),
        source="staff",
        now=now,
    )


@pytest.mark.anyio
async def test_create_and_get_round_trip(orders_repo):
    order = _new()
    order_id = await orders_repo.create(order)
    loaded = await orders_repo.get(order_id)
    assert loaded.order_no == order.order_no
    assert loaded.total == 510
    assert [(l.item_key, l.qty, l.price) for l in loaded.items] == [("paneer_tikka", 2, 255)]
    assert [e.action for e in loaded.history] == ["Order created"]
    assert loaded.created_at.tzinfo is not None


@pytest.mark.anyio
async def test_order_numbers_are_sequential_per_day(orders_repo):
    day = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    first, second = _new(now=day), _new(now=day + timedelta(hours=1))
    nextday = _new(now=day + timedelta(days=1))
    for order in (first, second, nextday):
        await orders_repo.create(order)
    assert first.order_no == "RS240115-0001"
    assert second.order_no == "RS240115-0002"
    assert nextday.order_no == "RS240116-0001"


@pytest.mark.anyio
async def test_concurrent_creates_get_distinct_numbers(orders_repo):
    day = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    orders = [_new(now=day) for _ in range(5)]
    await asyncio.gather(*(orders_repo.create(order) for order in orders))
    assert sorted(o.order_no for o in orders) == [
        f"RS240115-{n:04d}" for n in range(1, 6)
    ]


@pytest.mark.anyio
async def test_get_unknown_order(orders_repo):
    with pytest.raises(NotFoundError):
        await orders_repo.get("missing")
    with pytest.raises(NotFoundError):
        await orders_repo.save_mutation("missing", lambda o: o.add_items([NAAN]))


@pytest.mark.anyio
async def test_save_mutation_persists_lines_total_and_history(orders_repo):
    order_id = await orders_repo.create(_new())
    result = await orders_repo.save_mutation(order_id, lambda o: o.add_items([NAAN, DAL]))
    assert result.total == 510 + 60 + 200

    loaded = await orders_repo.get(order_id)
    assert loaded.total == result.total
    assert [l.item_key for l in loaded.items] == ["paneer_tikka", "naan", "dal_makhani"]
    assert [e.action for e in loaded.history] == ["Order created", "Added 2 item(s)"]

    await orders_repo.save_mutation(order_id, lambda o: o.remove_item("naan"))
    loaded = await orders_repo.get(order_id)
    assert [l.item_key for l in loaded.items] == ["paneer_tikka", "dal_makhani"]
    assert loaded.total == 710
    assert loaded.history[-1].action == "Removed Naan"


@pytest.mark.anyio
async def test_failed_mutator_writes_nothing(orders_repo):
    order_id = await orders_repo.create(_new())

    def mutator(order):
        order.add_items([NAAN])
        raise RuntimeError("aborted")

    with pytest.raises(RuntimeError):
        await orders_repo.save_mutation(order_id, mutator)
    loaded = await orders_repo.get(order_id)
    assert loaded.total == 510
    assert len(loaded.history) == 1


@pytest.mark.anyio
async def test_storage_failure_rolls_back(orders_repo, monkeypatch):
    order_id = await orders_repo.create(_new())

    def broken(row, order, stored):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(orders_repo_sql, "_append_history", broken)
    with pytest.raises(SQLAlchemyError):
        await orders_repo.save_mutation(order_id, lambda o: o.add_items([NAAN]))

    loaded = await orders_repo.get(order_id)
    assert loaded.find_line("naan") is None
    assert loaded.total == 510


@pytest.mark.anyio
async def test_noop_mutation_does_not_write(orders_repo):
    order_id = await orders_repo.create(_new())
    before = await orders_repo.get(order_id)
    await orders_repo.save_mutation(
        order_id, lambda o: o.update_fields(status="New", notes="")
    )
    after = await orders_repo.get(order_id)
    assert after.updated_at == before.updated_at
    assert len(after.history) == 1


@pytest.mark.anyio
async def test_lock_timeout_raises_concurrency_error(db):
    repo = OrdersRepoSQL(db, lock_timeout=0.05)
    order_id = await repo.create(_new())
    async with repo._locks.hold(order_id):
        with pytest.raises(ConcurrencyError):
            await repo.save_mutation(order_id, lambda o: o.add_items([NAAN]))
    assert (await repo.get(order_id)).find_line("naan") is None


@pytest.mark.anyio
async def test_concurrent_mutations_are_serialized(orders_repo):
    order_id = await orders_repo.create(_new())
    keys = [f"extra_{i}" for i in range(6)]

    async def add(key):
        await orders_repo.save_mutation(
            order_id, lambda o: o.add_items([LineInput(key, key.title(), 1, 10)])
        )

    await asyncio.gather(*(add(key) for key in keys))

    loaded = await orders_repo.get(order_id)
    assert {l.item_key for l in loaded.items} == {"paneer_tikka", *keys}
    assert loaded.total == 510 + 10 * len(keys)
    assert len(loaded.history) == 1 + len(keys)


@pytest.mark.anyio
async def test_concurrent_increments_of_same_key_are_additive(orders_repo):
    order_id = await orders_repo.create(_new())
    await asyncio.gather(
        *(
            orders_repo.save_mutation(order_id, lambda o: o.add_items([NAAN]))
            for _ in range(5)
        )
    )
    loaded = await orders_repo.get(order_id)
    assert loaded.find_line("naan").qty == 5
    assert loaded.total == 510 + 5 * 60


@pytest.mark.anyio
async def test_writers_on_different_orders_do_not_wait(db):
    repo = OrdersRepoSQL(db, lock_timeout=0.05)
    held, free = await repo.create(_new()), await repo.create(_new(room="101"))
    async with repo._locks.hold(held):
        updated = await repo.save_mutation(free, lambda o: o.add_items([NAAN]))
    assert updated.find_line("naan").qty == 1


@pytest.mark.anyio
async def test_list_filters_and_counts(orders_repo):
    base = datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)
    a = _new(room="101", now=base)
    b = _new(room="202", now=base + timedelta(hours=1), items=(NAAN, DAL))
    await orders_repo.create(a)
    await orders_repo.create(b)
    await orders_repo.save_mutation(a.id, lambda o: o.update_fields(status="Preparing"))

    summaries = await orders_repo.list()
    assert [s.order_no for s in summaries] == [b.order_no, a.order_no]
    assert summaries[0].item_count == 2

    preparing = await orders_repo.list(OrderFilter(status=OrderStatus.PREPARING.value))
    assert [s.id for s in preparing] == [a.id]
    assert [s.id for s in await orders_repo.list(OrderFilter(room_no="202"))] == [b.id]


@pytest.mark.anyio
async def test_list_created_between_is_ascending(orders_repo):
    base = datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)
    late = _new(now=base + timedelta(hours=5))
    early = _new(now=base)
    await orders_repo.create(late)
    await orders_repo.create(early)
    found = await orders_repo.list_created_between(base, base + timedelta(hours=6))
    assert [o.id for o in found] == [early.id, late.id]
