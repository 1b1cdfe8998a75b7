"""SQLAlchemy-backed repository for orders.

Orders are stored as one ``orders`` row, one ``order_items`` row per line
and one ``order_history`` row per history entry. Line names and prices are
snapshots taken when the line was added, so historical totals are retained
even if the menu changes later.

All writes to an existing order go through :meth:`OrdersRepoSQL.save_mutation`
which holds a per-order lock for the whole load, mutate and persist span and
commits the order row, its lines and its new history rows in one
transaction.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from typing import Callable

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..domain.errors import ConcurrencyError, NotFoundError
from ..domain.history import History, HistoryEntry
from ..domain.order import Order, OrderLine
from ..domain.order_status import OrderStatus, PaymentStatus
from ..models import Order as OrderRow
from ..models import OrderHistory, OrderItem
from ..obs.context import bound_order
from ..repos.orders_repo import OrderFilter, OrderSummary, OrdersRepo
from ..utils.keyed_lock import KeyedLock, LockTimeout
from ..utils.order_counter import build_series, next_order_no

logger = logging.getLogger("orders")

Mutator = Callable[[Order], "Order | None"]


def _to_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    SQLite hands back naive datetimes; everything is stored in UTC so naive
    values are tagged rather than converted.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_domain(row: OrderRow) -> Order:
    return Order(
        id=row.id,
        order_no=row.order_no,
        created_at=_to_utc(row.created_at),
        updated_at=_to_utc(row.updated_at),
        guest_name=row.guest_name,
        room_no=row.room_no,
        notes=row.notes,
        source=row.source,
        menu_version=row.menu_version,
        status=OrderStatus(row.status),
        payment_status=PaymentStatus(row.payment_status),
        requested_time=row.requested_time,
        items=[
            OrderLine(
                id=item.id,
                item_key=item.item_key,
                name=item.name,
                qty=item.qty,
                price=item.price,
            )
            for item in row.items
        ],
        history=History(
            HistoryEntry(when=_to_utc(entry.at), action=entry.action)
            for entry in row.history
        ),
        total=row.total,
    )


def _apply_fields(row: OrderRow, order: Order) -> None:
    row.guest_name = order.guest_name
    row.room_no = order.room_no
    row.notes = order.notes
    row.source = order.source
    row.menu_version = order.menu_version
    row.status = order.status.value
    row.payment_status = order.payment_status.value
    row.requested_time = order.requested_time
    row.total = order.computed_total()
    row.updated_at = _to_utc(order.updated_at)


def _sync_items(row: OrderRow, order: Order) -> None:
    """Make ``row.items`` match ``order.items``, matching lines by item key."""
    existing = {item.item_key: item for item in row.items}
    wanted = {line.item_key for line in order.items}
    for key, item_row in list(existing.items()):
        if key not in wanted:
            row.items.remove(item_row)
    for position, line in enumerate(order.items):
        item_row = existing.get(line.item_key)
        if item_row is None:
            row.items.append(
                OrderItem(
                    id=line.id,
                    position=position,
                    item_key=line.item_key,
                    name=line.name,
                    qty=line.qty,
                    price=line.price,
                )
            )
        else:
            item_row.position = position
            item_row.name = line.name
            item_row.qty = line.qty
            item_row.price = line.price


def _append_history(row: OrderRow, order: Order, stored: int) -> None:
    for seq, entry in enumerate(order.history.since(stored), start=stored):
        row.history.append(
            OrderHistory(seq=seq, at=_to_utc(entry.when), action=entry.action)
        )


class OrdersRepoSQL(OrdersRepo):
    """Concrete :class:`OrdersRepo` using an async SQLAlchemy session factory."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        order_no_prefix: str = "RS",
        lock_timeout: float | None = 5.0,
        tz: tzinfo = timezone.utc,
    ) -> None:
        self._sessions = session_factory
        self._prefix = order_no_prefix
        self._lock_timeout = lock_timeout
        self._tz = tz
        self._locks = KeyedLock()

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------
    async def create(self, order: Order) -> str:
        """Insert ``order`` with its lines and history; assign ``order_no``."""

        series = build_series(self._prefix, order.created_at.astimezone(self._tz).date())
        try:
            async with self._sessions() as session, session.begin():
                order_no = await next_order_no(session, series)
                row = OrderRow(
                    id=order.id,
                    order_no=order_no,
                    created_at=_to_utc(order.created_at),
                )
                _apply_fields(row, order)
                _sync_items(row, order)
                _append_history(row, order, 0)
                session.add(row)
        except IntegrityError:
            logger.exception("could not store order %s in %s", order.id, series)
            raise
        order.order_no = order_no
        order.total = order.computed_total()
        logger.info(
            "order %s created for room %s total=%d",
            order_no,
            order.room_no,
            order.total,
            extra={"order_id": order.id},
        )
        return order.id

    async def save_mutation(self, order_id: str, mutator: Mutator) -> Order:
        """Load, mutate and persist ``order_id`` with at most one writer.

        ``mutator`` receives the current :class:`Order` and either mutates it
        in place or returns a replacement. If it raises, nothing is written.
        If it appends no history entry the order is unchanged and no write
        happens.
        """

        with bound_order(order_id):
            try:
                async with self._locks.hold(order_id, timeout=self._lock_timeout):
                    return await self._mutate(order_id, mutator)
            except LockTimeout as exc:
                logger.warning("write lock timeout for order %s", order_id)
                raise ConcurrencyError(
                    "order is being modified, retry shortly", {"order_id": order_id}
                ) from exc

    async def _mutate(self, order_id: str, mutator: Mutator) -> Order:
        try:
            async with self._sessions() as session, session.begin():
                row = await self._load_for_update(session, order_id)
                order = _to_domain(row)
                stored = len(order.history)
                result = mutator(order)
                if result is not None:
                    order = result
                if len(order.history) == stored:
                    return order
                _apply_fields(row, order)
                _sync_items(row, order)
                _append_history(row, order, stored)
        except SQLAlchemyError:
            logger.exception("persisting order %s failed; rolled back", order_id)
            raise
        order.total = order.computed_total()
        logger.info("order %s: %s", order.order_no, order.history[-1].action)
        return order

    @staticmethod
    async def _load_for_update(session: AsyncSession, order_id: str) -> OrderRow:
        row = (
            await session.scalars(
                select(OrderRow).where(OrderRow.id == order_id).with_for_update()
            )
        ).one_or_none()
        if row is None:
            raise NotFoundError(f"order {order_id!r} not found", {"order_id": order_id})
        return row

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    async def get(self, order_id: str) -> Order:
        async with self._sessions() as session:
            row = await session.get(OrderRow, order_id)
            if row is None:
                raise NotFoundError(
                    f"order {order_id!r} not found", {"order_id": order_id}
                )
            return _to_domain(row)

    async def list(self, order_filter: OrderFilter | None = None) -> list[OrderSummary]:
        """Return order summaries matching ``order_filter``, newest first."""

        order_filter = order_filter or OrderFilter()
        item_count = (
            select(func.coalesce(func.sum(OrderItem.qty), 0))
            .where(OrderItem.order_id == OrderRow.id)
            .scalar_subquery()
        )
        stmt = select(OrderRow, item_count.label("item_count"))
        if order_filter.status:
            stmt = stmt.where(OrderRow.status == order_filter.status)
        if order_filter.payment_status:
            stmt = stmt.where(OrderRow.payment_status == order_filter.payment_status)
        if order_filter.room_no:
            stmt = stmt.where(OrderRow.room_no == order_filter.room_no)
        if order_filter.created_from:
            stmt = stmt.where(OrderRow.created_at >= _to_utc(order_filter.created_from))
        if order_filter.created_to:
            stmt = stmt.where(OrderRow.created_at <= _to_utc(order_filter.created_to))
        stmt = stmt.order_by(OrderRow.created_at.desc(), OrderRow.order_no.desc())
        stmt = stmt.limit(order_filter.limit)

        async with self._sessions() as session:
            rows = (await session.execute(stmt)).all()
        return [
            OrderSummary(
                id=row.id,
                order_no=row.order_no,
                created_at=_to_utc(row.created_at),
                guest_name=row.guest_name,
                room_no=row.room_no,
                status=row.status,
                payment_status=row.payment_status,
                total=row.total,
                item_count=int(count),
            )
            for row, count in rows
        ]

    async def list_created_between(self, start: datetime, end: datetime) -> list[Order]:
        """Return orders created in ``[start, end]`` ordered by creation time."""

        stmt = (
            select(OrderRow)
            .where(
                OrderRow.created_at >= _to_utc(start),
                OrderRow.created_at <= _to_utc(end),
            )
            .order_by(OrderRow.created_at, OrderRow.order_no)
        )
        async with self._sessions() as session:
            rows = (await session.scalars(stmt)).all()
            return [_to_domain(row) for row in rows]
