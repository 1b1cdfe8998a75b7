"""Database models for menus, orders, order lines and order history.

These models describe the relational schema only. They are kept isolated
from any application wiring so that they can be used in tests independently;
the in-memory aggregate lives in :mod:`inroom.app.domain`.
"""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _uuid() -> str:
    return uuid.uuid4().hex


class MenuItem(Base):
    """A sellable item within one menu version."""

    __tablename__ = "menu_items"
    __table_args__ = (UniqueConstraint("version", "item_key", name="uq_menu_version_key"),)

    id = Column(String(32), primary_key=True, default=_uuid)
    version = Column(String, nullable=False, index=True)
    item_key = Column(String, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Integer, nullable=False)
    category = Column(String, nullable=False, default="")
    image = Column(String, nullable=False, default="")
    position = Column(Integer, nullable=False, default=0)


class Order(Base):
    """A guest order; ``total`` caches the sum of its lines."""

    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=_uuid)
    order_no = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    guest_name = Column(String, nullable=False, default="")
    room_no = Column(String, nullable=False, index=True)
    notes = Column(Text, nullable=False, default="")
    source = Column(String, nullable=False, default="staff")
    menu_version = Column(String, nullable=False)
    status = Column(String, nullable=False)
    payment_status = Column(String, nullable=False)
    requested_time = Column(String, nullable=True)
    total = Column(Integer, nullable=False, default=0)

    items = relationship(
        "OrderItem",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    history = relationship(
        "OrderHistory",
        order_by="OrderHistory.seq",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class OrderItem(Base):
    """Line items belonging to an order with name and price snapshots."""

    __tablename__ = "order_items"
    __table_args__ = (UniqueConstraint("order_id", "item_key", name="uq_order_item_key"),)

    id = Column(String(32), primary_key=True, default=_uuid)
    order_id = Column(String(32), ForeignKey("orders.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    item_key = Column(String, nullable=False)
    name = Column(String, nullable=False)
    qty = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False)


class OrderHistory(Base):
    """Append-only history log keyed by order id and sequence number."""

    __tablename__ = "order_history"
    __table_args__ = (UniqueConstraint("order_id", "seq", name="uq_order_history_seq"),)

    id = Column(Integer, primary_key=True)
    order_id = Column(String(32), ForeignKey("orders.id"), nullable=False, index=True)
    seq = Column(Integer, nullable=False)
    at = Column(DateTime(timezone=True), nullable=False)
    action = Column(Text, nullable=False)


class OrderCounter(Base):
    """Per-series counter backing human-facing order numbers."""

    __tablename__ = "order_counters"

    series = Column(String, primary_key=True)
    current = Column(Integer, nullable=False, default=0)
