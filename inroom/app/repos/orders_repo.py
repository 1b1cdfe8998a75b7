"""Repository interface for order operations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class OrderFilter:
    """Optional criteria for :meth:`OrdersRepo.list`."""

    status: str | None = None
    payment_status: str | None = None
    room_no: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    limit: int = 200


@dataclass(frozen=True)
class OrderSummary:
    """Lightweight representation of an order used by listings."""

    id: str
    order_no: str
    created_at: datetime
    guest_name: str
    room_no: str
    status: str
    payment_status: str
    total: int
    item_count: int


class OrdersRepo(ABC):
    """Contract for order persistence.

    ``save_mutation`` is the only write path for existing orders. It must
    serialize writers per order id for the whole load, mutate and persist
    span and commit items, totals and history as one unit.
    """

    @abstractmethod
    async def create(self, order):
        """Persist a new order and return its id."""
        raise NotImplementedError

    @abstractmethod
    async def get(self, order_id):
        """Return the order or raise ``NotFoundError``."""
        raise NotImplementedError

    @abstractmethod
    async def list(self, order_filter=None):
        """Return :class:`OrderSummary` rows, newest first."""
        raise NotImplementedError

    @abstractmethod
    async def list_created_between(self, start, end):
        """Return full orders created in ``[start, end]``, oldest first."""
        raise NotImplementedError

    @abstractmethod
    async def save_mutation(self, order_id, mutator):
        """Apply ``mutator`` to the stored order under its write lock."""
        raise NotImplementedError
