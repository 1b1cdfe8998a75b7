"""Domain models and helpers."""

from .errors import (
    ConcurrencyError,
    InvalidStateError,
    NotFoundError,
    NotificationError,
    OrderError,
    ValidationError,
)
from .history import History, HistoryEntry
from .menu import MenuItem
from .order import LineInput, Order, OrderLine
from .order_status import OrderStatus, PaymentStatus

__all__ = [
    "ConcurrencyError",
    "History",
    "HistoryEntry",
    "InvalidStateError",
    "LineInput",
    "MenuItem",
    "NotFoundError",
    "NotificationError",
    "Order",
    "OrderError",
    "OrderLine",
    "OrderStatus",
    "PaymentStatus",
    "ValidationError",
]
