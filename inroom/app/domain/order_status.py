"""Order and payment status enumerations."""

from __future__ import annotations

from enum import Enum

from .errors import InvalidStateError


class OrderStatus(str, Enum):
    """Enumerate the lifecycle states for an order."""

    NEW = "New"
    PREPARING = "Preparing"
    READY = "Ready"
    SERVED = "Served"
    COMPLETED = "Completed"
    UPDATED = "Updated"


class PaymentStatus(str, Enum):
    """Enumerate how far an order has been settled."""

    NOT_PAID = "Not Paid"
    PARTIAL = "Partial"
    PAID = "Paid"


def parse_status(value: str) -> OrderStatus:
    """Return the :class:`OrderStatus` for ``value`` or raise ``InvalidStateError``."""

    try:
        return OrderStatus(value)
    except ValueError:
        allowed = [s.value for s in OrderStatus]
        raise InvalidStateError(
            f"unknown status {value!r}", {"field": "status", "allowed": allowed}
        ) from None


def parse_payment_status(value: str) -> PaymentStatus:
    """Return the :class:`PaymentStatus` for ``value`` or raise ``InvalidStateError``."""

    try:
        return PaymentStatus(value)
    except ValueError:
        allowed = [s.value for s in PaymentStatus]
        raise InvalidStateError(
            f"unknown payment status {value!r}",
            {"field": "payment_status", "allowed": allowed},
        ) from None
