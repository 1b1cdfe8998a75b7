"""Error taxonomy for the order lifecycle."""

from __future__ import annotations

from typing import Any


class OrderError(Exception):
    """Base class for errors raised by the order core."""

    code = "ORDER_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(OrderError):
    """Malformed input; raised before any state is touched."""

    code = "VALIDATION"


class InvalidStateError(ValidationError):
    """Unrecognized ``status`` or ``payment_status`` value."""

    code = "INVALID_STATE"


class NotFoundError(OrderError):
    """Unknown order id or item key."""

    code = "NOT_FOUND"


class ConcurrencyError(OrderError):
    """The per-order write lock could not be acquired in time."""

    code = "CONFLICT"


class NotificationError(OrderError):
    """The kitchen channel is unavailable, unconfigured or rejected the message."""

    code = "NOTIFICATION_FAILED"


__all__ = [
    "OrderError",
    "ValidationError",
    "InvalidStateError",
    "NotFoundError",
    "ConcurrencyError",
    "NotificationError",
]
