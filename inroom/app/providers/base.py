"""Base interface for kitchen notification providers."""

from typing import Protocol

from ..domain.order import Order


class NotificationBridge(Protocol):
    """Deliver a rendered kitchen message for an order.

    ``channel`` names the medium in history entries, e.g. ``"WhatsApp"``.
    ``send`` returns ``True`` only on confirmed delivery. It may return
    ``False`` or raise ``NotificationError`` when the channel rejects the
    message or is unavailable.
    """

    channel: str

    def send(self, order: Order, message: str) -> bool:
        ...
