from __future__ import annotations

"""Kitchen notification helpers."""

import logging

from config import Settings

from ..domain.errors import NotificationError
from ..domain.order import Order
from ..providers.base import NotificationBridge
from ..providers.whatsapp_stub import LogBridge
from ..providers.whatsapp_twilio import TwilioWhatsAppBridge

logger = logging.getLogger("whatsapp")


def build_kitchen_message(order: Order, currency: str = "₹") -> str:
    """Render the kitchen ticket text for ``order``."""

    items_text = "\n".join(f"{line.qty} x {line.name}" for line in order.items)
    return (
        f"NEW ORDER: {order.order_no}\n"
        f"Room: {order.room_no}\n"
        f"Guest: {order.guest_name}\n"
        f"Items:\n{items_text}\n"
        f"Total: {currency}{order.total}\n"
        f"Notes: {order.notes or '-'}"
    )


class UnconfiguredBridge:
    """Bridge used when no channel is configured; every send fails."""

    channel = "WhatsApp"

    def send(self, order: Order, message: str) -> bool:
        raise NotificationError("WhatsApp not configured")


def bridge_from_settings(settings: Settings) -> NotificationBridge:
    """Return the notification bridge selected by ``settings``."""

    if settings.twilio_configured:
        return TwilioWhatsAppBridge(
            settings.twilio_account_sid,
            settings.twilio_auth_token,
            settings.twilio_whatsapp_from,
            settings.kitchen_whatsapp_to,
            api_base=settings.twilio_api_base,
        )
    if settings.whatsapp_stub:
        logger.info("twilio not configured; using log bridge")
        return LogBridge()
    return UnconfiguredBridge()
