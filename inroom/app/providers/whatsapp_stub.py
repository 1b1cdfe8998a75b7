from __future__ import annotations

"""Stub WhatsApp provider that logs payloads."""

import json
import logging

from ..domain.order import Order

logger = logging.getLogger("whatsapp")


class LogBridge:
    """Pretend to deliver kitchen messages by logging them."""

    channel = "WhatsApp"

    def __init__(self) -> None:
        self.sent: list[dict] = []

    def send(self, order: Order, message: str) -> bool:
        payload = {"order_no": order.order_no, "body": message}
        self.sent.append(payload)
        logger.info(json.dumps(payload))
        return True
