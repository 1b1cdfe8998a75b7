"""WhatsApp provider backed by the Twilio Messages REST API."""

from __future__ import annotations

import logging
import time

import requests

from ..domain.errors import NotificationError
from ..domain.order import Order

logger = logging.getLogger("whatsapp")


def _wa(number: str) -> str:
    return number if number.startswith("whatsapp:") else f"whatsapp:{number}"


class TwilioWhatsAppBridge:
    """Send kitchen messages over WhatsApp through Twilio.

    Server errors (5xx) and connection failures are retried with exponential
    backoff. Client errors are not retried; the channel rejected the message.
    """

    channel = "WhatsApp"

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        to_number: str,
        *,
        api_base: str = "https://api.twilio.com/2010-04-01",
        attempts: int = 3,
        backoff: float = 0.1,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = _wa(from_number)
        self.to_number = _wa(to_number)
        self.url = f"{api_base.rstrip('/')}/Accounts/{account_sid}/Messages.json"
        self.attempts = attempts
        self.backoff = backoff
        self.timeout = timeout
        self.http = session or requests.Session()

    def send(self, order: Order, message: str) -> bool:
        delay = self.backoff
        data = {"From": self.from_number, "To": self.to_number, "Body": message}
        for attempt in range(1, self.attempts + 1):
            try:
                resp = self.http.post(
                    self.url,
                    data=data,
                    auth=(self.account_sid, self.auth_token),
                    timeout=self.timeout,
                )
            except requests.RequestException as exc:
                if attempt < self.attempts:
                    logger.warning("whatsapp send attempt %d failed: %s", attempt, exc)
                    time.sleep(delay)
                    delay *= 2
                    continue
                raise NotificationError(
                    "WhatsApp channel unavailable", {"order_no": order.order_no}
                ) from exc
            if resp.status_code >= 500 and attempt < self.attempts:
                logger.warning(
                    "whatsapp send attempt %d got %d", attempt, resp.status_code
                )
                time.sleep(delay)
                delay *= 2
                continue
            if resp.status_code >= 400:
                raise NotificationError(
                    "WhatsApp message rejected",
                    {"order_no": order.order_no, "status": resp.status_code},
                )
            try:
                sid = resp.json().get("sid")
            except ValueError:
                # Delivered; the body just isn't the JSON we expected
                sid = None
            logger.info("whatsapp sent order=%s sid=%s", order.order_no, sid)
            return True
        return False
