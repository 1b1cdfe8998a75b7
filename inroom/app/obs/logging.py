"""JSON log output for the order service."""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any

from .context import order_id_ctx, request_id_ctx

EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+", re.I)
PHONE_RE = re.compile(r"\+?\b\d{10,13}\b")
PASS_RE = re.compile(r"(?i)(pass(?:phrase)?\s*[=:]\s*)\S+")


def _redact_pii(text: str) -> str:
    """Mask guest contact details and operator passphrases."""
    text = EMAIL_RE.sub("***", text)
    text = PHONE_RE.sub("***", text)
    return PASS_RE.sub(lambda m: m.group(1) + "***", text)


class ContextFilter(logging.Filter):
    """Copy the request id and bound order id onto each record.

    An ``order_id`` passed through ``extra=`` wins over the bound one.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.req_id = request_id_ctx.get(None)
        if getattr(record, "order_id", None) is None:
            record.order_id = order_id_ctx.get(None)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "req_id": getattr(record, "req_id", None),
            "order_id": getattr(record, "order_id", None),
            "msg": _redact_pii(record.getMessage()),
        }
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


def configure_logging(level: int = logging.INFO) -> None:
    """Send all records through :class:`JsonFormatter` on stderr.

    Uvicorn's access log is quietened because the request logging
    middleware already writes one line per request.
    """

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(ContextFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
