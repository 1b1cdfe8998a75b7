"""Per-request context attached to log records."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
order_id_ctx: ContextVar[str | None] = ContextVar("order_id", default=None)


@contextmanager
def bound_order(order_id: str) -> Iterator[None]:
    """Tag every log record emitted inside the block with ``order_id``."""

    token = order_id_ctx.set(order_id)
    try:
        yield
    finally:
        order_id_ctx.reset(token)
