"""Observability helpers."""

from .context import bound_order
from .queries import add_query_logger

__all__ = ["add_query_logger", "bound_order"]
