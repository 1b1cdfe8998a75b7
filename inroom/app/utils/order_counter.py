"""Utilities for managing human-facing order numbers."""

from datetime import date

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession


def build_series(prefix: str, today: date) -> str:
    """Return the daily series key for ``prefix``, e.g. ``RS240115``.

    The counter restarts for every series, so order numbers reset daily.
    """
    return f"{prefix}{today:%y%m%d}"


async def next_order_no(session: AsyncSession, series: str) -> str:
    """Advance the counter for ``series`` and return the formatted number.

    The counter row is created if missing and atomically incremented. The
    caller owns the transaction; the increment becomes visible only when the
    caller commits, together with the order row that uses it. Numbers are
    formatted as ``SERIES-0001``.
    """
    stmt = text(
        """
        INSERT INTO order_counters (series, current)
        VALUES (:series, 1)
        ON CONFLICT (series)
        DO UPDATE SET current = order_counters.current + 1
        RETURNING current
        """
    )
    result = await session.execute(stmt, {"series": series})
    current = result.scalar_one()
    return f"{series}-{current:04d}"
