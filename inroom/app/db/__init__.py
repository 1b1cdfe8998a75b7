"""Engine and session factory helpers."""

from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from ..models import Base
from ..obs import add_query_logger


def _sqlite_pragmas(dbapi_connection, connection_record):  # type: ignore[no-untyped-def]
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def create_session_factory(
    url: str, label: str = "orders"
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Return an async session factory and engine for ``url``.

    In-memory SQLite URLs use a static pool so every session shares the same
    data; file-backed SQLite waits on locks instead of failing immediately.
    The schema is not touched here, see :func:`init_models`.
    """

    kwargs: dict = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"timeout": 30}
        if url.endswith(("://", ":memory:")):
            kwargs["poolclass"] = StaticPool
    engine = create_async_engine(url, **kwargs)
    if url.startswith("sqlite"):
        event.listen(engine.sync_engine, "connect", _sqlite_pragmas)
    add_query_logger(engine.sync_engine, label)
    session_factory = async_sessionmaker(
        engine, expire_on_commit=False, autoflush=False, class_=AsyncSession
    )
    return session_factory, engine


async def init_models(engine: AsyncEngine) -> None:
    """Create missing tables on ``engine``."""

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


__all__ = ["create_session_factory", "init_models"]
