"""SQLAlchemy implementation of the menu repository."""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..domain.errors import ValidationError
from ..domain.menu import MenuItem
from ..menu.seed import SAMPLE_MENU
from ..models import MenuItem as MenuItemRow
from ..repos.menu_repo import MenuRepo

logger = logging.getLogger("menu")


def _to_domain(row: MenuItemRow) -> MenuItem:
    return MenuItem(
        item_key=row.item_key,
        name=row.name,
        price=row.price,
        category=row.category,
        version=row.version,
        description=row.description,
        image=row.image,
    )


def _validate_upload(version: str, items: list[dict]) -> None:
    if not version or not version.strip():
        raise ValidationError("menu version is required", {"field": "version"})
    if not items:
        raise ValidationError("a menu version needs at least one item")
    seen: set[str] = set()
    for idx, item in enumerate(items):
        key = (item.get("item_key") or "").strip()
        if not key:
            raise ValidationError("item_key is required", {"index": idx})
        if key in seen:
            raise ValidationError(f"duplicate item_key {key!r}", {"index": idx})
        seen.add(key)
        if not (item.get("name") or "").strip():
            raise ValidationError("item name is required", {"index": idx})
        price = item.get("price")
        if isinstance(price, bool) or not isinstance(price, int) or price < 0:
            raise ValidationError(
                "price must be a non-negative integer", {"index": idx, "item_key": key}
            )


def _version_exists(version: str) -> ValidationError:
    return ValidationError(
        f"menu version {version!r} already exists", {"field": "version"}
    )


class MenuRepoSQL(MenuRepo):
    """Concrete MenuRepo backed by the ``menu_items`` table.

    Versions are append-only: publishing adds rows under a new tag and never
    updates rows of an existing version.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = session_factory

    async def list_items(self, version: str) -> list[MenuItem]:
        """Return items of ``version`` in the order they were published."""
        async with self._sessions() as session:
            rows = (
                await session.scalars(
                    select(MenuItemRow)
                    .where(MenuItemRow.version == version)
                    .order_by(MenuItemRow.position)
                )
            ).all()
        return [_to_domain(row) for row in rows]

    async def get_item(self, version: str, item_key: str) -> MenuItem | None:
        async with self._sessions() as session:
            row = await session.scalar(
                select(MenuItemRow).where(
                    MenuItemRow.version == version, MenuItemRow.item_key == item_key
                )
            )
        return _to_domain(row) if row is not None else None

    async def list_versions(self) -> list[str]:
        async with self._sessions() as session:
            result = await session.execute(
                select(MenuItemRow.version, func.count(MenuItemRow.id))
                .group_by(MenuItemRow.version)
                .order_by(MenuItemRow.version)
            )
        return [row[0] for row in result.all()]

    async def publish_version(
        self, version: str, items: Iterable[dict]
    ) -> list[MenuItem]:
        """Append ``items`` under ``version``; existing versions are rejected."""
        items = list(items)
        _validate_upload(version, items)
        version = version.strip()
        try:
            async with self._sessions() as session, session.begin():
                exists = await session.scalar(
                    select(func.count(MenuItemRow.id)).where(
                        MenuItemRow.version == version
                    )
                )
                if exists:
                    raise _version_exists(version)
                for position, item in enumerate(items):
                    session.add(
                        MenuItemRow(
                            version=version,
                            item_key=item["item_key"].strip(),
                            name=item["name"].strip(),
                            description=item.get("description") or "",
                            price=item["price"],
                            category=item.get("category") or "",
                            image=item.get("image") or "",
                            position=position,
                        )
                    )
        except IntegrityError:
            # A concurrent publish of the same tag committed first
            logger.warning("menu version %s published concurrently", version)
            raise _version_exists(version) from None
        logger.info("published menu version %s with %d items", version, len(items))
        return await self.list_items(version)

    async def seed_default(self, version: str) -> bool:
        """Seed ``version`` with :data:`SAMPLE_MENU` if the catalog is empty."""
        async with self._sessions() as session:
            count = await session.scalar(select(func.count(MenuItemRow.id)))
        if count:
            return False
        await self.publish_version(version, SAMPLE_MENU)
        return True
