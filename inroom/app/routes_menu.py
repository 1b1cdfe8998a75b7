"""Menu catalog routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request

from .auth import require_passphrase
from .deps import get_service
from .schemas import MenuUpload, serialize_menu_item
from .services.orders import OrderService
from .utils.responses import ok

router = APIRouter(prefix="/api", dependencies=[Depends(require_passphrase)])


@router.get("/menu")
async def fetch_menu(
    request: Request,
    version: Optional[str] = None,
    service: OrderService = Depends(get_service),
) -> dict:
    """Return the items of ``version`` (the configured default if omitted)."""

    version = version or request.app.state.settings.default_menu_version
    items = await service.menu.list_items(version)
    return ok(
        {
            "version": version,
            "versions": await service.menu.list_versions(),
            "items": [serialize_menu_item(item) for item in items],
        }
    )


@router.post("/menu")
async def upload_menu(
    payload: MenuUpload, service: OrderService = Depends(get_service)
) -> dict:
    """Publish a new menu version; existing versions are never modified."""

    items = await service.menu.publish_version(
        payload.version, [item.model_dump() for item in payload.items]
    )
    return ok(
        {
            "version": payload.version,
            "items": [serialize_menu_item(item) for item in items],
        }
    )
