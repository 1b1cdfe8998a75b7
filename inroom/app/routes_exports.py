"""Daily CSV export route."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from .auth import require_passphrase
from .deps import get_service
from .services.orders import OrderService, parse_day

router = APIRouter(prefix="/api", dependencies=[Depends(require_passphrase)])


@router.get("/export")
async def export_csv(date: str, service: OrderService = Depends(get_service)) -> Response:
    """Return the orders created on ``date`` (``YYYY-MM-DD``) as CSV."""

    day = parse_day(date)
    body = await service.export_csv(day)
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="orders-{day.isoformat()}.csv"'},
    )
