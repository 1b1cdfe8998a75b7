"""Response envelopes shared by routes and error handlers."""

from typing import Any, Dict

from ..domain.errors import OrderError
from ..obs.context import request_id_ctx


def ok(data: Any) -> Dict[str, Any]:
    """Wrap ``data`` in a success envelope."""
    return {"ok": True, "data": data}


def err(
    code: int | str, message: str, details: Dict[str, Any] | None = None
) -> Dict[str, Any]:
    """Return an error envelope tagged with the current request id."""
    error: Dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return {"ok": False, "request_id": request_id_ctx.get(None), "error": error}


def error_body(exc: OrderError) -> Dict[str, Any]:
    return err(exc.code, exc.message, exc.details)
