"""Request id assignment."""

import re
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from ..obs.context import request_id_ctx

# Caller-supplied ids end up in logs; anything else is replaced.
_VALID_ID = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")


def incoming_request_id(request: Request) -> str:
    """Return the caller's ``X-Request-ID`` if well formed, else a fresh id."""

    supplied = request.headers.get("X-Request-ID", "")
    if _VALID_ID.match(supplied):
        return supplied
    return uuid.uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request id for logging and echo it in the response."""

    async def dispatch(self, request: Request, call_next):
        req_id = incoming_request_id(request)
        request.state.request_id = req_id
        token = request_id_ctx.set(req_id)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        response.headers["X-Request-ID"] = req_id
        return response
