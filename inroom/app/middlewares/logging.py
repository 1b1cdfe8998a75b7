"""Structured request logging."""

import json
import logging
import os
import random
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from ..obs.context import request_id_ctx
from ..utils.responses import err
from .request_id import incoming_request_id

# Request fields never written to logs
SECRET_KEYS = {"passphrase", "pass", "x-passphrase", "phone"}
LOG_SAMPLE_2XX = float(os.getenv("LOG_SAMPLE_2XX", "1.0"))

_ORDER_PATH = re.compile(r"^/api/orders/([^/]+)")

logger = logging.getLogger("api")


def _redact(obj):
    if isinstance(obj, dict):
        return {
            k: ("***" if k.lower() in SECRET_KEYS else _redact(v))
            for k, v in obj.items()
        }
    if isinstance(obj, list):
        return [_redact(v) for v in obj]
    return obj


def _json_body(raw: bytes):
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


def _order_id(path: str) -> str | None:
    match = _ORDER_PATH.match(path)
    return match.group(1) if match else None


def _sampled_out(status: int) -> bool:
    """Successful responses are logged at ``LOG_SAMPLE_2XX``; others always."""
    return 200 <= status < 300 and random.random() >= LOG_SAMPLE_2XX


class LoggingMiddleware(BaseHTTPMiddleware):
    """Write one inbound and one outbound JSON line per request.

    The inbound line carries the redacted query and JSON body; the outbound
    line carries status and latency. Both name the order when the path
    addresses one. An exception escaping the route becomes a 500 envelope
    with an ``error_id`` that also appears in the log.
    """

    async def dispatch(self, request: Request, call_next):
        req_id = getattr(request.state, "request_id", None)
        token = None
        if not req_id:
            # Running without RequestIdMiddleware
            req_id = incoming_request_id(request)
            request.state.request_id = req_id
            token = request_id_ctx.set(req_id)

        raw = await request.body()

        async def receive() -> dict:
            return {"type": "http.request", "body": raw, "more_body": False}

        request._receive = receive

        path = request.url.path
        inbound = {
            "dir": "in",
            "req_id": req_id,
            "method": request.method,
            "path": path,
            "order_id": _order_id(path),
            "ip": request.client.host if request.client else None,
        }
        if request.query_params:
            inbound["query"] = _redact(dict(request.query_params))
        body = _json_body(raw)
        if body is not None:
            inbound["body"] = _redact(body)

        started = time.perf_counter()
        error_id = None
        try:
            response = await call_next(request)
        except Exception:
            error_id = uuid.uuid4().hex
            logger.exception(
                "unhandled error on %s %s error_id=%s", request.method, path, error_id
            )
            payload = err("INTERNAL", "Internal Server Error")
            payload["error_id"] = error_id
            response = JSONResponse(payload, status_code=500)

        status = response.status_code
        outbound = {
            "dir": "out",
            "req_id": req_id,
            "path": path,
            "order_id": inbound["order_id"],
            "status": status,
            "latency_ms": int((time.perf_counter() - started) * 1000),
        }
        if error_id:
            outbound["error_id"] = error_id

        if not _sampled_out(status):
            logger.info(json.dumps(inbound))
            if status >= 500:
                logger.error(json.dumps(outbound))
            else:
                logger.info(json.dumps(outbound))

        response.headers["X-Request-ID"] = req_id
        if token is not None:
            request_id_ctx.reset(token)
        return response
