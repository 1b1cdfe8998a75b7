"""Operator login and liveness routes."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from .auth import passphrase_ok
from .schemas import LoginRequest
from .utils.responses import ok

router = APIRouter(prefix="/api")


@router.post("/login")
async def login(payload: LoginRequest, request: Request):
    """Check the shared operator passphrase."""

    if passphrase_ok(payload.passphrase, request.app.state.settings.admin_passphrase):
        return ok({"authenticated": True})
    return JSONResponse({"ok": False}, status_code=401)


@router.get("/health")
async def health() -> dict:
    return ok({"status": "up"})
