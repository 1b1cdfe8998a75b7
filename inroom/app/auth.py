"""Shared-passphrase gate for operator routes."""

from __future__ import annotations

import secrets

from fastapi import HTTPException, Request


def passphrase_ok(candidate: str | None, expected: str) -> bool:
    """Return ``True`` if ``candidate`` matches ``expected`` in constant time."""

    if not candidate or not expected:
        return False
    return secrets.compare_digest(candidate.encode(), expected.encode())


def require_passphrase(request: Request) -> None:
    """FastAPI dependency rejecting requests without the operator passphrase.

    The passphrase may be sent in the ``X-Passphrase`` header or, for links
    opened in a new tab such as the printable bill, the ``pass`` query
    parameter.
    """

    supplied = request.headers.get("X-Passphrase") or request.query_params.get("pass")
    expected = request.app.state.settings.admin_passphrase
    if not passphrase_ok(supplied, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")
