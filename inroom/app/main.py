# main.py

"""FastAPI application for in-room dining orders.

The application is built by :func:`create_app`, which wires the settings,
database, repositories, kitchen notification bridge and routers together.
Run it with ``uvicorn --factory inroom.app.main:create_app`` or through
``start_app.py``.
"""

from __future__ import annotations

import logging
from zoneinfo import ZoneInfo

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, get_settings

from .db import create_session_factory, init_models
from .domain.errors import (
    ConcurrencyError,
    NotFoundError,
    NotificationError,
    OrderError,
    ValidationError,
)
from .middlewares import LoggingMiddleware, RequestIdMiddleware
from .providers.base import NotificationBridge
from .repos_sqlalchemy.menu_repo_sql import MenuRepoSQL
from .repos_sqlalchemy.orders_repo_sql import OrdersRepoSQL
from .routes_auth import router as auth_router
from .routes_exports import router as exports_router
from .routes_menu import router as menu_router
from .routes_orders import router as orders_router
from .services.kitchen import bridge_from_settings
from .services.orders import OrderService
from .utils.responses import err, error_body

logger = logging.getLogger("api")

STATUS_BY_ERROR: list[tuple[type[OrderError], int]] = [
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConcurrencyError, 409),
    (NotificationError, 502),
]


def status_for(exc: OrderError) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


async def build_service(
    settings: Settings, bridge: NotificationBridge | None = None
) -> tuple[OrderService, AsyncEngine]:
    """Create the order service and its repositories for ``settings``.

    The schema is created and the sample menu seeded if the catalog is empty.
    The caller owns the returned engine.
    """

    session_factory, engine = create_session_factory(settings.database_url)
    await init_models(engine)
    orders = OrdersRepoSQL(
        session_factory,
        order_no_prefix=settings.order_no_prefix,
        lock_timeout=settings.order_lock_timeout_secs,
        tz=ZoneInfo(settings.export_timezone),
    )
    menu = MenuRepoSQL(session_factory)
    if await menu.seed_default(settings.default_menu_version):
        logger.info("seeded sample menu %s", settings.default_menu_version)
    service = OrderService(
        orders, menu, bridge or bridge_from_settings(settings), settings
    )
    return service, engine


def create_app(
    settings: Settings | None = None,
    *,
    service: OrderService | None = None,
    bridge: NotificationBridge | None = None,
) -> FastAPI:
    """Return a configured application instance.

    Without ``service`` the database is prepared by a startup hook, so the
    application must run under a server that sends lifespan events.
    """

    settings = settings or get_settings()
    app = FastAPI(title="In-room dining orders")
    app.state.settings = settings
    app.state.service = service

    if service is None:

        @app.on_event("startup")
        async def open_database() -> None:
            app.state.service, app.state.engine = await build_service(settings, bridge)

        @app.on_event("shutdown")
        async def close_database() -> None:
            await app.state.engine.dispose()

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    @app.exception_handler(OrderError)
    async def order_error_handler(request: Request, exc: OrderError) -> JSONResponse:
        status = status_for(exc)
        if status >= 500:
            logger.error("%s on %s: %s", exc.code, request.url.path, exc.message)
        return JSONResponse(error_body(exc), status_code=status)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()]
        return JSONResponse(
            err("VALIDATION", "invalid request", {"errors": errors}), status_code=400
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            err(exc.status_code, str(exc.detail)), status_code=exc.status_code
        )

    app.include_router(auth_router)
    app.include_router(menu_router)
    app.include_router(orders_router)
    app.include_router(exports_router)
    return app
