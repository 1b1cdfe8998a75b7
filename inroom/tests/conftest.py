"""Test configuration for order service tests."""

from __future__ import annotations

from datetime import timezone

import pytest
from httpx import ASGITransport, AsyncClient

from config import Settings
from inroom.app.db import create_session_factory, init_models
from inroom.app.domain.errors import NotificationError
from inroom.app.main import create_app
from inroom.app.repos_sqlalchemy.menu_repo_sql import MenuRepoSQL
from inroom.app.repos_sqlalchemy.orders_repo_sql import OrdersRepoSQL
from inroom.app.services.orders import OrderService

PASSPHRASE = "test-pass"


class FakeBridge:
    """Notification bridge whose outcome is chosen by the test."""

    channel = "WhatsApp"

    def __init__(self, outcome: str = "ok") -> None:
        self.outcome = outcome
        self.messages: list[str] = []

    def send(self, order, message):
        self.messages.append(message)
        if self.outcome == "raise":
            raise NotificationError("WhatsApp channel unavailable")
        if self.outcome == "boom":
            raise RuntimeError("socket closed")
        return self.outcome == "ok"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}",
        admin_passphrase=PASSPHRASE,
        property_name="Lucent's Resto",
        default_menu_version="RestoVersion",
        order_no_prefix="RS",
        export_timezone="UTC",
        order_lock_timeout_secs=5.0,
        whatsapp_stub=False,
    )


@pytest.fixture
async def db(settings):
    session_factory, engine = create_session_factory(settings.database_url)
    await init_models(engine)
    yield session_factory
    await engine.dispose()


@pytest.fixture
async def menu_repo(db, settings):
    repo = MenuRepoSQL(db)
    await repo.seed_default(settings.default_menu_version)
    return repo


@pytest.fixture
def orders_repo(db, settings):
    return OrdersRepoSQL(
        db,
        order_no_prefix=settings.order_no_prefix,
        lock_timeout=settings.order_lock_timeout_secs,
        tz=timezone.utc,
    )


@pytest.fixture
def bridge():
    return FakeBridge()


@pytest.fixture
def service(orders_repo, menu_repo, bridge, settings):
    return OrderService(orders_repo, menu_repo, bridge, settings)


@pytest.fixture
async def client(service, settings):
    app = create_app(settings, service=service)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture
def auth():
    return {"X-Passphrase": PASSPHRASE}
