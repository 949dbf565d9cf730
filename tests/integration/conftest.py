"""Shared fixtures for HTTP integration tests.

Uses the module-level ``app`` from ``src.api.main`` with the database
dependency pointed at the per-test SQLite session. The lifespan
database check is patched out.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from src.api.database import get_db
from src.services.auth.passwords import PasswordHasher, get_password_hasher
from tests.conftest import ADMIN_PASSWORD, ADMIN_USERNAME


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Auto-apply ``@pytest.mark.integration`` to every test collected here."""
    integration_marker = pytest.mark.integration
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(integration_marker)


@pytest.fixture
def app(db_session: Session, engine: Engine, hasher: PasswordHasher, monkeypatch):
    """Application wired to the test database."""
    from src.api import main

    def override_get_db():
        try:
            yield db_session
        except Exception:
            db_session.rollback()
            raise

    monkeypatch.setattr(main, "_verify_database_connection", lambda: None)
    monkeypatch.setattr(main, "get_engine", lambda: engine)
    main.app.dependency_overrides[get_db] = override_get_db
    main.app.dependency_overrides[get_password_hasher] = lambda: hasher
    yield main.app
    main.app.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Anonymous ``httpx.AsyncClient`` wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def admin_client(client: AsyncClient, admin_user) -> AsyncClient:
    """Client holding a valid admin session cookie."""
    resp = await client.post(
        "/api/admin/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert resp.status_code == 200, f"Login failed: {resp.text}"
    return client


def invalidated(resp) -> list[str]:
    """Paths listed in the invalidation header."""
    header = resp.headers.get("x-invalidated-paths", "")
    return [p for p in header.split(",") if p]
