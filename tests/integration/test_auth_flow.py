"""Integration tests for the admin session flow.

Tests cover:
- Login with valid / invalid / missing credentials
- Cookie attributes
- Session-protected endpoints
- Logout
- The coarse /admin page gate and post-login redirect targets
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from src.database.models import AdminSession
from src.settings import settings
from tests.conftest import ADMIN_PASSWORD, ADMIN_USERNAME

COOKIE = settings.security.session_cookie_name

# ============================================================================
# Login
# ============================================================================


class TestLogin:
    """POST /api/admin/login."""

    @staticmethod
    async def test_login_valid_credentials(client: AsyncClient, admin_user) -> None:
        """Valid credentials open a session and set the cookie."""
        resp = await client.post(
            "/api/admin/login",
            json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
        )
        assert resp.status_code == 200
        body = resp.json()["data"]
        assert body["username"] == ADMIN_USERNAME
        assert "expiresAt" in body

        set_cookie = resp.headers["set-cookie"]
        assert set_cookie.startswith(f"{COOKIE}=")
        assert "HttpOnly" in set_cookie
        assert "samesite=lax" in set_cookie.lower()
        assert client.cookies.get(COOKIE)

    @staticmethod
    async def test_login_invalid_password(client: AsyncClient, admin_user) -> None:
        resp = await client.post(
            "/api/admin/login",
            json={"username": ADMIN_USERNAME, "password": "wrong-password"},
        )
        assert resp.status_code == 401
        assert resp.json() == {"error": "Invalid username or password"}
        assert "set-cookie" not in resp.headers

    @staticmethod
    async def test_login_unknown_user(client: AsyncClient, admin_user) -> None:
        """Unknown usernames get the same answer as wrong passwords."""
        resp = await client.post(
            "/api/admin/login",
            json={"username": "nobody", "password": ADMIN_PASSWORD},
        )
        assert resp.status_code == 401
        assert resp.json() == {"error": "Invalid username or password"}

    @staticmethod
    @pytest.mark.parametrize(
        "payload",
        [{}, {"username": ADMIN_USERNAME}, {"password": ADMIN_PASSWORD}],
    )
    async def test_login_missing_fields(client: AsyncClient, payload: dict) -> None:
        resp = await client.post("/api/admin/login", json=payload)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Username and password are required"}


# ============================================================================
# Session-protected endpoints
# ============================================================================


class TestProtectedEndpoints:
    """Mutations and admin reads require a live session."""

    @staticmethod
    async def test_me_without_cookie(client: AsyncClient) -> None:
        resp = await client.get("/api/admin/me")
        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized"}

    @staticmethod
    async def test_me_with_session(admin_client: AsyncClient) -> None:
        resp = await admin_client.get("/api/admin/me")
        assert resp.status_code == 200
        assert resp.json()["data"]["username"] == ADMIN_USERNAME

    @staticmethod
    async def test_forged_cookie_rejected(client: AsyncClient, admin_user) -> None:
        """A well-formed but unknown token is not a session."""
        client.cookies.set(COOKIE, "f" * 64)
        resp = await client.post("/api/genres", json={"name": "Noir"})
        assert resp.status_code == 401

    @staticmethod
    async def test_expired_session_rejected(
        admin_client: AsyncClient,
        db_session: Session,
    ) -> None:
        """Sessions past their expiry no longer authorize anything."""
        db_session.execute(
            update(AdminSession).values(expires_at=datetime.now(UTC) - timedelta(minutes=1))
        )
        db_session.commit()

        resp = await admin_client.get("/api/admin/me")
        assert resp.status_code == 401

    @staticmethod
    @pytest.mark.parametrize(
        ("path", "status_code"),
        [("/api/admin/me", 401), ("/admin", 303)],
    )
    async def test_expired_session_deleted_on_rejection(
        admin_client: AsyncClient,
        db_session: Session,
        path: str,
        status_code: int,
    ) -> None:
        """Rejecting an expired cookie still removes its session row."""
        db_session.execute(
            update(AdminSession).values(expires_at=datetime.now(UTC) - timedelta(minutes=1))
        )
        db_session.commit()

        resp = await admin_client.get(path)
        assert resp.status_code == status_code
        remaining = db_session.execute(select(func.count()).select_from(AdminSession)).scalar()
        assert remaining == 0

    @staticmethod
    @pytest.mark.parametrize(
        ("method", "path"),
        [
            ("post", "/api/movies"),
            ("patch", "/api/movies/1"),
            ("delete", "/api/movies/1"),
            ("post", "/api/genres"),
            ("delete", "/api/genres/1"),
            ("post", "/api/categories"),
            ("put", "/api/categories/1/assignments"),
            ("delete", "/api/categories/1/assignments/1"),
            ("get", "/api/admin/users"),
            ("post", "/api/admin/hash-password"),
        ],
    )
    async def test_mutations_require_session(client: AsyncClient, method: str, path: str) -> None:
        kwargs = {} if method in ("get", "delete") else {"json": {}}
        resp = await getattr(client, method)(path, **kwargs)
        assert resp.status_code in (401, 422)
        if resp.status_code == 401:
            assert resp.json() == {"error": "Unauthorized"}


# ============================================================================
# Logout
# ============================================================================


class TestLogout:
    """POST /api/admin/logout."""

    @staticmethod
    async def test_logout_destroys_session(admin_client: AsyncClient) -> None:
        token = admin_client.cookies.get(COOKIE)
        resp = await admin_client.post("/api/admin/logout")
        assert resp.status_code == 200
        assert resp.json()["data"] == {"success": True}

        # Replaying the old cookie must fail
        admin_client.cookies.set(COOKIE, token)
        assert (await admin_client.get("/api/admin/me")).status_code == 401

    @staticmethod
    async def test_logout_without_session(client: AsyncClient) -> None:
        resp = await client.post("/api/admin/logout")
        assert resp.status_code == 200


# ============================================================================
# /admin page gate
# ============================================================================


class TestAdminGate:
    """Page loads under /admin."""

    @staticmethod
    async def test_dashboard_without_cookie_redirects(client: AsyncClient) -> None:
        resp = await client.get("/admin")
        assert resp.status_code == 303
        assert resp.headers["location"] == "/admin/login?redirect=/admin"

    @staticmethod
    async def test_nested_path_redirect_keeps_target(client: AsyncClient) -> None:
        resp = await client.get("/admin/movies/new")
        assert resp.status_code == 303
        assert resp.headers["location"] == "/admin/login?redirect=/admin/movies/new"

    @staticmethod
    async def test_invalid_cookie_redirects_from_page(client: AsyncClient, admin_user) -> None:
        """The gate only checks presence; the page re-validates and redirects."""
        client.cookies.set(COOKIE, "0" * 64)
        resp = await client.get("/admin")
        assert resp.status_code == 303
        assert resp.headers["location"].startswith("/admin/login?redirect=")

    @staticmethod
    async def test_dashboard_with_session(admin_client: AsyncClient) -> None:
        resp = await admin_client.get("/admin")
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["username"] == ADMIN_USERNAME
        assert data["counts"] == {"movies": 0, "categories": 0, "genres": 0}

    @staticmethod
    async def test_login_page_not_gated(client: AsyncClient) -> None:
        resp = await client.get("/admin/login")
        assert resp.status_code == 200
        assert resp.json()["data"] == {"authenticated": False, "redirect": "/admin"}

    @staticmethod
    @pytest.mark.parametrize(
        ("target", "expected"),
        [
            ("/admin/categories", "/admin/categories"),
            ("//evil.example", "/admin"),
            ("https://evil.example/admin", "/admin"),
            ("/\\evil.example", "/admin"),
            ("admin", "/admin"),
        ],
    )
    async def test_login_page_sanitizes_redirect(
        client: AsyncClient,
        target: str,
        expected: str,
    ) -> None:
        resp = await client.get("/admin/login", params={"redirect": target})
        assert resp.json()["data"]["redirect"] == expected

    @staticmethod
    async def test_login_page_reports_session(admin_client: AsyncClient) -> None:
        resp = await admin_client.get("/admin/login")
        assert resp.json()["data"]["authenticated"] is True
