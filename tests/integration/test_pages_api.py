"""Integration tests for the home page, health check and error envelopes."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from src.database.repositories.category import CategoryRepository


class TestHome:
    """GET /api/home."""

    @staticmethod
    async def test_empty_catalog(client: AsyncClient) -> None:
        resp = await client.get("/api/home")
        assert resp.status_code == 200
        assert resp.json()["data"] == {"categories": [], "movies": []}

    @staticmethod
    async def test_latest_items(
        client: AsyncClient,
        db_session: Session,
        make_movie,
        make_category,
    ) -> None:
        movie = make_movie("Inception", 2010)
        category = make_category("Time Is a Lie")
        CategoryRepository(db_session).assign(category, movie, rank=1)
        db_session.commit()

        data = (await client.get("/api/home")).json()["data"]
        assert [m["slug"] for m in data["movies"]] == ["inception"]
        assert data["categories"][0]["picks"][0]["movie"]["slug"] == "inception"


class TestHealth:
    """GET /api/health."""

    @staticmethod
    async def test_healthy(client: AsyncClient) -> None:
        resp = await client.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["database"]["connected"] is True
        assert "version" in body


class TestErrorEnvelopes:
    """Every failure renders as ``{"error": ...}``."""

    @staticmethod
    async def test_unknown_route(client: AsyncClient) -> None:
        resp = await client.get("/api/nothing-here")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Not Found"}

    @staticmethod
    async def test_validation_error(client: AsyncClient) -> None:
        resp = await client.get("/api/movies", params={"page": 0})
        assert resp.status_code == 422
        assert resp.json()["error"].startswith("query.page:")

    @staticmethod
    async def test_unexpected_error_hides_details(app, monkeypatch: pytest.MonkeyPatch) -> None:
        """Unhandled exceptions become a bare 500 without internals."""

        def explode(*_args, **_kwargs):
            raise RuntimeError("secret connection string")

        monkeypatch.setattr(CategoryRepository, "recent", explode)
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            resp = await c.get("/api/home")

        assert resp.status_code == 500
        assert resp.json() == {"error": "Internal server error"}
