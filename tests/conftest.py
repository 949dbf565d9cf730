"""Shared pytest fixtures.

Every test gets a fresh in-memory SQLite database with foreign keys
enabled, plus small factories for catalog rows.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.api.database import configure_sqlite
from src.database.models import Base, Category, Genre, Movie
from src.database.repositories.admin import AdminUserRepository
from src.database.repositories.category import CategoryRepository
from src.services.auth.passwords import PasswordHasher
from src.utils.slug import slugify

# bcrypt's minimum cost keeps the suite fast
TEST_BCRYPT_ROUNDS = 4
ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True, scope="function")
def mock_env_for_tests(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pin environment variables for reproducible tests."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:3000")
    monkeypatch.setenv("BCRYPT_ROUNDS", str(TEST_BCRYPT_ROUNDS))


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine shared by every connection of a test."""
    test_engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    configure_sqlite(test_engine)
    Base.metadata.create_all(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def db_session(engine: Engine) -> Generator[Session, None, None]:
    """Session configured like the application's session factory."""
    factory = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def hasher() -> PasswordHasher:
    """Cheap bcrypt hasher."""
    return PasswordHasher(rounds=TEST_BCRYPT_ROUNDS)


@pytest.fixture
def admin_user(db_session: Session, hasher: PasswordHasher):
    """Seeded admin account."""
    user = AdminUserRepository(db_session).add(ADMIN_USERNAME, hasher.hash(ADMIN_PASSWORD))
    db_session.commit()
    return user


# =============================================================================
# CATALOG FACTORIES
# =============================================================================


@pytest.fixture
def make_genre(db_session: Session):
    """Factory creating a committed genre."""

    def _make(name: str) -> Genre:
        genre = Genre(name=name, slug=slugify(name))
        db_session.add(genre)
        db_session.commit()
        return genre

    return _make


@pytest.fixture
def make_movie(db_session: Session):
    """Factory creating a committed movie."""

    def _make(
        title: str,
        year: int | None = None,
        genres: list[Genre] | None = None,
        whut_summary: str = "Whut.",
    ) -> Movie:
        movie = Movie(
            title=title,
            slug=slugify(title),
            year=year,
            whut_summary=whut_summary,
        )
        movie.genres = list(genres or [])
        db_session.add(movie)
        db_session.commit()
        return movie

    return _make


@pytest.fixture
def make_category(db_session: Session):
    """Factory creating a committed, empty category."""

    def _make(title: str, description: str = "A theme.") -> Category:
        category = CategoryRepository(db_session).add(title=title, description=description)
        db_session.commit()
        return category

    return _make
