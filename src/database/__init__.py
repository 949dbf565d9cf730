"""Database package for WhutMovie.

Provides ORM models and repositories. Engine and session
management for the API live in ``src.api.database``.

Usage:
    from src.database import CategoryRepository, Category
"""

from src.database.models import (
    AdminSession,
    AdminUser,
    Base,
    Category,
    CategoryAssignment,
    Genre,
    Movie,
    MovieGenre,
)
from src.database.repositories import (
    AdminSessionRepository,
    AdminUserRepository,
    BaseRepository,
    CategoryRepository,
    GenreRepository,
    MovieRepository,
)

__all__ = [
    # Models
    "Base",
    "AdminUser",
    "AdminSession",
    "Genre",
    "Movie",
    "MovieGenre",
    "Category",
    "CategoryAssignment",
    # Repositories
    "BaseRepository",
    "AdminUserRepository",
    "AdminSessionRepository",
    "GenreRepository",
    "MovieRepository",
    "CategoryRepository",
]
