"""Database repositories for WhutMovie.

Provides repository pattern implementations for all
database entities with CRUD and specialized queries.

Usage:
    from src.database.repositories import MovieRepository
    from src.api.database import get_session_factory

    with get_session_factory()() as session:
        repo = MovieRepository(session)
        movie = repo.get_detail("inception")
"""

from src.database.repositories.admin import (
    AdminSessionRepository,
    AdminUserRepository,
)
from src.database.repositories.base import BaseRepository
from src.database.repositories.category import (
    AssignmentResult,
    CategoryRepository,
    PickSpec,
)
from src.database.repositories.genre import GenreRepository
from src.database.repositories.movie import (
    CategoryPick,
    MovieFilters,
    MovieRepository,
)

__all__ = [
    "BaseRepository",
    # Admin
    "AdminUserRepository",
    "AdminSessionRepository",
    # Catalog
    "GenreRepository",
    "MovieRepository",
    "MovieFilters",
    "CategoryPick",
    "CategoryRepository",
    "PickSpec",
    "AssignmentResult",
]
