"""SQLAlchemy ORM models for the WhutMovie database.

This module exports all database models and the Base class
for use throughout the application.

Usage:
    from src.database.models import Base, Movie, Category

Tables:
    - admin_users: Back-office accounts
    - admin_sessions: Login sessions (token + expiry)
    - genres: Genre tags
    - movies: Catalog movies
    - movie_genres: Movie-Genre association
    - categories: Themed recommendation lists
    - category_assignments: Ranked picks and honorable mentions
"""

from src.database.models.admin import AdminSession, AdminUser
from src.database.models.base import Base, TimestampMixin
from src.database.models.category import (
    MAX_RANK,
    VALID_RANKS,
    Category,
    CategoryAssignment,
)
from src.database.models.genre import Genre
from src.database.models.movie import Movie, MovieGenre

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Admin
    "AdminUser",
    "AdminSession",
    # Catalog
    "Genre",
    "Movie",
    "MovieGenre",
    "Category",
    "CategoryAssignment",
    "MAX_RANK",
    "VALID_RANKS",
]
