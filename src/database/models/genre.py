"""Genre tags attached to movies."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.models.base import Base

if TYPE_CHECKING:
    from src.database.models.movie import Movie


class Genre(Base):
    """Genre tag (e.g., Sci-Fi).

    Deleting a genre detaches it from its movies; the movies stay.

    Attributes:
        id: Primary key.
        name: Unique display name.
        slug: Unique URL identifier derived from the name.
        created_at: Creation timestamp.
    """

    __tablename__ = "genres"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
    )
    slug: Mapped[str] = mapped_column(
        String(120),
        unique=True,
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    movies: Mapped[list[Movie]] = relationship(
        secondary="movie_genres",
        back_populates="genres",
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<Genre(id={self.id}, name='{self.name}')>"
