"""Movie model and its genre association table."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.database.models.category import CategoryAssignment
    from src.database.models.genre import Genre


class MovieGenre(Base):
    """Association table for Movie-Genre relationship.

    Attributes:
        movie_id: Foreign key to movies.
        genre_id: Foreign key to genres.
    """

    __tablename__ = "movie_genres"

    movie_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("movies.id", ondelete="CASCADE"),
        primary_key=True,
    )
    genre_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("genres.id", ondelete="CASCADE"),
        primary_key=True,
    )


class Movie(Base, TimestampMixin):
    """Catalog movie.

    The slug is regenerated from the title on every rename, so the
    public URL follows the title.

    Attributes:
        id: Primary key.
        title: Unique display title.
        slug: Unique URL identifier.
        year: Optional release year.
        whut_summary: Short humorous summary (primary display text).
        description: Optional official synopsis.
    """

    __tablename__ = "movies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    year: Mapped[int | None] = mapped_column(Integer)
    whut_summary: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)

    genres: Mapped[list[Genre]] = relationship(
        secondary="movie_genres",
        back_populates="movies",
        order_by="Genre.name",
    )
    assignments: Mapped[list[CategoryAssignment]] = relationship(
        back_populates="movie",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(
            "year IS NULL OR (year >= 1800 AND year <= 2100)",
            name="chk_movie_year",
        ),
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<Movie(id={self.id}, slug='{self.slug}')>"
