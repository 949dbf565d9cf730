"""Themed categories and their ranked movie assignments."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.database.models.movie import Movie

MAX_RANK = 3
VALID_RANKS = frozenset(range(1, MAX_RANK + 1))


class Category(Base, TimestampMixin):
    """Themed list holding up to three ranked picks plus honorable mentions.

    Attributes:
        id: Primary key.
        title: Unique display title.
        slug: Unique URL identifier derived from the title.
        description: Free-text pitch of the theme.
        assignments: Picks and honorable mentions (deleted with the category).
    """

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)

    assignments: Mapped[list[CategoryAssignment]] = relationship(
        back_populates="category",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def picks(self) -> list[CategoryAssignment]:
        """Ranked assignments ordered by rank."""
        picks = [a for a in self.assignments if a.is_pick]
        return sorted(picks, key=lambda a: a.rank)

    @property
    def honorable_mentions(self) -> list[CategoryAssignment]:
        """Honorable mentions ordered by movie title."""
        mentions = [a for a in self.assignments if a.is_honorable_mention]
        return sorted(mentions, key=lambda a: a.movie.title.lower())

    @property
    def is_complete(self) -> bool:
        """True when all three ranks are filled."""
        return len(self.picks) == MAX_RANK

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<Category(id={self.id}, slug='{self.slug}')>"


class CategoryAssignment(Base):
    """Placement of one movie inside one category.

    A (movie, category) pair is unique, and at most one ranked pick
    holds each (category, rank) slot. Honorable mentions have no rank.

    Attributes:
        movie_id: Foreign key to movies.
        category_id: Foreign key to categories.
        rank: 1-3 for picks, None for honorable mentions.
        is_honorable_mention: Whether this is an unranked mention.
        angle_label: Optional note on why the movie fits the theme.
    """

    __tablename__ = "category_assignments"

    movie_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("movies.id", ondelete="CASCADE"),
        primary_key=True,
    )
    category_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("categories.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    rank: Mapped[int | None] = mapped_column(Integer)
    is_honorable_mention: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    angle_label: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    movie: Mapped[Movie] = relationship(back_populates="assignments")
    category: Mapped[Category] = relationship(back_populates="assignments")

    __table_args__ = (
        UniqueConstraint("category_id", "rank", name="uq_category_assignments_rank"),
        CheckConstraint(
            "rank IS NULL OR (rank >= 1 AND rank <= 3)",
            name="chk_assignment_rank",
        ),
        CheckConstraint(
            "(is_honorable_mention AND rank IS NULL) "
            "OR (NOT is_honorable_mention AND rank IS NOT NULL)",
            name="chk_assignment_kind",
        ),
    )

    @property
    def is_pick(self) -> bool:
        """True for a ranked pick."""
        return not self.is_honorable_mention and self.rank is not None

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<CategoryAssignment(category_id={self.category_id}, "
            f"movie_id={self.movie_id}, rank={self.rank})>"
        )
