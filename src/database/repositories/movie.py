"""Movie repository for catalog operations.

Provides filtered listing, lookup and admin mutations for movies,
including initial category placements.
"""

from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from src.database.models.category import Category, CategoryAssignment
from src.database.models.genre import Genre
from src.database.models.movie import Movie
from src.database.repositories.base import (
    BaseRepository,
    optional_text,
    require_text,
    resolve_slug,
)
from src.database.repositories.category import CategoryRepository, validate_rank
from src.database.repositories.genre import GenreRepository
from src.services.errors import InvalidInputError
from src.utils.logger import setup_logger

logger = setup_logger("database.repositories.movie")

YEAR_MIN = 1800
YEAR_MAX = 2100
SORT_OPTIONS = ("year", "title")

_UNSET = object()


@dataclass(frozen=True)
class MovieFilters:
    """Listing filters for the public catalog.

    Attributes:
        genre: Genre slug.
        category: Category slug.
        q: Case-insensitive title fragment.
        sort: 'year' (newest first, then title) or 'title'.
    """

    genre: str | None = None
    category: str | None = None
    q: str | None = None
    sort: str = "year"


@dataclass(frozen=True)
class CategoryPick:
    """Placement requested while creating a movie."""

    category_slug: str
    rank: int | None = None
    honorable: bool = False
    angle_label: str | None = None


def validate_year(year: int | None) -> int | None:
    """Return the year if within 1800-2100.

    Raises:
        InvalidInputError: If out of range.
    """
    if year is None:
        return None
    if isinstance(year, bool) or not YEAR_MIN <= year <= YEAR_MAX:
        raise InvalidInputError("Year must be a valid number between 1800 and 2100")
    return year


class MovieRepository(BaseRepository[Movie]):
    """Repository for Movie entity operations."""

    model = Movie
    entity_label = "movie"

    def __init__(self, session: Session) -> None:
        """Initialize movie repository.

        Args:
            session: SQLAlchemy session instance.
        """
        super().__init__(session)
        self._genres = GenreRepository(session)
        self._categories = CategoryRepository(session)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_detail(self, key: str | int) -> Movie | None:
        """Load a movie by id or slug with genres and assignments."""
        return self.first_by_key(select(Movie).options(*self._detail_loaders()), key)

    def list_page(
        self,
        filters: MovieFilters,
        offset: int = 0,
        limit: int = 12,
    ) -> tuple[list[Movie], int]:
        """Return one filtered page of movies and the total match count.

        Args:
            filters: Genre/category/title filters and sort order.
            offset: Rows to skip.
            limit: Page size.

        Returns:
            Tuple of (movies, total matching).
        """
        stmt = select(Movie)
        if filters.genre:
            stmt = stmt.where(Movie.genres.any(Genre.slug == filters.genre))
        if filters.category:
            stmt = stmt.where(
                Movie.assignments.any(
                    CategoryAssignment.category.has(Category.slug == filters.category)
                )
            )
        if filters.q and filters.q.strip():
            needle = filters.q.strip().lower()
            stmt = stmt.where(func.lower(Movie.title).contains(needle, autoescape=True))

        total = self._session.execute(
            select(func.count()).select_from(stmt.subquery())
        ).scalar() or 0

        if filters.sort == "title":
            stmt = stmt.order_by(func.lower(Movie.title), Movie.id)
        else:
            stmt = stmt.order_by(Movie.year.desc().nulls_last(), Movie.title)

        stmt = stmt.options(*self._detail_loaders()).offset(offset).limit(limit)
        return list(self._session.scalars(stmt).all()), total

    def recent(self, limit: int = 6) -> list[Movie]:
        """Most recently created movies with genres loaded."""
        stmt = (
            select(Movie)
            .options(selectinload(Movie.genres))
            .order_by(Movie.created_at.desc(), Movie.id.desc())
            .limit(limit)
        )
        return list(self._session.scalars(stmt).all())

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def add(
        self,
        title: str | None,
        whut_summary: str | None,
        slug: str | None = None,
        description: str | None = None,
        year: int | None = None,
        genre_slugs: list[str] | None = None,
        picks: list[CategoryPick] | None = None,
    ) -> Movie:
        """Create a movie with genres and optional category placements.

        All input, including every pick, is validated before the first
        write. Picks follow the ranked-assignment rules, so a pick on an
        occupied rank displaces its holder.

        Raises:
            InvalidInputError: On blank or out-of-range fields, unknown
                genres or categories, or invalid ranks.
            ConflictError: If the title or slug is taken.
        """
        title = require_text(title, "Title is required and must be a non-empty string")
        whut_summary = require_text(
            whut_summary, "Whut summary is required and must be a non-empty string"
        )
        slug = resolve_slug(slug, title)
        self._ensure_unique("slug", slug)
        self._ensure_unique("title", title)
        year = validate_year(year)
        genres = self._genres.get_by_slugs(genre_slugs or [])
        placements = self._resolve_picks(picks or [])

        with self.atomic():
            movie = Movie(
                title=title,
                slug=slug,
                year=year,
                whut_summary=whut_summary,
                description=optional_text(description),
            )
            movie.genres = genres
            self._session.add(movie)
            self._session.flush()
            for category, pick in placements:
                self._categories.assign(
                    category,
                    movie,
                    rank=pick.rank,
                    honorable=pick.honorable,
                    angle_label=pick.angle_label,
                )

        logger.info(f"Created movie '{slug}'")
        return movie

    def change(
        self,
        movie: Movie,
        title: str | None = None,
        whut_summary: str | None = None,
        description: object = _UNSET,
        year: object = _UNSET,
        genre_slugs: list[str] | None = None,
    ) -> Movie:
        """Apply a partial update.

        A new title regenerates the slug. ``description`` and ``year`` may
        be explicitly cleared with None; omit them to leave them as is.
        ``genre_slugs`` replaces the whole genre set.
        """
        new_slug = None
        if title is not None:
            title = require_text(title, "Title cannot be empty")
            new_slug = resolve_slug(None, title)
            self._ensure_unique("title", title, exclude_id=movie.id)
            self._ensure_unique("slug", new_slug, exclude_id=movie.id)
        if whut_summary is not None:
            whut_summary = require_text(whut_summary, "Whut summary cannot be empty")
        if year is not _UNSET:
            year = validate_year(year)
        genres = None
        if genre_slugs is not None:
            genres = self._genres.get_by_slugs(genre_slugs)

        with self.atomic():
            if title is not None:
                movie.title = title
                movie.slug = new_slug
            if whut_summary is not None:
                movie.whut_summary = whut_summary
            if description is not _UNSET:
                movie.description = optional_text(description)
            if year is not _UNSET:
                movie.year = year
            if genres is not None:
                movie.genres = genres

        logger.info(f"Updated movie {movie.id} ('{movie.slug}')")
        return movie

    def remove(self, movie: Movie) -> None:
        """Delete a movie; assignments go with it, genres are detached."""
        slug = movie.slug
        categories = [a.category for a in movie.assignments]
        self.delete(movie)
        for category in categories:
            self._session.expire(category, ["assignments"])
        logger.info(f"Deleted movie '{slug}'")

    # -------------------------------------------------------------------------
    # Private helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _detail_loaders() -> tuple:
        return (
            selectinload(Movie.genres),
            selectinload(Movie.assignments).selectinload(CategoryAssignment.category),
        )

    def _resolve_picks(
        self,
        picks: list[CategoryPick],
    ) -> list[tuple[Category, CategoryPick]]:
        """Validate requested placements and load their categories."""
        resolved: list[tuple[Category, CategoryPick]] = []
        seen: set[str] = set()
        for pick in picks:
            if not pick.category_slug or not pick.category_slug.strip():
                raise InvalidInputError("Each pick must have a categorySlug")
            category_slug = pick.category_slug.strip()
            if category_slug in seen:
                raise InvalidInputError(
                    f"Category appears more than once in picks: {category_slug}"
                )
            category = self._categories.get_by_slug(category_slug)
            if category is None:
                raise InvalidInputError(f"Category not found: {category_slug}")
            validate_rank(pick.rank, pick.honorable)
            seen.add(category_slug)
            resolved.append((category, pick))
        return resolved
