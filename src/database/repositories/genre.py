"""Genre repository for tag operations.

Provides CRUD, lookup and seeding operations for genres.
"""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from src.database.models.genre import Genre
from src.database.models.movie import MovieGenre
from src.database.repositories.base import (
    BaseRepository,
    require_text,
    resolve_slug,
)
from src.services.errors import InvalidInputError, InvariantViolationError
from src.utils.slug import slugify


class GenreRepository(BaseRepository[Genre]):
    """Repository for Genre entity operations.

    Genres are mostly reference data, seeded once and looked up
    by slug when movies are tagged.
    """

    model = Genre
    entity_label = "genre"

    def __init__(self, session: Session) -> None:
        """Initialize genre repository.

        Args:
            session: SQLAlchemy session instance.
        """
        super().__init__(session)

    def get_by_slug(self, slug: str) -> Genre | None:
        """Retrieve genre by slug.

        Args:
            slug: Genre slug (e.g., 'sci-fi').

        Returns:
            Genre instance or None.
        """
        return self.get_by_field("slug", slug)

    def list_page(self, offset: int = 0, limit: int = 50) -> list[Genre]:
        """Return one page of genres ordered by name."""
        stmt = select(Genre).order_by(Genre.name).offset(offset).limit(limit)
        return list(self._session.scalars(stmt).all())

    def movie_count(self, genre_id: int) -> int:
        """Number of movies tagged with a genre."""
        return self.movie_counts([genre_id]).get(genre_id, 0)

    def movie_counts(self, genre_ids: list[int]) -> dict[int, int]:
        """Map genre id to tagged-movie count for the given genres.

        Args:
            genre_ids: Genre primary keys.

        Returns:
            Dictionary of counts; genres without movies are absent.
        """
        if not genre_ids:
            return {}
        stmt = (
            select(MovieGenre.genre_id, func.count(MovieGenre.movie_id))
            .where(MovieGenre.genre_id.in_(genre_ids))
            .group_by(MovieGenre.genre_id)
        )
        return {row[0]: row[1] for row in self._session.execute(stmt).all()}

    def get_by_slugs(self, slugs: list[str]) -> list[Genre]:
        """Resolve genre slugs, failing on any unknown one.

        Args:
            slugs: Genre slugs; duplicates are ignored.

        Returns:
            Matching genres ordered by name.

        Raises:
            InvalidInputError: Listing the slugs that matched nothing.
        """
        wanted = list(dict.fromkeys(slugs))
        if not wanted:
            return []
        stmt = select(Genre).where(Genre.slug.in_(wanted)).order_by(Genre.name)
        genres = list(self._session.scalars(stmt).all())
        found = {g.slug for g in genres}
        missing = [s for s in wanted if s not in found]
        if missing:
            raise InvalidInputError(f"Genre(s) not found: {', '.join(missing)}")
        return genres

    def add(self, name: str | None, slug: str | None = None) -> Genre:
        """Create a genre.

        Raises:
            InvalidInputError: If the name is blank.
            ConflictError: If the slug or name is taken.
        """
        name = require_text(name, "Name is required and must be a non-empty string")
        slug = resolve_slug(slug, name)
        self._ensure_unique("slug", slug)
        self._ensure_unique("name", name)
        return self.create(Genre(name=name, slug=slug))

    def rename(self, genre: Genre, name: str | None) -> Genre:
        """Rename a genre; its slug follows the new name."""
        name = require_text(name, "Name cannot be empty")
        slug = resolve_slug(None, name)
        self._ensure_unique("name", name, exclude_id=genre.id)
        self._ensure_unique("slug", slug, exclude_id=genre.id)
        with self.atomic():
            genre.name = name
            genre.slug = slug
        return genre

    def remove(self, genre: Genre, force: bool = False) -> int:
        """Delete a genre, detaching it from its movies.

        Args:
            genre: Genre to delete.
            force: Delete even when movies still carry the tag.

        Returns:
            Number of movies that lost the tag.

        Raises:
            InvariantViolationError: If movies are attached and ``force``
                is not set; carries ``movieCount``.
        """
        count = self.movie_count(genre.id)
        if count > 0 and not force:
            raise InvariantViolationError(
                f"Genre has {count} associated movie(s). "
                "Add ?force=true to delete anyway.",
                movieCount=count,
            )
        tagged = list(genre.movies)
        self.delete(genre)
        for movie in tagged:
            self._session.expire(movie, ["genres"])
        return count

    def upsert(self, name: str) -> Genre:
        """Create a genre or refresh its name, keyed by slug."""
        slug = slugify(name)
        existing = self.get_by_slug(slug)
        if existing is None:
            return self.create(Genre(name=name, slug=slug))
        if existing.name != name:
            with self.atomic():
                existing.name = name
        return existing
