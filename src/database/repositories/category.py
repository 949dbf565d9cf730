"""Category repository and the ranked-assignment rules.

A category holds at most one movie per rank (1-3) and any number of
unranked honorable mentions; a movie holds at most one slot per
category. Reassignment evicts the previous holders inside a single
savepoint after locking the category row.
"""

from dataclasses import dataclass

from sqlalchemy import and_, delete, func, select
from sqlalchemy.orm import Session, selectinload

from src.database.models.category import (
    MAX_RANK,
    VALID_RANKS,
    Category,
    CategoryAssignment,
)
from src.database.models.genre import Genre
from src.database.models.movie import Movie
from src.database.repositories.base import (
    BaseRepository,
    optional_text,
    require_text,
    resolve_slug,
)
from src.services.errors import InvalidInputError, NotFoundError
from src.utils.logger import setup_logger

logger = setup_logger("database.repositories.category")

RANK_ERROR = "Rank must be 1, 2, or 3"


# =============================================================================
# VALUE OBJECTS
# =============================================================================


@dataclass(frozen=True)
class PickSpec:
    """Requested placement of a movie in a category."""

    movie_id: int
    rank: int | None = None
    honorable: bool = False
    angle_label: str | None = None


@dataclass
class AssignmentResult:
    """Outcome of an assignment.

    Attributes:
        assignment: The newly stored assignment.
        displaced_movie_id: Movie evicted from the requested rank, if any.
    """

    assignment: CategoryAssignment
    displaced_movie_id: int | None = None


def validate_rank(rank: int | None, honorable: bool) -> int | None:
    """Check rank/kind consistency and return the rank to store.

    Raises:
        InvalidInputError: If a pick has no rank or one outside 1-3, or
            an honorable mention carries a rank.
    """
    if honorable:
        if rank is not None:
            raise InvalidInputError("Honorable mentions cannot have a rank")
        return None
    if rank is None or isinstance(rank, bool) or rank not in VALID_RANKS:
        raise InvalidInputError(RANK_ERROR)
    return rank


# =============================================================================
# REPOSITORY
# =============================================================================


class CategoryRepository(BaseRepository[Category]):
    """Repository for Category and CategoryAssignment operations."""

    model = Category
    entity_label = "category"

    def __init__(self, session: Session) -> None:
        """Initialize category repository.

        Args:
            session: SQLAlchemy session instance.
        """
        super().__init__(session)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_by_slug(self, slug: str) -> Category | None:
        """Retrieve category by slug."""
        return self.get_by_field("slug", slug)

    def get_detail(self, key: str | int) -> Category | None:
        """Load a category by id or slug with assignments and their movies."""
        return self.first_by_key(select(Category).options(*self._assignment_loaders()), key)

    def list_page(
        self,
        offset: int = 0,
        limit: int = 50,
        genre: str | None = None,
        with_assignments: bool = False,
    ) -> tuple[list[Category], int]:
        """Return one page of categories ordered by title, and the total.

        Args:
            offset: Rows to skip.
            limit: Page size.
            genre: Keep only categories with a ranked pick in this genre slug.
            with_assignments: Eager-load assignments, movies and genres.

        Returns:
            Tuple of (categories, total matching).
        """
        stmt = select(Category)
        if genre:
            stmt = stmt.where(self._has_pick_in_genre(genre))

        total = self._session.execute(
            select(func.count()).select_from(stmt.subquery())
        ).scalar() or 0

        stmt = stmt.order_by(Category.title).offset(offset).limit(limit)
        if with_assignments:
            stmt = stmt.options(*self._assignment_loaders())
        return list(self._session.scalars(stmt).all()), total

    def recent(self, limit: int = 6) -> list[Category]:
        """Most recently created categories with assignments loaded."""
        stmt = (
            select(Category)
            .options(*self._assignment_loaders())
            .order_by(Category.created_at.desc(), Category.id.desc())
            .limit(limit)
        )
        return list(self._session.scalars(stmt).all())

    def incomplete(self) -> list[Category]:
        """Categories with fewer than three ranked picks, ordered by title."""
        picks = (
            select(func.count())
            .select_from(CategoryAssignment)
            .where(
                CategoryAssignment.category_id == Category.id,
                CategoryAssignment.rank.is_not(None),
            )
            .scalar_subquery()
        )
        stmt = select(Category).where(picks < MAX_RANK).order_by(Category.title)
        return list(self._session.scalars(stmt).all())

    def get_assignment(
        self,
        category_id: int,
        movie_id: int,
    ) -> CategoryAssignment | None:
        """Retrieve the assignment keyed by the (movie, category) pair."""
        return self._session.get(CategoryAssignment, (movie_id, category_id))

    # -------------------------------------------------------------------------
    # Category writes
    # -------------------------------------------------------------------------

    def add(
        self,
        title: str | None,
        description: str | None,
        slug: str | None = None,
        picks: list[PickSpec] | None = None,
        honorable_mentions: list[PickSpec] | None = None,
    ) -> Category:
        """Create a category with optional initial picks and mentions.

        Every input is validated before anything is written.

        Raises:
            InvalidInputError: On blank fields, bad ranks, duplicate ranks,
                unknown movies or a movie both picked and mentioned.
            ConflictError: If the slug or title is taken.
        """
        title = require_text(title, "Title is required and must be a non-empty string")
        description = require_text(
            description, "Description is required and must be a non-empty string"
        )
        slug = resolve_slug(slug, title)
        self._ensure_unique("slug", slug)
        self._ensure_unique("title", title)

        entries = self._validate_initial_entries(picks or [], honorable_mentions or [])

        with self.atomic():
            category = Category(title=title, slug=slug, description=description)
            self._session.add(category)
            self._session.flush()
            for spec in entries:
                self._session.add(
                    CategoryAssignment(
                        category_id=category.id,
                        movie_id=spec.movie_id,
                        rank=spec.rank,
                        is_honorable_mention=spec.honorable,
                        angle_label=optional_text(spec.angle_label),
                    )
                )

        logger.info(f"Created category '{slug}' with {len(entries)} assignment(s)")
        return category

    def change(
        self,
        category: Category,
        title: str | None = None,
        description: str | None = None,
    ) -> Category:
        """Update title (regenerating the slug) and/or description."""
        new_title = None
        new_slug = None
        if title is not None:
            new_title = require_text(title, "Title cannot be empty")
            new_slug = resolve_slug(None, new_title)
            self._ensure_unique("title", new_title, exclude_id=category.id)
            self._ensure_unique("slug", new_slug, exclude_id=category.id)
        if description is not None:
            description = require_text(description, "Description cannot be empty")

        with self.atomic():
            if new_title is not None:
                category.title = new_title
                category.slug = new_slug
            if description is not None:
                category.description = description
        return category

    def remove(self, category: Category) -> None:
        """Delete a category and its assignments."""
        slug = category.slug
        self.delete(category)
        logger.info(f"Deleted category '{slug}'")

    # -------------------------------------------------------------------------
    # Assignment writes
    # -------------------------------------------------------------------------

    def assign(
        self,
        category: Category,
        movie: Movie,
        rank: int | None = None,
        honorable: bool = False,
        angle_label: str | None = None,
    ) -> AssignmentResult:
        """Place a movie in a category as a ranked pick or honorable mention.

        Runs as one savepoint: lock the category row, evict whatever holds
        the requested rank, evict the movie's current slot in this
        category, then insert. Honorable mentions skip the rank steps.

        Args:
            category: Target category.
            movie: Movie to place.
            rank: 1-3 for a pick; must be None for a mention.
            honorable: Whether this is an honorable mention.
            angle_label: Optional annotation.

        Returns:
            The stored assignment and the id of any displaced movie.

        Raises:
            InvalidInputError: If the rank is invalid for the kind.
            ConflictError: If a concurrent writer took the slot first.
        """
        rank = validate_rank(rank, honorable)
        displaced_id = None

        with self.atomic():
            self._lock_category(category.id)

            if rank is not None:
                holder = self._session.scalar(
                    select(CategoryAssignment.movie_id).where(
                        CategoryAssignment.category_id == category.id,
                        CategoryAssignment.rank == rank,
                    )
                )
                if holder is not None and holder != movie.id:
                    displaced_id = holder
                self._session.execute(
                    delete(CategoryAssignment)
                    .where(
                        CategoryAssignment.category_id == category.id,
                        CategoryAssignment.rank == rank,
                    )
                    .execution_options(synchronize_session="fetch")
                )

            self._session.execute(
                delete(CategoryAssignment)
                .where(
                    CategoryAssignment.category_id == category.id,
                    CategoryAssignment.movie_id == movie.id,
                )
                .execution_options(synchronize_session="fetch")
            )

            assignment = CategoryAssignment(
                category_id=category.id,
                movie_id=movie.id,
                rank=rank,
                is_honorable_mention=honorable,
                angle_label=optional_text(angle_label),
            )
            self._session.add(assignment)

        self._refresh_assignments(category, movie)
        if displaced_id is not None:
            displaced = self._session.get(Movie, displaced_id)
            if displaced is not None:
                self._session.expire(displaced, ["assignments"])
        kind = f"rank {rank}" if rank is not None else "honorable mention"
        logger.info(
            f"Assigned movie {movie.id} to category '{category.slug}' as {kind}"
            + (f", displacing movie {displaced_id}" if displaced_id else "")
        )
        return AssignmentResult(
            assignment=assignment,
            displaced_movie_id=displaced_id,
        )

    def set_angle_label(
        self,
        category: Category,
        movie_id: int,
        angle_label: str | None,
    ) -> CategoryAssignment:
        """Set or clear the angle label of an existing assignment.

        Raises:
            NotFoundError: If the movie is not in the category.
        """
        assignment = self._require_assignment(category, movie_id)
        with self.atomic():
            assignment.angle_label = optional_text(angle_label)
        return assignment

    def unassign(self, category: Category, movie_id: int) -> CategoryAssignment:
        """Remove the assignment keyed by the (movie, category) pair.

        Raises:
            NotFoundError: If the movie is not in the category.
        """
        assignment = self._require_assignment(category, movie_id)
        with self.atomic():
            self._session.delete(assignment)
        self._session.expire(category, ["assignments"])
        logger.info(f"Removed movie {movie_id} from category '{category.slug}'")
        return assignment

    # -------------------------------------------------------------------------
    # Private helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _assignment_loaders() -> tuple:
        assignment_movie = selectinload(Category.assignments).selectinload(
            CategoryAssignment.movie
        )
        return (assignment_movie.selectinload(Movie.genres),)

    @staticmethod
    def _has_pick_in_genre(genre_slug: str):
        return Category.assignments.any(
            and_(
                CategoryAssignment.rank.is_not(None),
                CategoryAssignment.movie.has(
                    Movie.genres.any(Genre.slug == genre_slug)
                ),
            )
        )

    def _lock_category(self, category_id: int) -> None:
        """SELECT ... FOR UPDATE on the category row (no-op on SQLite)."""
        self._session.execute(
            select(Category.id).where(Category.id == category_id).with_for_update()
        )

    def _refresh_assignments(self, category: Category, movie: Movie) -> None:
        self._session.expire(category, ["assignments"])
        self._session.expire(movie, ["assignments"])

    def _require_assignment(
        self,
        category: Category,
        movie_id: int,
    ) -> CategoryAssignment:
        assignment = self.get_assignment(category.id, movie_id)
        if assignment is None:
            raise NotFoundError(
                f"Movie {movie_id} is not assigned to category '{category.slug}'"
            )
        return assignment

    def _validate_initial_entries(
        self,
        picks: list[PickSpec],
        mentions: list[PickSpec],
    ) -> list[PickSpec]:
        """Validate picks and mentions for a new category.

        Returns:
            Normalized specs (mentions forced to honorable, rank None).
        """
        entries: list[PickSpec] = []
        seen_ranks: set[int] = set()
        picked: set[int] = set()

        for pick in picks:
            rank = validate_rank(pick.rank, honorable=False)
            if rank in seen_ranks:
                raise InvalidInputError(f"Duplicate rank {rank} in picks")
            if pick.movie_id in picked:
                raise InvalidInputError(f"Movie {pick.movie_id} appears twice in picks")
            self._require_movie(pick.movie_id)
            seen_ranks.add(rank)
            picked.add(pick.movie_id)
            entries.append(PickSpec(pick.movie_id, rank, False, pick.angle_label))

        mentioned: set[int] = set()
        for mention in mentions:
            if mention.movie_id in picked:
                raise InvalidInputError(f"Movie {mention.movie_id} is already in picks")
            if mention.movie_id in mentioned:
                continue
            self._require_movie(mention.movie_id)
            mentioned.add(mention.movie_id)
            entries.append(PickSpec(mention.movie_id, None, True, mention.angle_label))

        return entries

    def _require_movie(self, movie_id: int) -> Movie:
        movie = self._session.get(Movie, movie_id)
        if movie is None:
            raise InvalidInputError(f"Movie not found: {movie_id}")
        return movie
