"""Pydantic schemas for API request/response validation.

Defines data transfer objects for movies, genres, categories,
assignments, admin accounts and health. JSON keys are camelCase;
Python attributes stay snake_case.
"""

from datetime import UTC, datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

MAX_PAGE_SIZE = 100


class CamelModel(BaseModel):
    """Base schema serializing to camelCase and reading ORM attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# ENVELOPES
# =============================================================================


class PaginationParams(BaseModel):
    """Pagination query parameters."""

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=12, ge=1, le=MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        """Calculate SQL offset from page number."""
        return (self.page - 1) * self.page_size


class PaginatedMeta(CamelModel):
    """Pagination metadata for list responses."""

    page: int
    page_size: int
    total: int
    total_pages: int

    @classmethod
    def from_params(
        cls,
        params: PaginationParams,
        total: int,
    ) -> "PaginatedMeta":
        """Build meta from pagination params and total count."""
        pages = (total + params.page_size - 1) // params.page_size if total > 0 else 0
        return cls(
            page=params.page,
            page_size=params.page_size,
            total=total,
            total_pages=pages,
        )


class DataResponse(CamelModel, Generic[T]):
    """Single-object success envelope."""

    data: T


class PageResponse(CamelModel, Generic[T]):
    """Paginated success envelope."""

    data: list[T]
    meta: PaginatedMeta


class ErrorResponse(BaseModel):
    """Failure envelope."""

    error: str = Field(examples=["Movie not found"])


class DeletedOut(BaseModel):
    """Deletion acknowledgement."""

    id: int
    deleted: bool = True


# =============================================================================
# HEALTH
# =============================================================================


class DatabaseComponentHealth(BaseModel):
    """Database connection health status."""

    connected: bool = False
    pool_available: int | None = None


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str = Field(examples=["healthy"])
    version: str = Field(examples=["1.0.0"])
    database: DatabaseComponentHealth = Field(default_factory=DatabaseComponentHealth)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


# =============================================================================
# AUTHENTICATION & ADMIN USERS
# =============================================================================


class LoginRequest(BaseModel):
    """Login credentials; emptiness is checked by the auth service."""

    username: str | None = None
    password: str | None = None


class SessionInfo(CamelModel):
    """Identity returned by login and /me."""

    username: str
    expires_at: datetime


class LogoutInfo(BaseModel):
    """Logout acknowledgement."""

    success: bool = True


class AdminUserOut(CamelModel):
    """Admin account (the password hash is never exposed)."""

    id: int
    username: str
    created_at: datetime
    updated_at: datetime


class AdminUserCreate(BaseModel):
    """New admin account."""

    username: str | None = None
    password: str | None = None


class AdminUserUpdate(BaseModel):
    """Partial admin update."""

    username: str | None = None
    password: str | None = None


class HashPasswordRequest(BaseModel):
    """Password to hash."""

    password: str | None = None


class HashPasswordOut(BaseModel):
    """bcrypt hash of the submitted password."""

    hash: str


# =============================================================================
# GENRES
# =============================================================================


class GenreRef(CamelModel):
    """Genre as embedded in movies."""

    id: int
    name: str
    slug: str


class GenreOut(GenreRef):
    """Genre with optional tagged-movie count."""

    movie_count: int | None = None


class GenreCreate(BaseModel):
    """New genre; the slug defaults to one derived from the name."""

    name: str | None = None
    slug: str | None = None


class GenreUpdate(BaseModel):
    """Genre rename."""

    name: str | None = None


# =============================================================================
# MOVIES
# =============================================================================


class CategoryRef(CamelModel):
    """Category as embedded in movie assignments."""

    id: int
    title: str
    slug: str


class MovieAssignmentOut(CamelModel):
    """A movie's placement in one category."""

    category: CategoryRef
    rank: int | None = None
    is_honorable_mention: bool = False
    angle_label: str | None = None


class MovieSummary(CamelModel):
    """Movie card data."""

    id: int
    title: str
    slug: str
    year: int | None = None
    whut_summary: str
    genres: list[GenreRef] = Field(default_factory=list)


class MovieOut(MovieSummary):
    """Movie detail with category placements."""

    description: str | None = None
    assignments: list[MovieAssignmentOut] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class MoviePickIn(CamelModel):
    """Category placement requested while creating a movie."""

    category_slug: str | None = None
    rank: int | None = None
    honorable: bool = False
    angle_label: str | None = None


class MovieCreate(CamelModel):
    """New movie."""

    title: str | None = None
    slug: str | None = None
    whut_summary: str | None = None
    description: str | None = None
    year: int | None = None
    genre_slugs: list[str] = Field(default_factory=list)
    picks: list[MoviePickIn] = Field(default_factory=list)


class MovieUpdate(CamelModel):
    """Partial movie update; explicit nulls clear description and year."""

    title: str | None = None
    whut_summary: str | None = None
    description: str | None = None
    year: int | None = None
    genre_slugs: list[str] | None = None


# =============================================================================
# CATEGORIES & ASSIGNMENTS
# =============================================================================


class AssignmentOut(CamelModel):
    """A pick or honorable mention inside a category."""

    movie: MovieSummary
    rank: int | None = None
    is_honorable_mention: bool = False
    angle_label: str | None = None


class CategorySummary(CamelModel):
    """Category without its assignments."""

    id: int
    title: str
    slug: str
    description: str
    created_at: datetime
    updated_at: datetime


class CategoryOut(CategorySummary):
    """Category with ranked picks and honorable mentions."""

    picks: list[AssignmentOut] = Field(default_factory=list)
    honorable_mentions: list[AssignmentOut] = Field(default_factory=list)
    is_complete: bool = False
    admin_notice: str | None = None


class CategoryPickIn(CamelModel):
    """Initial ranked pick."""

    movie_id: int
    rank: int | None = None
    angle_label: str | None = None


class HonorableMentionIn(CamelModel):
    """Initial honorable mention."""

    movie_id: int
    angle_label: str | None = None


class CategoryCreate(CamelModel):
    """New category with optional initial picks."""

    title: str | None = None
    description: str | None = None
    slug: str | None = None
    picks: list[CategoryPickIn] = Field(default_factory=list)
    honorable_mentions: list[HonorableMentionIn] = Field(default_factory=list)


class CategoryUpdate(CamelModel):
    """Partial category update."""

    title: str | None = None
    description: str | None = None


class AssignmentRequest(CamelModel):
    """Place a movie in a category."""

    movie_id: int
    rank: int | None = None
    honorable: bool = False
    angle_label: str | None = None


class AngleLabelUpdate(CamelModel):
    """Set (or clear with null/blank) an assignment's angle label."""

    angle_label: str | None = None


class AssignmentResponse(CamelModel):
    """Category after an assignment, with the evicted movie if any."""

    data: CategoryOut
    displaced_movie_id: int | None = None


# =============================================================================
# ADMIN DASHBOARD & HOME
# =============================================================================


class DashboardCounts(CamelModel):
    """Catalog totals."""

    movies: int
    categories: int
    genres: int


class DashboardOut(CamelModel):
    """Admin landing page data."""

    username: str
    counts: DashboardCounts
    incomplete_categories: list[CategorySummary] = Field(default_factory=list)


class LoginPageOut(CamelModel):
    """Login page state."""

    authenticated: bool
    redirect: str


class HomeOut(CamelModel):
    """Public home page data."""

    categories: list[CategoryOut] = Field(default_factory=list)
    movies: list[MovieSummary] = Field(default_factory=list)
