"""Movie endpoints for REST API.

Public listing and detail; creation, update and deletion require
an authenticated admin.
"""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from src.api.database import get_db
from src.api.dependencies.auth import CurrentAdmin
from src.api.dependencies.pagination import movie_pagination
from src.api.schemas import (
    DataResponse,
    DeletedOut,
    MovieCreate,
    MovieOut,
    MovieUpdate,
    PageResponse,
    PaginatedMeta,
    PaginationParams,
)
from src.database.models.movie import Movie
from src.database.repositories.movie import CategoryPick, MovieFilters, MovieRepository
from src.services import revalidation
from src.services.errors import NotFoundError

router = APIRouter(prefix="/movies", tags=["Movies"])


# =============================================================================
# ENDPOINTS
# =============================================================================


@router.get(
    "",
    response_model=PageResponse[MovieOut],
    summary="List movies",
    description="Paginated movies, filterable by genre, category and title.",
)
def list_movies(
    db: Annotated[Session, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(movie_pagination)],
    genre: Annotated[str | None, Query(description="Genre slug")] = None,
    category: Annotated[str | None, Query(description="Category slug")] = None,
    q: Annotated[str | None, Query(description="Title contains (case-insensitive)")] = None,
    sort: Literal["year", "title"] = "year",
) -> PageResponse[MovieOut]:
    """Get a filtered page of movies.

    Args:
        db: Database session.
        pagination: Pagination parameters.
        genre: Keep movies tagged with this genre slug.
        category: Keep movies placed in this category slug.
        q: Title search fragment.
        sort: ``year`` (newest first) or ``title``.

    Returns:
        Paginated list of movies with metadata.
    """
    filters = MovieFilters(genre=genre, category=category, q=q, sort=sort)
    movies, total = MovieRepository(db).list_page(
        filters,
        offset=pagination.offset,
        limit=pagination.page_size,
    )
    return PageResponse[MovieOut](
        data=[MovieOut.model_validate(m) for m in movies],
        meta=PaginatedMeta.from_params(pagination, total),
    )


@router.get(
    "/{key}",
    response_model=DataResponse[MovieOut],
    summary="Get movie",
    description="Movie detail by numeric id or slug.",
)
def get_movie(
    key: str,
    db: Annotated[Session, Depends(get_db)],
) -> DataResponse[MovieOut]:
    """Get movie by id or slug.

    Raises:
        NotFoundError: 404 if no movie matches.
    """
    movie = MovieRepository(db).get_detail(key)
    if movie is None:
        raise NotFoundError("Movie not found")
    return DataResponse[MovieOut](data=MovieOut.model_validate(movie))


@router.post(
    "",
    response_model=DataResponse[MovieOut],
    status_code=status.HTTP_201_CREATED,
    summary="Create movie",
)
def create_movie(
    payload: MovieCreate,
    _admin: CurrentAdmin,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> DataResponse[MovieOut]:
    """Create a movie with genres and optional category picks.

    Args:
        payload: Movie fields.
        _admin: Authenticated admin (session validated).
        response: Outgoing response (receives invalidation header).
        db: Database session.

    Returns:
        The created movie.
    """
    repo = MovieRepository(db)
    movie = repo.add(
        title=payload.title,
        whut_summary=payload.whut_summary,
        slug=payload.slug,
        description=payload.description,
        year=payload.year,
        genre_slugs=payload.genre_slugs,
        picks=[
            CategoryPick(
                category_slug=p.category_slug or "",
                rank=p.rank,
                honorable=p.honorable,
                angle_label=p.angle_label,
            )
            for p in payload.picks
        ],
    )
    db.commit()

    detail = repo.get_detail(movie.id)
    revalidation.invalidate(
        response,
        revalidation.movie_paths([detail.slug], _category_slugs(detail)),
    )
    return DataResponse[MovieOut](data=MovieOut.model_validate(detail))


@router.patch(
    "/{movie_id}",
    response_model=DataResponse[MovieOut],
    summary="Update movie",
)
def update_movie(
    movie_id: int,
    payload: MovieUpdate,
    _admin: CurrentAdmin,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> DataResponse[MovieOut]:
    """Partially update a movie; a new title regenerates the slug.

    Raises:
        NotFoundError: 404 if the movie does not exist.
    """
    repo = MovieRepository(db)
    movie = _require_movie(repo, movie_id)
    old_slug = movie.slug

    changes = {}
    fields = payload.model_fields_set
    for name in ("description", "year"):
        if name in fields:
            changes[name] = getattr(payload, name)
    repo.change(
        movie,
        title=payload.title,
        whut_summary=payload.whut_summary,
        genre_slugs=payload.genre_slugs,
        **changes,
    )
    db.commit()

    detail = repo.get_detail(movie.id)
    revalidation.invalidate(
        response,
        revalidation.movie_paths([old_slug, detail.slug], _category_slugs(detail)),
    )
    return DataResponse[MovieOut](data=MovieOut.model_validate(detail))


@router.delete(
    "/{movie_id}",
    response_model=DataResponse[DeletedOut],
    summary="Delete movie",
)
def delete_movie(
    movie_id: int,
    _admin: CurrentAdmin,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> DataResponse[DeletedOut]:
    """Delete a movie, its category assignments and genre links.

    Raises:
        NotFoundError: 404 if the movie does not exist.
    """
    repo = MovieRepository(db)
    movie = _require_movie(repo, movie_id)
    slug = movie.slug
    category_slugs = _category_slugs(movie)

    repo.remove(movie)
    db.commit()

    revalidation.invalidate(response, revalidation.movie_paths([slug], category_slugs))
    return DataResponse[DeletedOut](data=DeletedOut(id=movie_id))


# =============================================================================
# PRIVATE HELPERS
# =============================================================================


def _require_movie(repo: MovieRepository, movie_id: int) -> Movie:
    """Load a movie with its relations or raise NotFoundError."""
    movie = repo.get_detail(movie_id)
    if movie is None:
        raise NotFoundError("Movie not found")
    return movie


def _category_slugs(movie: Movie) -> list[str]:
    """Slugs of the categories a movie is placed in."""
    return [a.category.slug for a in movie.assignments]
