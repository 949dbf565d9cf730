"""Genre endpoints for REST API."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from src.api.database import get_db
from src.api.dependencies.auth import CurrentAdmin
from src.api.dependencies.pagination import list_pagination
from src.api.schemas import (
    DataResponse,
    DeletedOut,
    GenreCreate,
    GenreOut,
    GenreUpdate,
    PageResponse,
    PaginatedMeta,
    PaginationParams,
)
from src.database.models.genre import Genre
from src.database.repositories.genre import GenreRepository
from src.services import revalidation
from src.services.errors import NotFoundError

router = APIRouter(prefix="/genres", tags=["Genres"])


# =============================================================================
# ENDPOINTS
# =============================================================================


@router.get(
    "",
    response_model=PageResponse[GenreOut],
    response_model_exclude_none=True,
    summary="List genres",
)
def list_genres(
    db: Annotated[Session, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(list_pagination)],
    include_movie_count: Annotated[bool, Query(alias="includeMovieCount")] = False,
) -> PageResponse[GenreOut]:
    """Get genres ordered by name.

    Args:
        db: Database session.
        pagination: Pagination parameters.
        include_movie_count: Add the number of tagged movies to each genre.

    Returns:
        Paginated list of genres with metadata.
    """
    repo = GenreRepository(db)
    genres = repo.list_page(offset=pagination.offset, limit=pagination.page_size)
    counts = repo.movie_counts([g.id for g in genres]) if include_movie_count else None
    return PageResponse[GenreOut](
        data=[_genre_out(g, counts) for g in genres],
        meta=PaginatedMeta.from_params(pagination, repo.count()),
    )


@router.get(
    "/{key}",
    response_model=DataResponse[GenreOut],
    summary="Get genre",
)
def get_genre(
    key: str,
    db: Annotated[Session, Depends(get_db)],
) -> DataResponse[GenreOut]:
    """Get a genre by id or slug, with its movie count.

    Raises:
        NotFoundError: 404 if no genre matches.
    """
    repo = GenreRepository(db)
    genre = repo.get_by_id_or_slug(key)
    if genre is None:
        raise NotFoundError("Genre not found")
    return DataResponse[GenreOut](data=_genre_out(genre, repo.movie_counts([genre.id])))


@router.post(
    "",
    response_model=DataResponse[GenreOut],
    status_code=status.HTTP_201_CREATED,
    summary="Create genre",
)
def create_genre(
    payload: GenreCreate,
    _admin: CurrentAdmin,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> DataResponse[GenreOut]:
    """Create a genre; the slug is derived from the name when omitted."""
    genre = GenreRepository(db).add(payload.name, payload.slug)
    db.commit()
    revalidation.invalidate(response, revalidation.genre_paths())
    return DataResponse[GenreOut](data=_genre_out(genre, {}))


@router.patch(
    "/{genre_id}",
    response_model=DataResponse[GenreOut],
    summary="Rename genre",
)
def update_genre(
    genre_id: int,
    payload: GenreUpdate,
    _admin: CurrentAdmin,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> DataResponse[GenreOut]:
    """Rename a genre; the slug follows the name.

    Raises:
        NotFoundError: 404 if the genre does not exist.
    """
    repo = GenreRepository(db)
    genre = _require_genre(repo, genre_id)
    repo.rename(genre, payload.name)
    db.commit()
    revalidation.invalidate(response, revalidation.genre_paths())
    return DataResponse[GenreOut](data=_genre_out(genre, repo.movie_counts([genre.id])))


@router.delete(
    "/{genre_id}",
    response_model=DataResponse[DeletedOut],
    summary="Delete genre",
)
def delete_genre(
    genre_id: int,
    _admin: CurrentAdmin,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    force: bool = False,
) -> DataResponse[DeletedOut]:
    """Delete a genre. Movies keep existing and lose only this tag.

    Args:
        genre_id: Genre primary key.
        _admin: Authenticated admin (session validated).
        response: Outgoing response.
        db: Database session.
        force: Required when movies still carry the genre.

    Raises:
        NotFoundError: 404 if the genre does not exist.
        InvariantViolationError: 400 with ``movieCount`` when movies are
            attached and ``force`` is false.
    """
    repo = GenreRepository(db)
    genre = _require_genre(repo, genre_id)
    repo.remove(genre, force=force)
    db.commit()
    revalidation.invalidate(response, revalidation.genre_paths())
    return DataResponse[DeletedOut](data=DeletedOut(id=genre_id))


# =============================================================================
# PRIVATE HELPERS
# =============================================================================


def _require_genre(repo: GenreRepository, genre_id: int) -> Genre:
    genre = repo.get_by_id(genre_id)
    if genre is None:
        raise NotFoundError("Genre not found")
    return genre


def _genre_out(genre: Genre, counts: dict[int, int] | None) -> GenreOut:
    """Build a GenreOut, attaching the movie count when counts are given."""
    out = GenreOut.model_validate(genre)
    if counts is not None:
        out.movie_count = counts.get(genre.id, 0)
    return out
