"""Category and assignment endpoints for REST API.

Categories hold up to three ranked picks plus honorable mentions.
Assignment writes go through ``CategoryRepository.assign``, which
evicts previous holders atomically.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from src.api.database import get_db
from src.api.dependencies.auth import CurrentAdmin, OptionalAdmin
from src.api.dependencies.pagination import list_pagination
from src.api.schemas import (
    AngleLabelUpdate,
    AssignmentOut,
    AssignmentRequest,
    AssignmentResponse,
    CategoryCreate,
    CategoryOut,
    CategorySummary,
    CategoryUpdate,
    DataResponse,
    DeletedOut,
    PageResponse,
    PaginatedMeta,
    PaginationParams,
)
from src.database.models.category import MAX_RANK, Category
from src.database.models.movie import Movie
from src.database.repositories.category import CategoryRepository, PickSpec
from src.services import revalidation
from src.services.errors import InvalidInputError, NotFoundError

router = APIRouter(prefix="/categories", tags=["Categories"])


# =============================================================================
# CATEGORY ENDPOINTS
# =============================================================================


@router.get(
    "",
    response_model=PageResponse[CategoryOut],
    response_model_exclude_unset=True,
    summary="List categories",
)
def list_categories(
    db: Annotated[Session, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(list_pagination)],
    include: Annotated[str | None, Query(description="'assignments' to embed picks")] = None,
    genre: Annotated[str | None, Query(description="Genre slug of a ranked pick")] = None,
) -> PageResponse[CategoryOut]:
    """Get categories ordered by title.

    Args:
        db: Database session.
        pagination: Pagination parameters.
        include: ``assignments`` embeds picks and honorable mentions.
        genre: Keep categories with at least one ranked pick in this genre.

    Returns:
        Paginated list of categories with metadata.
    """
    with_assignments = include == "assignments"
    categories, total = CategoryRepository(db).list_page(
        offset=pagination.offset,
        limit=pagination.page_size,
        genre=genre,
        with_assignments=with_assignments,
    )
    if with_assignments:
        data = [CategoryOut.model_validate(c) for c in categories]
    else:
        # Summary fields only; assignment fields stay unset and are omitted.
        data = [
            CategoryOut.model_validate(CategorySummary.model_validate(c))
            for c in categories
        ]
    return PageResponse[CategoryOut](
        data=data,
        meta=PaginatedMeta.from_params(pagination, total),
    )


@router.get(
    "/{key}",
    response_model=DataResponse[CategoryOut],
    summary="Get category",
    description="Category by id or slug with picks and honorable mentions.",
)
def get_category(
    key: str,
    admin: OptionalAdmin,
    db: Annotated[Session, Depends(get_db)],
    genre: Annotated[str | None, Query(description="Genre slug filter")] = None,
) -> DataResponse[CategoryOut]:
    """Get a category detail.

    Completeness is computed on every ranked pick, before the optional
    genre filter narrows the lists. Signed-in admins viewing an
    incomplete category get an ``adminNotice``.

    Raises:
        NotFoundError: 404 if no category matches.
    """
    category = CategoryRepository(db).get_detail(key)
    if category is None:
        raise NotFoundError("Category not found")

    out = _category_out(category, genre=genre)
    if admin is not None and not out.is_complete:
        missing = MAX_RANK - len(category.picks)
        out.admin_notice = (
            f"This category has {len(category.picks)} of {MAX_RANK} ranked picks "
            f"({missing} missing)."
        )
    return DataResponse[CategoryOut](data=out)


@router.post(
    "",
    response_model=DataResponse[CategoryOut],
    status_code=status.HTTP_201_CREATED,
    summary="Create category",
)
def create_category(
    payload: CategoryCreate,
    _admin: CurrentAdmin,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> DataResponse[CategoryOut]:
    """Create a category with optional initial picks and mentions."""
    repo = CategoryRepository(db)
    category = repo.add(
        title=payload.title,
        description=payload.description,
        slug=payload.slug,
        picks=[PickSpec(p.movie_id, p.rank, False, p.angle_label) for p in payload.picks],
        honorable_mentions=[
            PickSpec(m.movie_id, None, True, m.angle_label)
            for m in payload.honorable_mentions
        ],
    )
    db.commit()

    detail = repo.get_detail(category.id)
    revalidation.invalidate(
        response,
        revalidation.category_paths([detail.slug], _movie_slugs(detail)),
    )
    return DataResponse[CategoryOut](data=_category_out(detail))


@router.patch(
    "/{category_id}",
    response_model=DataResponse[CategoryOut],
    summary="Update category",
)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    _admin: CurrentAdmin,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> DataResponse[CategoryOut]:
    """Update title and/or description; a new title regenerates the slug.

    Raises:
        NotFoundError: 404 if the category does not exist.
        InvalidInputError: 400 when the payload changes nothing.
    """
    repo = CategoryRepository(db)
    category = _require_category(repo, category_id)
    if payload.title is None and payload.description is None:
        raise InvalidInputError("No fields to update")
    old_slug = category.slug

    repo.change(category, title=payload.title, description=payload.description)
    db.commit()

    revalidation.invalidate(
        response,
        revalidation.category_paths([old_slug, category.slug], _movie_slugs(category)),
    )
    return DataResponse[CategoryOut](data=_category_out(category))


@router.delete(
    "/{category_id}",
    response_model=DataResponse[DeletedOut],
    summary="Delete category",
)
def delete_category(
    category_id: int,
    _admin: CurrentAdmin,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> DataResponse[DeletedOut]:
    """Delete a category and all of its assignments.

    Raises:
        NotFoundError: 404 if the category does not exist.
    """
    repo = CategoryRepository(db)
    category = _require_category(repo, category_id)
    slug = category.slug
    movie_slugs = _movie_slugs(category)

    repo.remove(category)
    db.commit()

    revalidation.invalidate(response, revalidation.category_paths([slug], movie_slugs))
    return DataResponse[DeletedOut](data=DeletedOut(id=category_id))


# =============================================================================
# ASSIGNMENT ENDPOINTS
# =============================================================================


@router.put(
    "/{category_id}/assignments",
    response_model=AssignmentResponse,
    summary="Assign movie",
    description="Place a movie as a ranked pick (1-3) or honorable mention. "
    "The previous holder of the rank is displaced.",
)
def assign_movie(
    category_id: int,
    payload: AssignmentRequest,
    _admin: CurrentAdmin,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> AssignmentResponse:
    """Assign a movie to a category.

    Raises:
        NotFoundError: 404 if the category or movie does not exist.
        InvalidInputError: 400 on an invalid rank.
        ConflictError: 409 if a concurrent edit took the slot.
    """
    repo = CategoryRepository(db)
    category = _require_category(repo, category_id)
    movie = db.get(Movie, payload.movie_id)
    if movie is None:
        raise NotFoundError("Movie not found")

    result = repo.assign(
        category,
        movie,
        rank=payload.rank,
        honorable=payload.honorable,
        angle_label=payload.angle_label,
    )
    db.commit()

    detail = repo.get_detail(category.id)
    movie_slugs = [movie.slug]
    if result.displaced_movie_id is not None:
        displaced = db.get(Movie, result.displaced_movie_id)
        if displaced is not None:
            movie_slugs.append(displaced.slug)
    revalidation.invalidate(response, revalidation.category_paths([detail.slug], movie_slugs))
    return AssignmentResponse(
        data=_category_out(detail),
        displaced_movie_id=result.displaced_movie_id,
    )


@router.patch(
    "/{category_id}/assignments/{movie_id}",
    response_model=DataResponse[AssignmentOut],
    summary="Update angle label",
)
def update_angle_label(
    category_id: int,
    movie_id: int,
    payload: AngleLabelUpdate,
    _admin: CurrentAdmin,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> DataResponse[AssignmentOut]:
    """Set or clear the angle label of an assignment.

    Raises:
        NotFoundError: 404 if the category or assignment does not exist.
    """
    repo = CategoryRepository(db)
    category = _require_category(repo, category_id)
    assignment = repo.set_angle_label(category, movie_id, payload.angle_label)
    db.commit()

    revalidation.invalidate(
        response,
        revalidation.category_paths([category.slug], [assignment.movie.slug]),
    )
    return DataResponse[AssignmentOut](data=AssignmentOut.model_validate(assignment))


@router.delete(
    "/{category_id}/assignments/{movie_id}",
    response_model=DataResponse[CategoryOut],
    summary="Remove assignment",
)
def remove_assignment(
    category_id: int,
    movie_id: int,
    _admin: CurrentAdmin,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> DataResponse[CategoryOut]:
    """Remove the assignment keyed by the (movie, category) pair.

    Raises:
        NotFoundError: 404 if the category or assignment does not exist.
    """
    repo = CategoryRepository(db)
    category = _require_category(repo, category_id)
    movie = db.get(Movie, movie_id)
    repo.unassign(category, movie_id)
    db.commit()

    detail = repo.get_detail(category.id)
    revalidation.invalidate(
        response,
        revalidation.category_paths([detail.slug], [movie.slug] if movie else []),
    )
    return DataResponse[CategoryOut](data=_category_out(detail))


# =============================================================================
# PRIVATE HELPERS
# =============================================================================


def _require_category(repo: CategoryRepository, category_id: int) -> Category:
    category = repo.get_by_id(category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return category


def _movie_slugs(category: Category) -> list[str]:
    return [a.movie.slug for a in category.assignments]


def _category_out(category: Category, genre: str | None = None) -> CategoryOut:
    """Serialize a category, optionally keeping only movies of one genre.

    ``isComplete`` always reflects the unfiltered picks.
    """
    out = CategoryOut.model_validate(category)
    if genre:
        out.picks = [a for a in out.picks if _has_genre(a, genre)]
        out.honorable_mentions = [a for a in out.honorable_mentions if _has_genre(a, genre)]
    return out


def _has_genre(assignment: AssignmentOut, genre: str) -> bool:
    return any(g.slug == genre for g in assignment.movie.genres)
