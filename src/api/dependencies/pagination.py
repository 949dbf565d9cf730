"""Pagination query parameters shared by list endpoints."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Query

from src.api.schemas import MAX_PAGE_SIZE, PaginationParams


def pagination(default_size: int) -> Callable[..., PaginationParams]:
    """Build a dependency parsing ``page`` and ``pageSize``.

    Oversized ``pageSize`` values are clamped to the server maximum
    rather than rejected.

    Args:
        default_size: Page size when ``pageSize`` is omitted.

    Returns:
        FastAPI dependency returning PaginationParams.
    """

    def get_pagination(
        page: Annotated[int, Query(ge=1)] = 1,
        page_size: Annotated[int, Query(alias="pageSize", ge=1)] = default_size,
    ) -> PaginationParams:
        return PaginationParams(page=page, page_size=min(page_size, MAX_PAGE_SIZE))

    return get_pagination


movie_pagination = pagination(12)
list_pagination = pagination(50)
