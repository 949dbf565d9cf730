"""Dependent-page invalidation after catalog mutations.

Rendering happens outside this service, so a mutation only computes
which public and admin paths are now stale, logs them and advertises
them in the ``X-Invalidated-Paths`` response header for the fronting
renderer or CDN to purge.
"""

from collections.abc import Iterable

from starlette.responses import Response

from src.utils.logger import setup_logger

logger = setup_logger("services.revalidation")

INVALIDATION_HEADER = "X-Invalidated-Paths"


def movie_paths(slugs: Iterable[str], category_slugs: Iterable[str] = ()) -> list[str]:
    """Paths depending on one or more movies (old and new slugs)."""
    paths = ["/", "/movies", "/admin", "/admin/movies", "/categories"]
    paths += [f"/movies/{slug}" for slug in slugs if slug]
    paths += [f"/categories/{slug}" for slug in category_slugs if slug]
    return paths


def category_paths(slugs: Iterable[str], movie_slugs: Iterable[str] = ()) -> list[str]:
    """Paths depending on one or more categories."""
    paths = ["/", "/categories", "/admin", "/admin/categories"]
    paths += [f"/categories/{slug}" for slug in slugs if slug]
    paths += [f"/movies/{slug}" for slug in movie_slugs if slug]
    return paths


def genre_paths() -> list[str]:
    """Paths listing or filtering by genre."""
    return ["/", "/movies", "/categories", "/admin/genres", "/admin/movies"]


def admin_user_paths() -> list[str]:
    """Admin user management page."""
    return ["/admin/users"]


def invalidate(response: Response, paths: Iterable[str]) -> list[str]:
    """Record stale paths on ``response`` and log them.

    Args:
        response: Outgoing response to annotate.
        paths: Paths whose rendered output is now stale.

    Returns:
        De-duplicated paths in first-seen order.
    """
    unique = list(dict.fromkeys(paths))
    if not unique:
        return unique
    response.headers[INVALIDATION_HEADER] = ",".join(unique)
    logger.info(f"Invalidated {len(unique)} path(s): {', '.join(unique)}")
    return unique
