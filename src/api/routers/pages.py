"""Page data endpoints: admin dashboard, login page and public home.

Rendering is done by the front end; these endpoints provide the data
and enforce the admin session on page loads.
"""

from typing import Annotated
from urllib.parse import urlsplit

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from src.api.database import get_db
from src.api.dependencies.auth import AdminPage, OptionalAdmin
from src.api.schemas import (
    CategoryOut,
    CategorySummary,
    DashboardCounts,
    DashboardOut,
    DataResponse,
    HomeOut,
    LoginPageOut,
    MovieSummary,
)
from src.database.repositories.category import CategoryRepository
from src.database.repositories.genre import GenreRepository
from src.database.repositories.movie import MovieRepository

DEFAULT_REDIRECT = "/admin"
HOME_ITEMS = 6

admin_pages = APIRouter(prefix="/admin", tags=["Admin pages"])
public_pages = APIRouter(prefix="/api", tags=["Pages"])


def safe_redirect(target: str | None) -> str:
    """Keep only same-site relative paths as post-login targets.

    Protocol-relative (``//host``) and scheme-bearing values fall back
    to the dashboard.
    """
    if not target or not target.startswith("/") or target.startswith("//"):
        return DEFAULT_REDIRECT
    if "\\" in target:
        return DEFAULT_REDIRECT
    parts = urlsplit(target)
    if parts.scheme or parts.netloc:
        return DEFAULT_REDIRECT
    return target


# =============================================================================
# ADMIN PAGES
# =============================================================================


@admin_pages.get(
    "",
    response_model=DataResponse[DashboardOut],
    summary="Admin dashboard",
)
def dashboard(
    admin: AdminPage,
    db: Annotated[Session, Depends(get_db)],
) -> DataResponse[DashboardOut]:
    """Catalog counts and the categories still missing ranked picks."""
    counts = DashboardCounts(
        movies=MovieRepository(db).count(),
        categories=CategoryRepository(db).count(),
        genres=GenreRepository(db).count(),
    )
    incomplete = CategoryRepository(db).incomplete()
    return DataResponse[DashboardOut](
        data=DashboardOut(
            username=admin.username,
            counts=counts,
            incomplete_categories=[CategorySummary.model_validate(c) for c in incomplete],
        )
    )


@admin_pages.get(
    "/login",
    response_model=DataResponse[LoginPageOut],
    summary="Login page",
)
def login_page(
    admin: OptionalAdmin,
    redirect: Annotated[str | None, Query()] = None,
) -> DataResponse[LoginPageOut]:
    """Report sign-in state and the sanitized post-login target."""
    return DataResponse[LoginPageOut](
        data=LoginPageOut(authenticated=admin is not None, redirect=safe_redirect(redirect))
    )


# =============================================================================
# PUBLIC PAGES
# =============================================================================


@public_pages.get(
    "/home",
    response_model=DataResponse[HomeOut],
    summary="Home page",
)
def home(db: Annotated[Session, Depends(get_db)]) -> DataResponse[HomeOut]:
    """Latest categories (with their picks) and latest movies."""
    categories = CategoryRepository(db).recent(HOME_ITEMS)
    movies = MovieRepository(db).recent(HOME_ITEMS)
    return DataResponse[HomeOut](
        data=HomeOut(
            categories=[CategoryOut.model_validate(c) for c in categories],
            movies=[MovieSummary.model_validate(m) for m in movies],
        )
    )
