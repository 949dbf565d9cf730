"""Authentication dependencies for FastAPI.

Every protected endpoint goes through ``resolve_admin``: the session
cookie is re-validated against the session store on each request,
whatever the coarse ``/admin`` gate already let through.
"""

from typing import Annotated
from urllib.parse import quote

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from src.api.database import get_db
from src.services.auth.auth_service import AdminPrincipal, AuthService
from src.services.auth.passwords import PasswordHasher, get_password_hasher
from src.services.errors import NotAuthenticatedError
from src.settings import settings

LOGIN_PATH = "/admin/login"


class LoginRedirect(NotAuthenticatedError):
    """Unauthenticated page load; rendered as a 303 to the login page."""

    def __init__(self, next_path: str) -> None:
        super().__init__("Unauthorized")
        self.location = f"{LOGIN_PATH}?redirect={quote(next_path, safe='/')}"


# =============================================================================
# DEPENDENCIES
# =============================================================================


def get_session_token(request: Request) -> str | None:
    """Read the raw session cookie."""
    return request.cookies.get(settings.security.session_cookie_name)


def get_auth_service(
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
) -> AuthService:
    """Request-scoped auth service."""
    return AuthService(db, hasher=hasher)


def resolve_admin(
    token: Annotated[str | None, Depends(get_session_token)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
    db: Annotated[Session, Depends(get_db)],
) -> AdminPrincipal:
    """Resolve the authenticated admin or reject.

    An expired session found here is deleted by the lookup; that delete
    is committed before rejecting, since ``get_db`` rolls back on error.

    Args:
        token: Session cookie value.
        auth: Auth service bound to the request's DB session.
        db: The request's DB session.

    Returns:
        The authenticated principal.

    Raises:
        NotAuthenticatedError: Missing, unknown or expired session.
    """
    principal = auth.current_user(token)
    if principal is None:
        db.commit()
        raise NotAuthenticatedError()
    return principal


def optional_admin(
    token: Annotated[str | None, Depends(get_session_token)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> AdminPrincipal | None:
    """Principal when signed in, None otherwise (public pages)."""
    return auth.current_user(token)


def require_admin_page(
    request: Request,
    token: Annotated[str | None, Depends(get_session_token)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
    db: Annotated[Session, Depends(get_db)],
) -> AdminPrincipal:
    """Like ``resolve_admin`` but redirects page loads to the login page.

    Raises:
        LoginRedirect: Missing, unknown or expired session.
    """
    try:
        return resolve_admin(token, auth, db)
    except NotAuthenticatedError:
        raise LoginRedirect(request.url.path) from None


# Type aliases for cleaner endpoint signatures
CurrentAdmin = Annotated[AdminPrincipal, Depends(resolve_admin)]
AdminPage = Annotated[AdminPrincipal, Depends(require_admin_page)]
OptionalAdmin = Annotated[AdminPrincipal | None, Depends(optional_admin)]
