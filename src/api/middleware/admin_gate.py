"""Coarse gate in front of ``/admin`` pages.

Only checks that a session cookie is present. It never touches the
database; endpoints behind it still validate the session themselves.
"""

from urllib.parse import quote

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from src.settings import settings

ADMIN_PREFIX = "/admin"
LOGIN_PATH = "/admin/login"


def is_gated(path: str) -> bool:
    """True for ``/admin`` and its sub-paths, except the login page."""
    if path == LOGIN_PATH:
        return False
    return path == ADMIN_PREFIX or path.startswith(ADMIN_PREFIX + "/")


class AdminGateMiddleware(BaseHTTPMiddleware):
    """Redirects cookie-less ``/admin`` requests to the login page."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Let the request through or redirect to login.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware/handler in the chain.

        Returns:
            Downstream response, or a 303 to ``/admin/login?redirect=<path>``.
        """
        path = request.url.path
        if is_gated(path) and not request.cookies.get(settings.security.session_cookie_name):
            location = f"{LOGIN_PATH}?redirect={quote(path, safe='/')}"
            return RedirectResponse(location, status_code=303)
        return await call_next(request)
