"""Login, logout and request-time identity resolution.

Sessions live in the database (see ``session_store``); the browser
only holds the opaque token in an HTTP-only cookie.
"""

from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache

from sqlalchemy.orm import Session
from starlette.responses import Response

from src.database.models.admin import AdminUser
from src.database.repositories.admin import AdminUserRepository
from src.services.auth.passwords import PasswordHasher
from src.services.auth.session_store import IssuedSession, SessionStore, as_utc
from src.services.errors import InvalidInputError, NotAuthenticatedError
from src.settings import settings
from src.utils.logger import setup_logger

logger = setup_logger("services.auth")

INVALID_CREDENTIALS = "Invalid username or password"


@lru_cache(maxsize=4)
def _timing_hash(rounds: int) -> str:
    """Hash verified against when the username is unknown."""
    return PasswordHasher(rounds).hash("whutmovie-timing-placeholder")


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass(frozen=True)
class AdminPrincipal:
    """Authenticated admin resolved from a valid session.

    Attributes:
        user_id: Admin primary key.
        username: Admin username.
        token: Session token the identity was resolved from.
        expires_at: Session expiry (UTC).
    """

    user_id: int
    username: str
    token: str
    expires_at: datetime


# =============================================================================
# COOKIE HELPERS
# =============================================================================


def set_session_cookie(response: Response, issued: IssuedSession) -> None:
    """Write the session cookie, expiring together with the session."""
    response.set_cookie(
        key=settings.security.session_cookie_name,
        value=issued.token,
        expires=issued.expires_at,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


def clear_session_cookie(response: Response) -> None:
    """Expire the session cookie on the client."""
    response.delete_cookie(
        key=settings.security.session_cookie_name,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


# =============================================================================
# AUTH SERVICE
# =============================================================================


class AuthService:
    """Orchestrates credential checks and session lifecycle.

    Attributes:
        _users: Admin user repository.
        _hasher: Password hasher.
        _store: Session store.
    """

    def __init__(
        self,
        session: Session,
        hasher: PasswordHasher | None = None,
        store: SessionStore | None = None,
    ) -> None:
        """Initialize auth service.

        Args:
            session: SQLAlchemy session instance.
            hasher: Password hasher (defaults to configured cost).
            store: Session store (defaults to configured lifetime).
        """
        self._users = AdminUserRepository(session)
        self._hasher = hasher or PasswordHasher()
        self._store = store or SessionStore(session)

    def authenticate(self, username: str, password: str) -> AdminUser | None:
        """Check credentials.

        Unknown usernames and wrong passwords both return None. An unknown
        username still pays for one bcrypt verification so both failures
        take comparable time.

        Args:
            username: Exact username.
            password: Plaintext password.

        Returns:
            The admin on success, else None.
        """
        user = self._users.get_by_username(username)
        if user is None:
            self._hasher.verify(password, _timing_hash(self._hasher.rounds))
            return None
        if not self._hasher.verify(password, user.password_hash):
            return None
        return user

    def login(
        self,
        username: str | None,
        password: str | None,
        response: Response,
    ) -> tuple[AdminUser, IssuedSession]:
        """Authenticate, open a session and set the cookie on ``response``.

        Raises:
            InvalidInputError: If either credential is missing.
            NotAuthenticatedError: If the credentials do not match.
        """
        if not username or not password:
            raise InvalidInputError("Username and password are required")

        user = self.authenticate(username, password)
        if user is None:
            logger.warning(f"Failed login for '{username}'")
            raise NotAuthenticatedError(INVALID_CREDENTIALS)

        issued = self._store.create(user.id)
        set_session_cookie(response, issued)
        logger.info(f"Admin '{user.username}' logged in")
        return user, issued

    def logout(self, token: str | None, response: Response) -> None:
        """Destroy the session for ``token`` (if any) and clear the cookie."""
        self._store.destroy(token)
        clear_session_cookie(response)
        logger.info("Admin session closed")

    def current_user(
        self,
        token: str | None,
        purge_expired: bool = True,
    ) -> AdminPrincipal | None:
        """Resolve the admin behind a session token.

        Args:
            token: Raw cookie value.
            purge_expired: Allow deleting an expired session row.

        Returns:
            Principal, or None when the token is absent, unknown or expired.
        """
        record = self._store.lookup(token, purge_expired=purge_expired)
        if record is None:
            return None
        user = record.user
        return AdminPrincipal(
            user_id=user.id,
            username=user.username,
            token=record.token,
            expires_at=as_utc(record.expires_at),
        )

    def is_authenticated(self, token: str | None) -> bool:
        """True when ``token`` resolves to a live session."""
        return self.current_user(token) is not None

