"""Unit tests for login, logout and identity resolution."""

from __future__ import annotations

import pytest
from sqlalchemy.orm import Session
from starlette.responses import Response

from src.services.auth.auth_service import INVALID_CREDENTIALS, AuthService
from src.services.auth.passwords import PasswordHasher
from src.services.errors import InvalidInputError, NotAuthenticatedError
from src.settings import settings
from tests.conftest import ADMIN_PASSWORD, ADMIN_USERNAME


@pytest.fixture
def auth(db_session: Session, hasher: PasswordHasher) -> AuthService:
    return AuthService(db_session, hasher=hasher)


def _set_cookie_header(response: Response) -> str:
    return response.headers["set-cookie"]


class TestAuthenticate:
    """Credential checks."""

    @staticmethod
    def test_valid_credentials(auth: AuthService, admin_user) -> None:
        """Matching credentials return the admin."""
        user = auth.authenticate(ADMIN_USERNAME, ADMIN_PASSWORD)
        assert user is not None
        assert user.id == admin_user.id

    @staticmethod
    def test_wrong_password(auth: AuthService, admin_user) -> None:
        """A wrong password returns nothing."""
        assert auth.authenticate(ADMIN_USERNAME, "not-the-password") is None

    @staticmethod
    def test_unknown_user(auth: AuthService, admin_user) -> None:
        """An unknown username returns nothing."""
        assert auth.authenticate("ghost", ADMIN_PASSWORD) is None

    @staticmethod
    def test_unknown_user_still_verifies(
        db_session: Session,
        hasher: PasswordHasher,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """An unknown username still pays for one bcrypt verification."""
        calls = []
        original = hasher.verify

        def counting_verify(password: str, password_hash: str) -> bool:
            calls.append(password_hash)
            return original(password, password_hash)

        monkeypatch.setattr(hasher, "verify", counting_verify)
        AuthService(db_session, hasher=hasher).authenticate("ghost", "whatever-password")
        assert len(calls) == 1


class TestLogin:
    """Login flow."""

    @staticmethod
    def test_login_sets_cookie(auth: AuthService, admin_user) -> None:
        """A successful login sets an HTTP-only, SameSite=Lax session cookie."""
        response = Response()
        user, issued = auth.login(ADMIN_USERNAME, ADMIN_PASSWORD, response)

        header = _set_cookie_header(response)
        assert user.username == ADMIN_USERNAME
        assert f"{settings.security.session_cookie_name}={issued.token}" in header
        assert "HttpOnly" in header
        assert "samesite=lax" in header.lower()
        assert "Path=/" in header
        assert "expires=" in header.lower()

    @staticmethod
    def test_cookie_not_secure_outside_production(auth: AuthService, admin_user) -> None:
        """The Secure attribute is only set in production."""
        response = Response()
        auth.login(ADMIN_USERNAME, ADMIN_PASSWORD, response)
        assert "secure" not in _set_cookie_header(response).lower().split("; ")

    @staticmethod
    def test_cookie_secure_in_production(
        auth: AuthService,
        admin_user,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Production cookies carry the Secure attribute."""
        monkeypatch.setattr(settings, "environment", "production")
        response = Response()
        auth.login(ADMIN_USERNAME, ADMIN_PASSWORD, response)
        assert "secure" in _set_cookie_header(response).lower().split("; ")

    @staticmethod
    def test_failures_are_indistinguishable(auth: AuthService, admin_user) -> None:
        """Unknown user and wrong password fail with the same message."""
        with pytest.raises(NotAuthenticatedError) as unknown:
            auth.login("ghost", ADMIN_PASSWORD, Response())
        with pytest.raises(NotAuthenticatedError) as wrong:
            auth.login(ADMIN_USERNAME, "bad-password", Response())

        assert unknown.value.message == wrong.value.message == INVALID_CREDENTIALS
        assert unknown.value.status_code == wrong.value.status_code == 401

    @staticmethod
    def test_failed_login_sets_no_cookie(auth: AuthService, admin_user) -> None:
        """No cookie is written when credentials are rejected."""
        response = Response()
        with pytest.raises(NotAuthenticatedError):
            auth.login(ADMIN_USERNAME, "bad-password", response)
        assert "set-cookie" not in response.headers

    @staticmethod
    @pytest.mark.parametrize(
        ("username", "password"),
        [(None, "secret-secret"), ("admin", None), ("", "secret-secret"), ("admin", "")],
    )
    def test_missing_credentials(
        auth: AuthService,
        username: str | None,
        password: str | None,
    ) -> None:
        """Missing fields are rejected before any lookup."""
        with pytest.raises(InvalidInputError, match="Username and password are required"):
            auth.login(username, password, Response())


class TestSessionResolution:
    """current_user and logout."""

    @staticmethod
    def test_current_user(auth: AuthService, admin_user) -> None:
        """The issued token resolves to the logged-in admin."""
        _, issued = auth.login(ADMIN_USERNAME, ADMIN_PASSWORD, Response())
        principal = auth.current_user(issued.token)
        assert principal is not None
        assert principal.username == ADMIN_USERNAME
        assert principal.user_id == admin_user.id
        assert auth.is_authenticated(issued.token) is True

    @staticmethod
    def test_no_token(auth: AuthService) -> None:
        """A missing cookie resolves to no one."""
        assert auth.current_user(None) is None
        assert auth.is_authenticated(None) is False

    @staticmethod
    def test_logout_invalidates(auth: AuthService, admin_user) -> None:
        """After logout the token no longer resolves and the cookie is cleared."""
        _, issued = auth.login(ADMIN_USERNAME, ADMIN_PASSWORD, Response())
        response = Response()
        auth.logout(issued.token, response)

        assert auth.current_user(issued.token) is None
        header = _set_cookie_header(response)
        assert f"{settings.security.session_cookie_name}=" in header
        assert "Max-Age=0" in header

    @staticmethod
    def test_logout_without_session(auth: AuthService) -> None:
        """Logging out with no session still clears the cookie."""
        response = Response()
        auth.logout(None, response)
        assert "set-cookie" in response.headers
