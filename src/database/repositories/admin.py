"""Admin account and session repositories."""

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from src.database.models.admin import AdminSession, AdminUser
from src.database.repositories.base import BaseRepository, require_text
from src.services.errors import ConflictError, InvariantViolationError


def normalize_username(username: str | None) -> str:
    """Trim and lowercase a username, rejecting blanks."""
    return require_text(username, "Username is required").lower()


class AdminUserRepository(BaseRepository[AdminUser]):
    """Repository for AdminUser entity operations."""

    model = AdminUser
    entity_label = "user"

    def __init__(self, session: Session) -> None:
        """Initialize admin user repository.

        Args:
            session: SQLAlchemy session instance.
        """
        super().__init__(session)

    def list_users(self) -> list[AdminUser]:
        """Return all admins ordered by creation."""
        stmt = select(AdminUser).order_by(AdminUser.created_at, AdminUser.id)
        return list(self._session.scalars(stmt).all())

    def get_by_username(self, username: str) -> AdminUser | None:
        """Retrieve an admin by exact username."""
        return self.get_by_field("username", username)

    def add(self, username: str, password_hash: str) -> AdminUser:
        """Create an admin account.

        Args:
            username: Raw username (trimmed and lowercased here).
            password_hash: bcrypt hash of the password.

        Returns:
            Persisted admin user.

        Raises:
            InvalidInputError: If the username is blank.
            ConflictError: If the username is taken.
        """
        username = normalize_username(username)
        self._ensure_username_free(username)
        return self.create(AdminUser(username=username, password_hash=password_hash))

    def change(
        self,
        user: AdminUser,
        username: str | None = None,
        password_hash: str | None = None,
    ) -> AdminUser:
        """Update username and/or password hash."""
        with self.atomic():
            if username is not None:
                username = normalize_username(username)
                if username != user.username:
                    self._ensure_username_free(username, exclude_id=user.id)
                user.username = username
            if password_hash is not None:
                user.password_hash = password_hash
        return user

    def remove(self, user: AdminUser, acting_user_id: int | None) -> None:
        """Delete an admin and every session it holds.

        Args:
            user: Admin to delete.
            acting_user_id: Id of the admin performing the deletion.

        Raises:
            InvariantViolationError: If ``user`` is the last admin, or the
                acting admin is deleting their own account.
        """
        if self.count() <= 1:
            raise InvariantViolationError("Cannot delete the last admin user")
        if acting_user_id is not None and user.id == acting_user_id:
            raise InvariantViolationError(
                "Cannot delete your own account while logged in"
            )

        with self.atomic():
            AdminSessionRepository(self._session).delete_for_user(user.id)
            self._session.delete(user)

    def _ensure_username_free(self, username: str, exclude_id: int | None = None) -> None:
        existing = self.get_by_username(username)
        if existing is not None and existing.id != exclude_id:
            raise ConflictError("Username already exists", field="username")


class AdminSessionRepository(BaseRepository[AdminSession]):
    """Repository for persisted login sessions."""

    model = AdminSession
    entity_label = "session"

    def add(self, token: str, user_id: int, expires_at: datetime) -> AdminSession:
        """Persist a new session row."""
        return self.create(
            AdminSession(token=token, user_id=user_id, expires_at=expires_at)
        )

    def get_by_token(self, token: str) -> AdminSession | None:
        """Retrieve a session by its token."""
        return self.get_by_field("token", token)

    def delete_by_token(self, token: str) -> int:
        """Delete the session with ``token``; returns rows removed."""
        result = self._session.execute(
            delete(AdminSession).where(AdminSession.token == token)
        )
        return result.rowcount or 0

    def delete_for_user(self, user_id: int) -> int:
        """Delete every session owned by ``user_id``."""
        result = self._session.execute(
            delete(AdminSession).where(AdminSession.user_id == user_id)
        )
        return result.rowcount or 0

    def delete_expired(self, now: datetime) -> int:
        """Delete sessions whose expiry is before ``now``."""
        result = self._session.execute(
            delete(AdminSession)
            .where(AdminSession.expires_at < now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def count_expired(self, now: datetime) -> int:
        """Count sessions whose expiry is before ``now``."""
        stmt = (
            select(func.count())
            .select_from(AdminSession)
            .where(AdminSession.expires_at < now)
        )
        return self._session.execute(stmt).scalar() or 0
