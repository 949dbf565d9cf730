"""Admin account management (create, update, delete)."""

from sqlalchemy.orm import Session

from src.database.models.admin import AdminUser
from src.database.repositories.admin import AdminUserRepository
from src.services.auth.passwords import PasswordHasher
from src.services.errors import InvalidInputError, NotFoundError
from src.settings import settings
from src.utils.logger import setup_logger

logger = setup_logger("services.auth.accounts")


class AccountService:
    """Validates and applies changes to admin accounts.

    Password length is enforced here, at the boundary; the hasher
    accepts any string.
    """

    def __init__(self, session: Session, hasher: PasswordHasher | None = None) -> None:
        self._users = AdminUserRepository(session)
        self._hasher = hasher or PasswordHasher()
        self._min_length = settings.security.password_min_length

    def list_users(self) -> list[AdminUser]:
        return self._users.list_users()

    def get(self, user_id: int) -> AdminUser:
        """Fetch an admin or raise NotFoundError."""
        user = self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def create(self, username: str | None, password: str | None) -> AdminUser:
        """Create an admin.

        Raises:
            InvalidInputError: Blank username or short password.
            ConflictError: Username taken.
        """
        if not password or len(password) < self._min_length:
            raise InvalidInputError(
                f"Password is required and must be at least {self._min_length} characters"
            )
        user = self._users.add(username, self._hasher.hash(password))
        logger.info(f"Created admin '{user.username}'")
        return user

    def update(
        self,
        user_id: int,
        username: str | None = None,
        password: str | None = None,
    ) -> AdminUser:
        """Change username and/or password.

        Raises:
            NotFoundError: Unknown user.
            InvalidInputError: Nothing to change, blank username or short
                password.
            ConflictError: Username taken.
        """
        user = self.get(user_id)
        if username is None and password is None:
            raise InvalidInputError("No fields to update")
        if username is not None and not username.strip():
            raise InvalidInputError("Username cannot be empty")

        password_hash = None
        if password is not None:
            if len(password) < self._min_length:
                raise InvalidInputError(
                    f"Password must be at least {self._min_length} characters"
                )
            password_hash = self._hasher.hash(password)

        self._users.change(user, username=username, password_hash=password_hash)
        logger.info(f"Updated admin {user.id} ('{user.username}')")
        return user

    def delete(self, user_id: int, acting_user_id: int | None) -> None:
        """Delete an admin and their sessions.

        Raises:
            NotFoundError: Unknown user.
            InvariantViolationError: Last admin, or self-deletion.
        """
        user = self.get(user_id)
        username = user.username
        self._users.remove(user, acting_user_id)
        logger.info(f"Deleted admin '{username}'")

    def hash_password(self, password: str | None) -> str:
        """Hash a password for manual seeding."""
        if not password:
            raise InvalidInputError("Password is required")
        return self._hasher.hash(password)
