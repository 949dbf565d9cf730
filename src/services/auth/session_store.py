"""Database-backed admin session store.

A session moves one way only: issued, valid while lookups succeed,
expired once its absolute expiry passes, absent once deleted. There
is no renewal; re-login is required after expiry.
"""

import re
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy.orm import Session

from src.database.models.admin import AdminSession
from src.database.repositories.admin import AdminSessionRepository
from src.settings import settings
from src.utils.logger import setup_logger

logger = setup_logger("services.auth.session_store")

TOKEN_BYTES = 32
TOKEN_PATTERN = re.compile(r"^[0-9a-f]{64}$")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass(frozen=True)
class IssuedSession:
    """Token and expiry handed back at login.

    Attributes:
        token: 64-character lowercase hex token.
        user_id: Owning admin.
        expires_at: Absolute expiry (UTC).
    """

    token: str
    user_id: int
    expires_at: datetime


class SessionStore:
    """Persisted token-to-admin mapping with absolute expiry.

    Attributes:
        _repo: Session row repository.
        _ttl: Session lifetime.
        _clock: Time source, injectable for tests.
    """

    def __init__(
        self,
        session: Session,
        ttl_days: int | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize store.

        Args:
            session: SQLAlchemy session instance.
            ttl_days: Session lifetime in days. Defaults to SESSION_TTL_DAYS.
            clock: Function returning the current aware datetime.
        """
        self._repo = AdminSessionRepository(session)
        days = ttl_days if ttl_days is not None else settings.security.session_ttl_days
        self._ttl = timedelta(days=days)
        self._clock = clock

    def create(self, user_id: int) -> IssuedSession:
        """Issue and persist a new session for ``user_id``."""
        token = secrets.token_hex(TOKEN_BYTES)
        expires_at = self._clock() + self._ttl
        self._repo.add(token=token, user_id=user_id, expires_at=expires_at)
        return IssuedSession(token=token, user_id=user_id, expires_at=expires_at)

    def lookup(self, token: str | None, purge_expired: bool = True) -> AdminSession | None:
        """Resolve a token to a live session.

        Missing or malformed tokens and expired sessions all resolve to
        None; nothing is raised.

        Args:
            token: Raw cookie value.
            purge_expired: Delete the row when it is found expired. Pass
                False where the caller must not write.

        Returns:
            The session row, or None if absent or expired.
        """
        if not token or not TOKEN_PATTERN.match(token):
            return None

        record = self._repo.get_by_token(token)
        if record is None:
            return None

        if self._clock() > as_utc(record.expires_at):
            if purge_expired:
                logger.info(f"Purged expired session for user {record.user_id}")
                self._repo.delete_by_token(token)
            return None
        return record

    def destroy(self, token: str | None) -> None:
        """Delete the session for ``token``; unknown tokens are ignored."""
        if not token or not TOKEN_PATTERN.match(token):
            return
        self._repo.delete_by_token(token)

    def purge_expired(self) -> int:
        """Delete every expired session row.

        Returns:
            Number of rows removed.
        """
        removed = self._repo.delete_expired(self._clock())
        if removed:
            logger.info(f"Purged {removed} expired session(s)")
        return removed

    def count_expired(self) -> int:
        """Number of expired rows awaiting deletion."""
        return self._repo.count_expired(self._clock())
