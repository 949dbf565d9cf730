"""Admin accounts and their login sessions."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.models.base import Base, TimestampMixin


class AdminUser(Base, TimestampMixin):
    """Back-office account allowed to edit the catalog.

    Attributes:
        id: Primary key.
        username: Unique lowercase login name.
        password_hash: bcrypt hash, never the plaintext.
        sessions: Active and not-yet-purged login sessions.
    """

    __tablename__ = "admin_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    sessions: Mapped[list[AdminSession]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<AdminUser(id={self.id}, username='{self.username}')>"


class AdminSession(Base):
    """Persisted proof of a successful login.

    Attributes:
        id: Primary key.
        token: 64-character hex token stored in the session cookie.
        user_id: Owning admin.
        expires_at: Absolute expiry instant (UTC).
        created_at: Issuance timestamp.
    """

    __tablename__ = "admin_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    token: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("admin_users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    user: Mapped[AdminUser] = relationship(back_populates="sessions")

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<AdminSession(id={self.id}, user_id={self.user_id})>"
