"""Domain exceptions raised by repositories and services.

Each error carries the HTTP status it maps to; the API layer renders
them as ``{"error": message}`` envelopes.
"""

from typing import Any


class ServiceError(Exception):
    """Base exception for expected, user-facing failures."""

    status_code: int = 500

    def __init__(self, message: str, **extra: Any) -> None:
        """Initialize error.

        Args:
            message: Human-readable message returned to the caller.
            **extra: Additional keys merged into the error envelope.
        """
        super().__init__(message)
        self.message = message
        self.extra = extra


class InvalidInputError(ServiceError):
    """Raised when input fails validation before any write."""

    status_code = 400


class NotAuthenticatedError(ServiceError):
    """Raised when a protected operation has no valid admin session."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized", **extra: Any) -> None:
        super().__init__(message, **extra)


class NotFoundError(ServiceError):
    """Raised when the targeted entity does not exist."""

    status_code = 404


class ConflictError(ServiceError):
    """Raised when a unique key (title, slug, name, username) is taken."""

    status_code = 409

    def __init__(self, message: str, field: str | None = None, **extra: Any) -> None:
        super().__init__(message, **extra)
        self.field = field
        if field:
            self.extra.setdefault("field", field)


class InvariantViolationError(ServiceError):
    """Raised when a business rule guard refuses the operation."""

    status_code = 400
