"""
Base repository with generic CRUD operations.

Provides a reusable base class for all repositories with
common database operations.
"""

import re
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.database.models.base import Base
from src.services.errors import ConflictError, InvalidInputError
from src.utils.logger import setup_logger
from src.utils.slug import slugify

# Type alias for valid database field values
FieldValue = str | int | bool | datetime | None

# Generic type variable bound to Base model
ModelT = TypeVar("ModelT", bound=Base)

# "UNIQUE constraint failed: movies.title" (SQLite)
# "Key (title)=(Inception) already exists." (PostgreSQL)
_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: ([\w., ]+)")
_POSTGRES_UNIQUE = re.compile(r"Key \(([\w, ]+)\)=")

logger = setup_logger("database.repositories")


def conflicting_field(error: IntegrityError) -> str | None:
    """Extract the column named by a unique violation.

    For composite constraints the last column is returned
    (e.g. ``rank`` for ``(category_id, rank)``).

    Args:
        error: IntegrityError raised by the driver.

    Returns:
        Column name, or None when the message has no recognizable form.
    """
    message = str(error.orig)
    match = _SQLITE_UNIQUE.search(message) or _POSTGRES_UNIQUE.search(message)
    if not match:
        return None
    last = match.group(1).split(",")[-1].strip()
    return last.rsplit(".", 1)[-1]


def require_text(value: str | None, message: str) -> str:
    """Return a stripped required string or raise InvalidInputError."""
    if value is None or not str(value).strip():
        raise InvalidInputError(message)
    return str(value).strip()


def optional_text(value: str | None) -> str | None:
    """Return a stripped string, or None when blank."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def resolve_slug(explicit: str | None, source: str) -> str:
    """Use an explicit slug when given (normalized), else derive it.

    Raises:
        InvalidInputError: If nothing usable remains.
    """
    slug = slugify(explicit) if explicit and explicit.strip() else slugify(source)
    if not slug:
        raise InvalidInputError("Could not derive a slug from the given text")
    return slug


class BaseRepository(Generic[ModelT]):
    """Generic repository providing common CRUD operations.

    Attributes:
        model: SQLAlchemy model class.
        session: Database session.
    """

    model: type[ModelT]
    entity_label: str = "entity"

    def __init__(self, session: Session) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session instance.
        """
        self._session = session

    @property
    def session(self) -> Session:
        """Get the database session."""
        return self._session

    def get_by_id(self, entity_id: int) -> ModelT | None:
        """Retrieve entity by primary key.

        Args:
            entity_id: Primary key value.

        Returns:
            Entity instance or None if not found.
        """
        return self._session.get(self.model, entity_id)

    def get_by_field(self, field_name: str, value: FieldValue) -> ModelT | None:
        """Retrieve entity by a specific field value.

        Args:
            field_name: Name of the field to filter on.
            value: Value to match.

        Returns:
            Entity instance or None if not found.
        """
        field = getattr(self.model, field_name)
        stmt = select(self.model).where(field == value)
        return self._session.scalars(stmt).first()

    def get_by_id_or_slug(self, key: str | int) -> ModelT | None:
        """Resolve a path key: digits are tried as an id, then as a slug."""
        return self.first_by_key(select(self.model), key)

    def first_by_key(self, stmt: Select, key: str | int) -> ModelT | None:
        """Run ``stmt`` narrowed to one row by id or slug.

        Integer keys are ids only. Digit-only strings match an id first
        and fall back to the slug, so titles like "1917" stay reachable.
        """
        if isinstance(key, int):
            return self._session.scalars(stmt.where(self.model.id == key)).first()
        key = str(key)
        if key.isdigit():
            found = self._session.scalars(stmt.where(self.model.id == int(key))).first()
            if found is not None:
                return found
        return self._session.scalars(stmt.where(self.model.slug == key)).first()

    def count(self) -> int:
        """Count total number of entities.

        Returns:
            Total count.
        """
        stmt = select(func.count()).select_from(self.model)
        result = self._session.execute(stmt).scalar()
        return result or 0

    def create(self, entity: ModelT) -> ModelT:
        """Create a new entity.

        Args:
            entity: Entity instance to persist.

        Returns:
            Persisted entity with generated ID.

        Raises:
            ConflictError: If a unique constraint is violated.
        """
        with self.atomic():
            self._session.add(entity)
        return entity

    def delete(self, entity: ModelT) -> None:
        """Delete an entity.

        Args:
            entity: Entity instance to delete.
        """
        self._session.delete(entity)
        self._session.flush()

    def _ensure_unique(
        self,
        field_name: str,
        value: FieldValue,
        exclude_id: int | None = None,
    ) -> None:
        """Raise ConflictError if another row already holds ``value``."""
        existing = self.get_by_field(field_name, value)
        if existing is not None and existing.id != exclude_id:
            raise ConflictError(
                f'A {self.entity_label} with {field_name} "{value}" already exists',
                field=field_name,
            )

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Run a block of mutations inside a savepoint.

        Changes made in the block are flushed when it exits. On failure
        only the savepoint is rolled back, so the outer transaction stays
        usable. Make the mutations inside the block: begin_nested()
        flushes anything already pending before the savepoint opens.

        Raises:
            ConflictError: If a unique constraint is violated.
        """
        try:
            with self._session.begin_nested():
                yield
        except IntegrityError as e:
            field = conflicting_field(e)
            logger.warning(f"Unique violation on {self.entity_label}.{field}")
            raise ConflictError(
                f"A {self.entity_label} with this {field or 'value'} already exists",
                field=field,
            ) from None
