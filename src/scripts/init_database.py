"""Initialize WhutMovie database schema.

Creates all tables defined in SQLAlchemy models and seeds
the first admin account and the default genre list.

Usage:
    python -m src.scripts.init_database
    python -m src.scripts.init_database --drop  # Drop and recreate
    python -m src.scripts.init_database --seed  # Include seed data
    python -m src.scripts.init_database --check # Connection + table list only
"""

import argparse
import sys

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.api.database import get_engine, get_session_factory
from src.database.models import Base
from src.database.repositories.admin import AdminUserRepository, normalize_username
from src.database.repositories.genre import GenreRepository
from src.services.auth.passwords import PasswordHasher
from src.settings import settings
from src.utils.logger import setup_logger

logger = setup_logger("scripts.init_database")

DEFAULT_GENRES = [
    "Action",
    "Adventure",
    "Animation",
    "Comedy",
    "Crime",
    "Documentary",
    "Drama",
    "Fantasy",
    "Horror",
    "Mystery",
    "Romance",
    "Sci-Fi",
    "Thriller",
    "Western",
]


class SeedConfigurationError(RuntimeError):
    """Raised when seeding is requested without the required settings."""


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        description="Initialize WhutMovie database schema",
    )
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop existing tables before creating",
    )
    parser.add_argument(
        "--seed",
        action="store_true",
        help="Seed the admin account and default genres after creation",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only check connection, don't modify schema",
    )
    return parser.parse_args(argv)


def drop_tables(engine: Engine) -> None:
    """Drop all tables in the schema."""
    logger.info("Dropping existing tables...")
    Base.metadata.drop_all(bind=engine)


def create_tables(engine: Engine) -> None:
    """Create all tables from SQLAlchemy models."""
    logger.info("Creating tables...")
    Base.metadata.create_all(bind=engine)


def seed_admin(
    session: Session,
    hasher: PasswordHasher | None = None,
) -> str:
    """Create or reset the seeded admin from ADMIN_USERNAME/ADMIN_PASSWORD.

    There is no fallback password: seeding stops when none is configured.

    Args:
        session: Open database session.
        hasher: Password hasher (defaults to the configured cost).

    Returns:
        Username of the seeded admin.

    Raises:
        SeedConfigurationError: ADMIN_PASSWORD unset or too short.
    """
    seed = settings.seed
    min_length = settings.security.password_min_length
    if not seed.is_configured:
        raise SeedConfigurationError(
            "ADMIN_PASSWORD is not set; refusing to seed an admin with a default password"
        )
    if len(seed.admin_password) < min_length:
        raise SeedConfigurationError(
            f"ADMIN_PASSWORD must be at least {min_length} characters"
        )

    hasher = hasher or PasswordHasher()
    password_hash = hasher.hash(seed.admin_password)
    repo = AdminUserRepository(session)
    username = normalize_username(seed.admin_username)

    existing = repo.get_by_username(username)
    if existing is None:
        repo.add(username, password_hash)
        logger.info(f"Admin user created: {username}")
    else:
        repo.change(existing, password_hash=password_hash)
        logger.info(f"Admin user password reset: {username}")
    return username


def seed_genres(session: Session, names: list[str] | None = None) -> int:
    """Upsert the default genres by slug.

    Returns:
        Number of genres processed.
    """
    repo = GenreRepository(session)
    names = names or DEFAULT_GENRES
    for name in names:
        repo.upsert(name)
    logger.info(f"Seeded {len(names)} genres")
    return len(names)


def print_table_summary(engine: Engine) -> None:
    """Print summary of existing tables."""
    tables = sorted(inspect(engine).get_table_names())

    print("\n📊 Database Tables:")
    print("-" * 40)
    for table in tables:
        print(f"   • {table}")
    print("-" * 40)
    print(f"   Total: {len(tables)} tables")


def _print_banner() -> None:
    """Print the application banner with database connection info."""
    print("=" * 50)
    print("🎬 WhutMovie Database Initialization")
    print("=" * 50)
    if settings.database.is_sqlite:
        print(f"   URL: {settings.database.sync_url}")
    else:
        print(f"   Host: {settings.database.host}")
        print(f"   Port: {settings.database.port}")
        print(f"   Database: {settings.database.database}")
    print("=" * 50)


def _check_database_connection(engine: Engine) -> bool:
    """Check database connection.

    Returns:
        True if a trivial query succeeds.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Cannot connect to database: {e}")
        return False
    logger.info("Database connection successful")
    return True


def _perform_database_operations(engine: Engine, args: argparse.Namespace) -> int:
    """Perform the main database operations based on arguments.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    if args.check:
        print_table_summary(engine)
        return 0

    if args.drop:
        drop_tables(engine)

    create_tables(engine)

    if args.seed:
        logger.info("Seeding initial data...")
        with get_session_factory()() as session:
            try:
                seed_admin(session)
                seed_genres(session)
                session.commit()
            except SeedConfigurationError as e:
                session.rollback()
                logger.error(str(e))
                return 1

    print_table_summary(engine)
    logger.info("Database initialization complete")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    args = parse_args(argv)
    _print_banner()

    engine = get_engine()
    if not _check_database_connection(engine):
        return 1

    return _perform_database_operations(engine, args)


if __name__ == "__main__":
    sys.exit(main())
