"""Database session management for FastAPI.

Provides SQLAlchemy engine and session dependency injection.
"""

from collections.abc import Generator
from functools import lru_cache

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from src.settings import settings


def configure_sqlite(engine: Engine) -> Engine:
    """Attach SQLite connection hooks to an engine.

    Enables foreign key enforcement (needed for ON DELETE CASCADE) and
    lets SQLAlchemy own transaction boundaries so SAVEPOINTs work with
    the pysqlite driver.

    Args:
        engine: Engine bound to a SQLite URL.

    Returns:
        The same engine, for chaining.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _connection_record) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")

    return engine


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Get cached SQLAlchemy engine.

    Returns:
        Configured Engine instance with connection pooling.
    """
    db = settings.database
    if db.is_sqlite:
        engine = create_engine(
            db.sync_url,
            connect_args={"check_same_thread": False},
        )
        return configure_sqlite(engine)

    return create_engine(
        db.sync_url,
        pool_size=db.pool_size,
        max_overflow=db.pool_overflow,
        pool_timeout=db.pool_timeout,
        pool_pre_ping=True,
    )


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker[Session]:
    """Get cached session factory.

    Returns:
        Configured sessionmaker instance.
    """
    return sessionmaker(
        bind=get_engine(),
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency for database sessions.

    The request's work is committed once the endpoint returns and
    rolled back if it raised.

    Yields:
        Database session, automatically closed after request.
    """
    session_factory = get_session_factory()
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
