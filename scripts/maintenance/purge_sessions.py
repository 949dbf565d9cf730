#!/usr/bin/env python3
"""Delete expired admin sessions.

Lookups that are not allowed to write leave expired rows behind;
this script removes them.
"""

import argparse
import sys

from src.api.database import get_session_factory
from src.services.auth.session_store import SessionStore
from src.utils.logger import setup_logger

logger = setup_logger("scripts.purge_sessions")


def purge(dry_run: bool) -> int:
    """Delete (or count, with ``dry_run``) expired sessions.

    Returns:
        Number of expired sessions found or removed.
    """
    with get_session_factory()() as session:
        store = SessionStore(session)
        if dry_run:
            expired = store.count_expired()
            logger.info(f"dry_run: {expired} expired session(s) to delete")
            return expired

        removed = store.purge_expired()
        session.commit()
        return removed


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Purge expired admin sessions")
    parser.add_argument("--dry-run", action="store_true", help="Count without deleting")
    args = parser.parse_args(argv)

    logger.info(f"purge_sessions_started: dry_run={args.dry_run}")
    count = purge(args.dry_run)
    logger.info(f"purge_sessions_completed: sessions={count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
