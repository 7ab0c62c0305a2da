"""
CLI management commands for sessionauth.

Usage:
    python -m sessionauth.cli.commands init-db
    python -m sessionauth.cli.commands purge-sessions
"""
from __future__ import annotations

import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from sessionauth.auth.passwords import PasswordHasher
from sessionauth.auth.service import SessionAuthority
from sessionauth.auth.store import AuthStore
from sessionauth.auth.transport import MemoryTokenTransport
from sessionauth.db.database import SessionLocal, init_db

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def cmd_init_db() -> None:
    """Create the user and session tables."""
    try:
        init_db()
    except SQLAlchemyError as e:
        logger.error(f"Table creation failed: {e}")
        sys.exit(1)


def cmd_purge_sessions() -> None:
    """Delete sessions whose expiry has passed."""
    db = SessionLocal()

    try:
        # No caller token is involved in a sweep
        authority = SessionAuthority(AuthStore(db), PasswordHasher(), MemoryTokenTransport())
        result = authority.purge_expired_sessions()
        if not result.ok:
            logger.error(f"Purge failed: {result.error.message}")
            sys.exit(1)

        logger.info(f"Removed {result.data} expired sessions")

    finally:
        db.close()


def main(argv: list[str] | None = None) -> None:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        description="sessionauth management commands",
        prog="python -m sessionauth.cli.commands"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "init-db",
        help="Create the user and session tables"
    )
    subparsers.add_parser(
        "purge-sessions",
        help="Delete expired sessions"
    )

    args = parser.parse_args(argv)

    if args.command == "init-db":
        cmd_init_db()
    elif args.command == "purge-sessions":
        cmd_purge_sessions()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
