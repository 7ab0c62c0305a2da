"""
Engine and session factory.

SQLite connections get ``PRAGMA foreign_keys=ON`` so that deleting a user
cascades to its sessions, matching the behaviour of server databases.
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from sessionauth.core.settings import settings

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, **kwargs) -> Engine:
    """
    Create an engine for ``database_url``.

    Args:
        database_url: SQLAlchemy URL
        **kwargs: Passed through to ``create_engine``

    Returns:
        Configured Engine
    """
    if database_url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        engine = create_engine(database_url, connect_args=connect_args, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(database_url, pool_pre_ping=True, **kwargs)


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(bind: Optional[Engine] = None) -> None:
    """Create the user and session tables if they do not exist."""
    # Register the auth tables on Base.metadata
    from sessionauth.auth import models  # noqa: F401
    from sessionauth.models import Base

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    logger.info(f"Tables ready on {bind.url.render_as_string(hide_password=True)}")
