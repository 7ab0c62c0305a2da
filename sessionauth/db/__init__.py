"""
sessionauth Database Package

This package provides database connection and session management
using SQLAlchemy.

Modules:
- database: Engine configuration, SessionLocal factory and init_db
- deps: Database session dependency for FastAPI

Usage:
    from sessionauth.db.database import SessionLocal

    with SessionLocal() as session:
        # perform database operations
        pass

Environment Variables:
    DATABASE_URL: SQLAlchemy database connection URL
"""
