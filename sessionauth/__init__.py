"""
sessionauth

Password login for application backends with server-side sessions: users
and sessions live in a relational database, the client holds only an
HttpOnly cookie with the session id.

Packages:
- auth: session authority, persistence, cookie transport and FastAPI routes
- client: HTTP client mirror and a polling session cache
- core: Configuration
- db: Database engine and session management
- models: SQLAlchemy declarative base
- cli: Command-line management tools

Usage:
    # Run the API server
    uvicorn sessionauth.main:app --reload --port 8000

    # Create tables
    python -m sessionauth.cli.commands init-db

Environment Variables:
    DATABASE_URL: Database connection URL
    SESSION_TTL_HOURS: Session lifetime (default: 24)
    LOG_LEVEL: Logging level (default: INFO)
"""

__version__ = "0.1.0"
