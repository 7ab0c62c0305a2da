"""
sessionauth Core Package

Configuration shared by the API, the CLI and the client mirror.

Modules:
- settings: pydantic-settings based application settings

Environment Variables:
    DATABASE_URL: SQLAlchemy database connection URL
    SESSION_TTL_HOURS: Session lifetime in hours
    SESSION_COOKIE_NAME: Name of the session cookie
"""
