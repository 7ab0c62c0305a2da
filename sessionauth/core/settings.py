from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Required in production:
      - DATABASE_URL

    Optional:
      - SESSION_TTL_HOURS: lifetime of a session row and its cookie
      - SESSION_COOKIE_NAME: cookie carrying the session id
      - SESSION_COOKIE_SECURE: only disable for plain-http local development
      - BCRYPT_ROUNDS: bcrypt work factor
      - LOG_FILE: optional log file alongside console output
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./sessionauth.db"

    # Session settings
    session_ttl_hours: int = Field(
        default=24,
        validation_alias="SESSION_TTL_HOURS",
        description="Session expiration in hours (default 1 day)",
    )
    session_cookie_name: str = Field(
        default="sessionauth.session_id",
        validation_alias="SESSION_COOKIE_NAME",
    )
    session_cookie_secure: bool = Field(
        default=True,
        validation_alias="SESSION_COOKIE_SECURE",
        description="Send the session cookie over HTTPS only. MUST stay on in production.",
    )

    bcrypt_rounds: int = Field(
        default=10,
        validation_alias="BCRYPT_ROUNDS",
        description="bcrypt cost factor for password hashes",
    )

    # Routes are mounted under this prefix, one path segment per action
    api_prefix: str = "/api/auth"

    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    log_level: str = "INFO"
    log_file: Optional[Path] = Field(
        default=None,
        validation_alias="LOG_FILE",
        description="Also write logs to this file when set",
    )


settings = Settings()


def get_settings() -> Settings:
    """FastAPI dependency returning the process settings (override in tests)."""
    return settings
