"""SQLAlchemy models for users and their server-side sessions."""

import secrets
import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sessionauth.models import Base


def utcnow() -> datetime:
    """Current time as a naive UTC datetime (the form stored in the database)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_user_id() -> str:
    return uuid.uuid4().hex


def generate_session_id() -> str:
    return secrets.token_urlsafe(32)


class User(Base):
    """
    Identity record.

    Email is unique and compared exactly as stored (no case folding).
    """

    __tablename__ = "user"

    id: Mapped[str] = mapped_column(
        String(32),
        primary_key=True,
        default=generate_user_id,
    )
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    password: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="bcrypt hash, never returned to clients",
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    sessions: Mapped[list["AuthSession"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class AuthSession(Base):
    """
    Server-side session row.

    The primary key is the bearer value placed in the session cookie.
    Rows are deleted on sign-out, on expiry detection, or when the owning
    user is deleted.
    """

    __tablename__ = "session"
    __table_args__ = (
        Index("session_user_id_idx", "user_id"),
        Index("session_expires_idx", "expires_at"),
    )

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=generate_session_id,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )
    user_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
    )

    user: Mapped[User] = relationship(back_populates="sessions")
