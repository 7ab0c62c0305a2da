"""
Persistence for users and sessions.

Thin query layer over a SQLAlchemy session. Mutating methods commit on
success and roll back before re-raising ``SQLAlchemyError``; translating
those errors into results is the authority's job.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .models import AuthSession, User


class AuthStore:
    """User and session rows behind one database session."""

    def __init__(self, db: Session):
        self.db = db

    def get_user_by_email(self, email: str) -> Optional[User]:
        """
        Look up a user by email.

        Args:
            email: Email exactly as registered

        Returns:
            User if found, None otherwise
        """
        return self.db.query(User).filter(User.email == email).first()

    def get_session_with_user(
        self, session_id: str
    ) -> Optional[tuple[AuthSession, User]]:
        """
        Join a session row to its owning user.

        Returns:
            (session, user) if the session exists, None otherwise
        """
        row = (
            self.db.query(AuthSession, User)
            .join(User, AuthSession.user_id == User.id)
            .filter(AuthSession.id == session_id)
            .first()
        )
        if row is None:
            return None
        return row[0], row[1]

    def create_user_with_session(
        self,
        email: str,
        password_hash: str,
        expires_at: datetime,
        name: Optional[str] = None,
    ) -> tuple[User, AuthSession]:
        """
        Insert a user and its first session in a single transaction.

        Either both rows are committed or neither is.
        """
        try:
            user = User(name=name, email=email, password=password_hash)
            self.db.add(user)
            # Assigns user.id and surfaces the email uniqueness violation early
            self.db.flush()

            session = AuthSession(user_id=user.id, expires_at=expires_at)
            self.db.add(session)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        return user, session

    def create_session(self, user_id: str, expires_at: datetime) -> AuthSession:
        """Insert a new session row for an existing user."""
        try:
            session = AuthSession(user_id=user_id, expires_at=expires_at)
            self.db.add(session)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        return session

    def delete_session(self, session_id: str) -> int:
        """
        Delete a session row.

        Returns:
            Number of rows deleted (0 if it was already gone)
        """
        try:
            deleted = (
                self.db.query(AuthSession)
                .filter(AuthSession.id == session_id)
                .delete()
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        return deleted

    def delete_expired_sessions(self, now: datetime) -> int:
        """
        Remove every session whose expiry has been reached.

        Returns:
            Number of sessions removed
        """
        try:
            deleted = (
                self.db.query(AuthSession)
                .filter(AuthSession.expires_at <= now)
                .delete()
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        return deleted
