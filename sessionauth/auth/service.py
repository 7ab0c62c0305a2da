"""Authentication service - the session lifecycle for password login."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .models import AuthSession, utcnow
from .passwords import PasswordHasher
from .results import AuthError, AuthErrorKind, AuthResult
from .schemas import AuthPayload, PublicUser, SessionPayload, SessionView
from .store import AuthStore
from .transport import TokenTransport

logger = logging.getLogger(__name__)

SESSION_TTL = timedelta(hours=24)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"

OnSuccess = Optional[Callable[[PublicUser], None]]
OnError = Optional[Callable[[AuthError], None]]


class SessionAuthority:
    """
    Registers users, verifies credentials, and issues, validates and
    revokes sessions.

    Holds only its collaborators; build one per request (or per caller)
    with that caller's token transport. Every operation returns an
    ``AuthResult`` instead of raising for expected failures.

    Example:
        authority = SessionAuthority(AuthStore(db), PasswordHasher(), transport)
        result = authority.authenticate("a@x.com", "secret")
        if result.ok:
            print(result.data.user.id)
    """

    def __init__(
        self,
        store: AuthStore,
        hasher: PasswordHasher,
        transport: TokenTransport,
        session_ttl: timedelta = SESSION_TTL,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.hasher = hasher
        self.transport = transport
        self.session_ttl = session_ttl
        self.clock = clock

    def register(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        on_success: OnSuccess = None,
        on_error: OnError = None,
    ) -> AuthResult[AuthPayload]:
        """
        Create a user and sign them in.

        1. Reject an email that is already registered
        2. Hash the password
        3. Insert user and first session in one transaction
        4. Hand the session id to the token transport

        Args:
            email: Email, matched exactly
            password: Plaintext password
            name: Optional display name
            on_success: Called with the public user on success
            on_error: Called with the error on failure

        Returns:
            AuthResult with the public user, or DuplicateUser /
            InvalidCredentials / StoreError / TransportError
        """
        result = self._register(email, password, name)
        return self._notify(result, on_success, on_error)

    def _register(
        self, email: str, password: str, name: Optional[str]
    ) -> AuthResult[AuthPayload]:
        if not email or not password:
            return AuthResult.failure(
                AuthErrorKind.INVALID_CREDENTIALS, "Email and password are required"
            )

        try:
            if self.store.get_user_by_email(email) is not None:
                logger.warning("Sign-up rejected: email already registered")
                return AuthResult.failure(
                    AuthErrorKind.DUPLICATE_USER, "User already exists"
                )

            try:
                password_hash = self.hasher.hash(password)
            except ValueError as e:
                # e.g. lone surrogates that cannot be encoded as UTF-8
                logger.warning(f"Sign-up rejected: unusable password ({e.__class__.__name__})")
                return AuthResult.failure(
                    AuthErrorKind.INVALID_CREDENTIALS, "Password cannot be used"
                )

            user, session = self.store.create_user_with_session(
                email, password_hash, self._new_expiry(), name=name
            )
        except IntegrityError:
            # Lost a race with a concurrent sign-up for the same email
            logger.warning("Sign-up rejected: email registered concurrently")
            return AuthResult.failure(AuthErrorKind.DUPLICATE_USER, "User already exists")
        except SQLAlchemyError as e:
            logger.exception(f"Sign-up failed in store: {e}")
            return AuthResult.failure(AuthErrorKind.STORE_ERROR, "Could not create user")

        failed = self._issue_token(session)
        if failed is not None:
            return failed

        logger.info(f"Registered user {user.id}")
        return AuthResult.success(AuthPayload(user=PublicUser.model_validate(user)))

    def authenticate(
        self,
        email: str,
        password: str,
        on_success: OnSuccess = None,
        on_error: OnError = None,
    ) -> AuthResult[AuthPayload]:
        """
        Verify credentials and open a fresh session.

        Existing sessions of the user are left untouched, so one user may
        hold several concurrent sessions. Unknown email and wrong password
        produce the same InvalidCredentials message.
        """
        result = self._authenticate(email, password)
        return self._notify(result, on_success, on_error)

    def _authenticate(self, email: str, password: str) -> AuthResult[AuthPayload]:
        if not email or not password:
            return AuthResult.failure(
                AuthErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE
            )

        try:
            user = self.store.get_user_by_email(email)
            if user is None:
                logger.warning("Sign-in rejected: unknown email")
                return AuthResult.failure(
                    AuthErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE
                )

            if not self.hasher.verify(password, user.password):
                logger.warning(f"Sign-in rejected: wrong password for user {user.id}")
                return AuthResult.failure(
                    AuthErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE
                )

            session = self.store.create_session(user.id, self._new_expiry())
        except SQLAlchemyError as e:
            logger.exception(f"Sign-in failed in store: {e}")
            return AuthResult.failure(AuthErrorKind.STORE_ERROR, "Could not create session")

        failed = self._issue_token(session)
        if failed is not None:
            return failed

        logger.info(f"Signed in user {user.id}")
        return AuthResult.success(AuthPayload(user=PublicUser.model_validate(user)))

    def terminate(
        self,
        on_success: OnSuccess = None,
        on_error: OnError = None,
    ) -> AuthResult[AuthPayload]:
        """
        Revoke the caller's session and clear its token.

        A missing token fails with NoActiveSession before the store is
        touched. A session already removed by a concurrent request fails
        with SessionNotFound.
        """
        result = self._terminate()
        return self._notify(result, on_success, on_error)

    def _terminate(self) -> AuthResult[AuthPayload]:
        session_id = self.transport.get_token()
        if not session_id:
            return AuthResult.failure(AuthErrorKind.NO_ACTIVE_SESSION, "No active session")

        try:
            found = self.store.get_session_with_user(session_id)
            if found is None:
                return AuthResult.failure(
                    AuthErrorKind.SESSION_NOT_FOUND, "Session not found"
                )
            _, user = found

            if self.store.delete_session(session_id) == 0:
                return AuthResult.failure(
                    AuthErrorKind.SESSION_NOT_FOUND, "Session not found"
                )
        except SQLAlchemyError as e:
            logger.exception(f"Sign-out failed in store: {e}")
            return AuthResult.failure(AuthErrorKind.STORE_ERROR, "Could not end session")

        self.transport.clear_token()

        logger.info(f"Signed out user {user.id}")
        return AuthResult.success(AuthPayload(user=PublicUser.model_validate(user)))

    def validate(self) -> AuthResult[SessionPayload]:
        """
        Resolve the caller's token to its user and session.

        Expiry is checked lazily here: an expired session is deleted and
        its token cleared on the first access after expiry. Calling this
        repeatedly on a live session returns the same session and writes
        nothing.
        """
        session_id = self.transport.get_token()
        if not session_id:
            return AuthResult.failure(AuthErrorKind.NO_ACTIVE_SESSION, "No active session")

        try:
            found = self.store.get_session_with_user(session_id)
            if found is None:
                return AuthResult.failure(
                    AuthErrorKind.SESSION_NOT_FOUND, "Session not found"
                )
            session, user = found

            expired = self._is_expired(session.expires_at)
            if expired:
                self.store.delete_session(session_id)
        except SQLAlchemyError as e:
            logger.exception(f"Session lookup failed in store: {e}")
            return AuthResult.failure(AuthErrorKind.STORE_ERROR, "Could not load session")

        if expired:
            self.transport.clear_token()
            logger.info(f"Expired session removed for user {user.id}")
            return AuthResult.failure(AuthErrorKind.SESSION_EXPIRED, "Session is expired")

        return AuthResult.success(
            SessionPayload(
                user=PublicUser.model_validate(user),
                session=SessionView.model_validate(session),
            )
        )

    def purge_expired_sessions(self) -> AuthResult[int]:
        """
        Delete every expired session row.

        Not needed for correctness (validate expires lazily); keeps the
        session table small.

        Returns:
            AuthResult with the number of rows removed
        """
        try:
            removed = self.store.delete_expired_sessions(self.clock())
        except SQLAlchemyError as e:
            logger.exception(f"Session purge failed in store: {e}")
            return AuthResult.failure(AuthErrorKind.STORE_ERROR, "Could not purge sessions")

        logger.info(f"Purged {removed} expired sessions")
        return AuthResult.success(removed)

    def _new_expiry(self) -> datetime:
        return self.clock() + self.session_ttl

    def _is_expired(self, expires_at: datetime) -> bool:
        if expires_at.tzinfo is not None:
            expires_at = expires_at.astimezone(timezone.utc).replace(tzinfo=None)
        return expires_at <= self.clock()

    def _issue_token(self, session: AuthSession) -> Optional[AuthResult[AuthPayload]]:
        """Hand the session id to the transport, undoing the row if that fails."""
        try:
            self.transport.set_token(session.id, session.expires_at)
        except Exception as e:
            logger.exception(f"Could not issue session token: {e}")
            try:
                self.store.delete_session(session.id)
            except SQLAlchemyError:
                logger.exception("Could not remove session after token failure")
            return AuthResult.failure(
                AuthErrorKind.TRANSPORT_ERROR, "Could not issue session token"
            )

        return None

    @staticmethod
    def _notify(
        result: AuthResult[AuthPayload], on_success: OnSuccess, on_error: OnError
    ) -> AuthResult[AuthPayload]:
        if result.ok:
            if on_success:
                on_success(result.data.user)
        elif on_error:
            on_error(result.error)
        return result
