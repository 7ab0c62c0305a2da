"""
Tests for the session authority.

Tests cover:
- Registration, duplicate emails and exact-match email lookup
- Sign-in with good and bad credentials
- Session validation, lazy expiry and sign-out
- Several concurrent sessions per user and racing revocations
- Success/error callbacks and token issuance failures
"""
from datetime import timedelta
from unittest.mock import MagicMock

from sessionauth.auth.models import AuthSession, User
from sessionauth.auth.results import AuthErrorKind
from sessionauth.auth.service import INVALID_CREDENTIALS_MESSAGE, SessionAuthority
from sessionauth.auth.store import AuthStore
from sessionauth.auth.transport import MemoryTokenTransport


def session_count(db) -> int:
    return db.query(AuthSession).count()


class TestRegister:
    """Tests for register."""

    def test_creates_user_and_session(self, authority, transport, db):
        """Should insert a user, a session and issue the token."""
        result = authority.register("a@x.com", "secret", name="Ada")

        assert result.ok
        assert result.error is None
        assert result.data.user.email == "a@x.com"
        assert result.data.user.name == "Ada"
        assert transport.token is not None
        assert db.query(User).count() == 1
        assert session_count(db) == 1

        session = db.get(AuthSession, transport.token)
        assert session.user_id == result.data.user.id

    def test_public_user_has_no_password(self, authority):
        """Should never expose the password hash."""
        result = authority.register("a@x.com", "secret")

        dumped = result.data.user.model_dump()
        assert set(dumped) == {"id", "name", "email"}

    def test_password_is_hashed(self, authority, db):
        """Should store a bcrypt hash, not the plaintext."""
        authority.register("a@x.com", "secret")

        user = db.query(User).first()
        assert user.password != "secret"
        assert user.password.startswith("$2")

    def test_session_expires_after_ttl(self, authority, transport, clock):
        """Token and session expire 24 hours after sign-up."""
        authority.register("a@x.com", "secret")

        assert transport.expires_at == clock.now + timedelta(hours=24)

    def test_duplicate_email_fails(self, authority, db):
        """Second registration with the same email should fail."""
        first = authority.register("a@x.com", "secret")
        second = authority.register("a@x.com", "other")

        assert first.ok
        assert not second.ok
        assert second.data is None
        assert second.error.kind == AuthErrorKind.DUPLICATE_USER
        assert db.query(User).filter(User.email == "a@x.com").count() == 1

    def test_email_match_is_case_sensitive(self, authority, db):
        """Emails differing only in case are distinct users."""
        assert authority.register("a@x.com", "secret").ok
        assert authority.register("A@X.com", "secret").ok

        assert db.query(User).count() == 2

    def test_empty_credentials_rejected(self, authority, db):
        """Direct callers passing empty values get a failure, not a crash."""
        result = authority.register("", "secret")

        assert result.error.kind == AuthErrorKind.INVALID_CREDENTIALS
        assert db.query(User).count() == 0

    def test_unencodable_password_rejected(self, authority, transport, db):
        """A password that is not valid UTF-8 is refused, not raised."""
        result = authority.register("a@x.com", "\ud800")

        assert result.error.kind == AuthErrorKind.INVALID_CREDENTIALS
        assert transport.token is None
        assert db.query(User).count() == 0

    def test_failed_session_insert_leaves_no_user(self, authority, transport, db, engine):
        """User and first session commit together or not at all."""
        AuthSession.__table__.drop(engine)

        result = authority.register("a@x.com", "secret")

        assert result.error.kind == AuthErrorKind.STORE_ERROR
        assert transport.token is None
        assert db.query(User).count() == 0

    def test_user_ids_are_unique(self, authority, make_authority):
        """Each registration gets its own identifier."""
        first = authority.register("a@x.com", "secret")
        second = make_authority(MemoryTokenTransport()).register("b@x.com", "secret")

        assert first.data.user.id != second.data.user.id


class TestAuthenticate:
    """Tests for authenticate."""

    def test_valid_credentials(self, authority, make_authority):
        """Should open a new session for valid credentials."""
        authority.register("a@x.com", "secret")

        other = MemoryTokenTransport()
        result = make_authority(other).authenticate("a@x.com", "secret")

        assert result.ok
        assert result.data.user.email == "a@x.com"
        assert other.token is not None

    def test_wrong_password(self, authority, make_authority):
        """Wrong password should fail without issuing a token."""
        authority.register("a@x.com", "secret")

        other = MemoryTokenTransport()
        result = make_authority(other).authenticate("a@x.com", "wrong")

        assert result.error.kind == AuthErrorKind.INVALID_CREDENTIALS
        assert other.token is None

    def test_unknown_email_same_message(self, authority):
        """Unknown email and wrong password are indistinguishable."""
        authority.register("a@x.com", "secret")

        unknown = authority.authenticate("nobody@x.com", "secret")
        wrong = authority.authenticate("a@x.com", "wrong")

        assert unknown.error.kind == AuthErrorKind.INVALID_CREDENTIALS
        assert unknown.error.message == wrong.error.message == INVALID_CREDENTIALS_MESSAGE

    def test_email_lookup_is_exact(self, authority):
        """Sign-in with different case does not match the registered email."""
        authority.register("a@x.com", "secret")

        result = authority.authenticate("A@x.com", "secret")

        assert result.error.kind == AuthErrorKind.INVALID_CREDENTIALS

    def test_two_sign_ins_give_two_sessions(self, authority, make_authority, db):
        """Sequential sign-ins create distinct sessions, both valid."""
        authority.register("a@x.com", "secret")

        first_token = MemoryTokenTransport()
        second_token = MemoryTokenTransport()
        first = make_authority(first_token)
        second = make_authority(second_token)

        assert first.authenticate("a@x.com", "secret").ok
        assert second.authenticate("a@x.com", "secret").ok

        assert first_token.token != second_token.token
        assert session_count(db) == 3
        assert first.validate().data.session.id == first_token.token
        assert second.validate().data.session.id == second_token.token

    def test_sign_in_does_not_revoke_existing_sessions(self, authority, make_authority):
        """Earlier sessions stay valid after a new sign-in."""
        authority.register("a@x.com", "secret")

        make_authority(MemoryTokenTransport()).authenticate("a@x.com", "secret")

        assert authority.validate().ok


class TestValidate:
    """Tests for validate."""

    def test_after_register(self, authority, transport):
        """Should return the user and the issued session."""
        registered = authority.register("a@x.com", "secret")

        result = authority.validate()

        assert result.ok
        assert result.data.user == registered.data.user
        assert result.data.session.id == transport.token
        assert result.data.session.user_id == registered.data.user.id

    def test_is_idempotent(self, authority, db):
        """Repeated validation surfaces the same session and writes nothing."""
        authority.register("a@x.com", "secret")

        first = authority.validate()
        second = authority.validate()

        assert first.data.session == second.data.session
        assert session_count(db) == 1

    def test_no_token(self, authority):
        """Without a token the caller has no active session."""
        result = authority.validate()

        assert result.error.kind == AuthErrorKind.NO_ACTIVE_SESSION

    def test_unknown_token(self, make_authority):
        """A token with no matching row is SessionNotFound."""
        result = make_authority(MemoryTokenTransport("missing")).validate()

        assert result.error.kind == AuthErrorKind.SESSION_NOT_FOUND

    def test_expired_session_is_removed(self, authority, transport, clock, db):
        """Expiry deletes the row, clears the token, then NoActiveSession."""
        authority.register("a@x.com", "secret")
        session_id = transport.token

        clock.advance(hours=25)
        expired = authority.validate()

        assert expired.error.kind == AuthErrorKind.SESSION_EXPIRED
        assert transport.token is None
        assert db.query(AuthSession).filter(AuthSession.id == session_id).first() is None

        again = authority.validate()
        assert again.error.kind == AuthErrorKind.NO_ACTIVE_SESSION

    def test_expires_exactly_at_expiry(self, authority, clock):
        """A session is no longer valid once its expiry instant is reached."""
        authority.register("a@x.com", "secret")

        clock.advance(hours=24)

        assert authority.validate().error.kind == AuthErrorKind.SESSION_EXPIRED

    def test_valid_just_before_expiry(self, authority, clock):
        authority.register("a@x.com", "secret")

        clock.advance(hours=23, minutes=59)

        assert authority.validate().ok

    def test_expired_row_persists_until_touched(self, authority, clock, db):
        """Expiry is lazy: nothing is deleted until the session is accessed."""
        authority.register("a@x.com", "secret")

        clock.advance(days=2)

        assert session_count(db) == 1

    def test_session_removed_with_user(self, authority, db):
        """Deleting a user cascades to its sessions."""
        authority.register("a@x.com", "secret")

        db.query(User).filter(User.email == "a@x.com").delete()
        db.commit()

        assert session_count(db) == 0
        assert authority.validate().error.kind == AuthErrorKind.SESSION_NOT_FOUND


class TestTerminate:
    """Tests for terminate."""

    def test_signs_out(self, authority, transport, db):
        """Should delete the session, clear the token and return the user."""
        registered = authority.register("a@x.com", "secret")

        result = authority.terminate()

        assert result.ok
        assert result.data.user == registered.data.user
        assert transport.token is None
        assert session_count(db) == 0

    def test_validate_after_sign_out(self, authority):
        """After sign-out the cleared token means NoActiveSession."""
        authority.register("a@x.com", "secret")
        authority.terminate()

        result = authority.validate()

        assert result.error.kind == AuthErrorKind.NO_ACTIVE_SESSION

    def test_no_token_does_not_touch_store(self, transport, hasher):
        """Missing token fails before any store access."""
        store = MagicMock()
        result = SessionAuthority(store, hasher, transport).terminate()

        assert result.error.kind == AuthErrorKind.NO_ACTIVE_SESSION
        store.get_session_with_user.assert_not_called()
        store.delete_session.assert_not_called()

    def test_racing_sign_outs(self, authority, transport, make_authority):
        """Second revocation of the same session sees SessionNotFound."""
        authority.register("a@x.com", "secret")
        other = make_authority(MemoryTokenTransport(transport.token))

        assert authority.terminate().ok
        result = other.terminate()

        assert result.error.kind == AuthErrorKind.SESSION_NOT_FOUND

    def test_sign_out_leaves_other_sessions(self, authority, make_authority):
        """Only the caller's session is revoked."""
        authority.register("a@x.com", "secret")
        other = make_authority(MemoryTokenTransport())
        other.authenticate("a@x.com", "secret")

        authority.terminate()

        assert other.validate().ok

    def test_delete_race_reports_not_found(self, transport, hasher):
        """Row found but already gone at delete time is SessionNotFound."""
        store = MagicMock()
        store.get_session_with_user.return_value = (MagicMock(), MagicMock())
        store.delete_session.return_value = 0
        transport.token = "abc"

        result = SessionAuthority(store, hasher, transport).terminate()

        assert result.error.kind == AuthErrorKind.SESSION_NOT_FOUND
        assert transport.token == "abc"


class TestCallbacks:
    """Tests for on_success / on_error callbacks."""

    def test_on_success_receives_user(self, authority):
        on_success = MagicMock()
        on_error = MagicMock()

        result = authority.register("a@x.com", "secret", on_success=on_success, on_error=on_error)

        on_success.assert_called_once_with(result.data.user)
        on_error.assert_not_called()

    def test_on_error_receives_error(self, authority):
        on_success = MagicMock()
        on_error = MagicMock()

        result = authority.authenticate(
            "nobody@x.com", "secret", on_success=on_success, on_error=on_error
        )

        on_error.assert_called_once_with(result.error)
        on_success.assert_not_called()


class TestTokenIssueFailure:
    """Session row inserted but the token could not be delivered."""

    def test_returns_transport_error_and_removes_session(self, db, hasher, clock):
        transport = MagicMock()
        transport.set_token.side_effect = RuntimeError("headers already sent")
        authority = SessionAuthority(AuthStore(db), hasher, transport, clock=clock)

        result = authority.register("a@x.com", "secret")

        assert result.error.kind == AuthErrorKind.TRANSPORT_ERROR
        assert session_count(db) == 0


class TestPurgeExpiredSessions:
    """Tests for purge_expired_sessions."""

    def test_removes_only_expired(self, authority, make_authority, clock, db):
        authority.register("a@x.com", "secret")
        clock.advance(hours=12)
        make_authority(MemoryTokenTransport()).authenticate("a@x.com", "secret")
        clock.advance(hours=13)

        result = authority.purge_expired_sessions()

        assert result.ok
        assert result.data == 1
        assert session_count(db) == 1

    def test_nothing_to_purge(self, authority):
        result = authority.purge_expired_sessions()

        assert result.ok
        assert result.data == 0


class TestEndToEnd:
    """Full lifecycle through one caller's token."""

    def test_lifecycle(self, authority):
        registered = authority.register("a@x.com", "secret")
        assert registered.ok
        assert registered.data.user.email == "a@x.com"

        wrong = authority.authenticate("a@x.com", "wrong")
        assert wrong.error.kind == AuthErrorKind.INVALID_CREDENTIALS

        signed_in = authority.authenticate("a@x.com", "secret")
        assert signed_in.ok
        token = authority.transport.get_token()

        current = authority.validate()
        assert current.ok
        assert current.data.user.id == registered.data.user.id
        assert current.data.session.id == token

        assert authority.terminate().ok

        assert authority.validate().error.kind == AuthErrorKind.NO_ACTIVE_SESSION
