"""
HTTP client for the auth routes.

Mirrors the authority's operations over the wire. The underlying
``httpx.Client`` keeps the session cookie between calls, the same way a
browser would.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from sessionauth.auth import actions
from sessionauth.auth.results import AuthErrorKind, AuthResult
from sessionauth.auth.schemas import AuthPayload, SessionPayload, SessionResponse
from sessionauth.auth.service import OnError, OnSuccess

from .session_cache import SessionCache

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "/api/auth"


class SessionFetchError(Exception):
    """Raised when get-session cannot be fetched."""

    pass


class AuthClient:
    """
    Client for a sessionauth server.

    Example:
        with AuthClient("https://app.example.org") as client:
            result = client.sign_in("a@x.com", "secret")
            if result.ok:
                cache = client.session_cache()
                cache.refresh()
    """

    def __init__(
        self,
        base_url: str = "",
        prefix: str = DEFAULT_PREFIX,
        http: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        """
        Args:
            base_url: Server origin; ignored when ``http`` is given
            prefix: Path the auth routes are mounted on
            http: Preconfigured client (e.g. a test client)
            timeout: Request timeout in seconds
        """
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.prefix = prefix.rstrip("/")

    def __enter__(self) -> "AuthClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.http.close()

    def _url(self, action: str) -> str:
        return f"{self.prefix}/{action}"

    def _post(
        self,
        action: str,
        payload: Optional[dict[str, Any]],
        on_success: OnSuccess,
        on_error: OnError,
    ) -> AuthResult[AuthPayload]:
        result = self._send(action, payload)
        if result.ok:
            if on_success:
                on_success(result.data.user)
        elif on_error:
            on_error(result.error)
        return result

    def _send(
        self, action: str, payload: Optional[dict[str, Any]]
    ) -> AuthResult[AuthPayload]:
        try:
            response = self.http.post(self._url(action), json=payload)
        except httpx.HTTPError as e:
            logger.warning(f"{action} request failed: {e}")
            return AuthResult.failure(AuthErrorKind.CLIENT, f"Request failed: {e}")

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {}

        if response.is_error or body.get("error"):
            message = body.get("error") or f"Request failed: {response.status_code}"
            return AuthResult.failure(AuthErrorKind.CLIENT, message)

        return AuthResult.success(AuthPayload.model_validate(body))

    def sign_up(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        on_success: OnSuccess = None,
        on_error: OnError = None,
    ) -> AuthResult[AuthPayload]:
        """Register and start a session."""
        payload = {"name": name, "email": email, "password": password}
        return self._post(actions.SIGN_UP, payload, on_success, on_error)

    def sign_in(
        self,
        email: str,
        password: str,
        on_success: OnSuccess = None,
        on_error: OnError = None,
    ) -> AuthResult[AuthPayload]:
        """Start a new session with existing credentials."""
        payload = {"email": email, "password": password}
        return self._post(actions.SIGN_IN, payload, on_success, on_error)

    def sign_out(
        self,
        on_success: OnSuccess = None,
        on_error: OnError = None,
    ) -> AuthResult[AuthPayload]:
        """End the current session."""
        return self._post(actions.SIGN_OUT, None, on_success, on_error)

    def get_session(self) -> Optional[SessionPayload]:
        """
        Fetch the current session.

        Returns:
            The user and session, or None when signed out

        Raises:
            SessionFetchError: On a transport failure or a non-2xx answer
        """
        try:
            response = self.http.get(self._url(actions.GET_SESSION))
        except httpx.HTTPError as e:
            raise SessionFetchError(f"Failed to fetch session: {e}") from e

        if response.is_error:
            raise SessionFetchError(f"Failed to fetch session: {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise SessionFetchError("Failed to fetch session: invalid JSON") from e

        if isinstance(body, dict) and body.get("error"):
            raise SessionFetchError(body["error"])

        try:
            return SessionResponse.model_validate(body).session
        except ValidationError as e:
            raise SessionFetchError("Failed to fetch session: unexpected response") from e

    def session_cache(self) -> SessionCache:
        """A cache that re-fetches the session on ``refresh()``."""
        return SessionCache(self.get_session)
