"""
Token transport: where the authority puts, reads and clears the session id.

``CookieTokenTransport`` is the HTTP implementation. ``MemoryTokenTransport``
holds the token in-process for scripts and tests.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from fastapi import Request, Response


class TokenTransport(ABC):
    """Set, read and clear the opaque session token of the caller."""

    @abstractmethod
    def set_token(self, value: str, expires_at: datetime) -> None:
        pass

    @abstractmethod
    def get_token(self) -> Optional[str]:
        pass

    @abstractmethod
    def clear_token(self) -> None:
        pass


class CookieTokenTransport(TokenTransport):
    """
    Session token carried in an HttpOnly cookie.

    Reads come from the request, writes go to the response. A token set or
    cleared earlier in the same request is reflected by ``get_token``.
    """

    def __init__(
        self,
        request: Request,
        response: Response,
        cookie_name: str,
        secure: bool = True,
    ):
        self.request = request
        self.response = response
        self.cookie_name = cookie_name
        self.secure = secure
        self._pending: Optional[str] = None
        self._cleared = False

    def set_token(self, value: str, expires_at: datetime) -> None:
        # Cookie dates must be timezone-aware UTC
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)

        self.response.set_cookie(
            key=self.cookie_name,
            value=value,
            httponly=True,
            secure=self.secure,
            samesite="lax",
            expires=expires_at,
            path="/",
        )
        self._pending = value
        self._cleared = False

    def get_token(self) -> Optional[str]:
        if self._cleared:
            return None
        if self._pending:
            return self._pending
        return self.request.cookies.get(self.cookie_name) or None

    def clear_token(self) -> None:
        self.response.delete_cookie(
            key=self.cookie_name,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite="lax",
        )
        self._pending = None
        self._cleared = True


class MemoryTokenTransport(TokenTransport):
    """Token held in memory, standing in for a browser cookie jar."""

    def __init__(self, token: Optional[str] = None):
        self.token = token
        self.expires_at: Optional[datetime] = None

    def set_token(self, value: str, expires_at: datetime) -> None:
        self.token = value
        self.expires_at = expires_at

    def get_token(self) -> Optional[str]:
        return self.token

    def clear_token(self) -> None:
        self.token = None
        self.expires_at = None
