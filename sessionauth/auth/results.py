"""
Result envelope returned by every authority operation.

Expected failures (duplicate email, bad password, missing session) are
values, not exceptions: callers branch on ``result.ok`` instead of catching.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class AuthErrorKind(str, Enum):
    DUPLICATE_USER = "DuplicateUser"
    INVALID_CREDENTIALS = "InvalidCredentials"
    NO_ACTIVE_SESSION = "NoActiveSession"
    SESSION_NOT_FOUND = "SessionNotFound"
    SESSION_EXPIRED = "SessionExpired"
    STORE_ERROR = "StoreError"
    TRANSPORT_ERROR = "TransportError"
    # Error relayed from the server by the client mirror
    CLIENT = "Client"


@dataclass(frozen=True)
class AuthError:
    kind: AuthErrorKind
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class AuthResult(Generic[T]):
    """
    Two-armed outcome: exactly one of ``data`` or ``error`` is set.

    Use ``AuthResult.success(...)`` and ``AuthResult.failure(...)`` rather
    than the constructor.
    """

    data: Optional[T] = None
    error: Optional[AuthError] = None

    def __post_init__(self):
        if (self.data is None) == (self.error is None):
            raise ValueError("AuthResult needs exactly one of data or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: T) -> "AuthResult[T]":
        return cls(data=data)

    @classmethod
    def failure(cls, kind: AuthErrorKind, message: str) -> "AuthResult[T]":
        return cls(error=AuthError(kind=kind, message=message))
