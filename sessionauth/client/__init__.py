"""Client mirror of the auth routes and a polling session cache."""

from .client import AuthClient, SessionFetchError
from .session_cache import SessionCache, SessionStatus

__all__ = ["AuthClient", "SessionFetchError", "SessionCache", "SessionStatus"]
