"""Password login with server-side sessions carried in an HttpOnly cookie."""

from .router import router as auth_router
from .deps import get_authority, get_current_user, get_current_user_optional
from .results import AuthError, AuthErrorKind, AuthResult
from .schemas import PublicUser, SessionPayload, SessionView
from .service import SessionAuthority

__all__ = [
    "auth_router",
    "get_authority",
    "get_current_user",
    "get_current_user_optional",
    "AuthError",
    "AuthErrorKind",
    "AuthResult",
    "PublicUser",
    "SessionPayload",
    "SessionView",
    "SessionAuthority",
]
