"""FastAPI dependencies for authentication."""

from datetime import timedelta
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from sessionauth.core.settings import Settings, get_settings
from sessionauth.db.deps import get_db

from .passwords import PasswordHasher
from .schemas import PublicUser
from .service import SessionAuthority
from .store import AuthStore
from .transport import CookieTokenTransport


def get_token_transport(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings),
) -> CookieTokenTransport:
    """Session cookie bound to the current request and response."""
    return CookieTokenTransport(
        request,
        response,
        cookie_name=settings.session_cookie_name,
        secure=settings.session_cookie_secure,
    )


def get_authority(
    db: Session = Depends(get_db),
    transport: CookieTokenTransport = Depends(get_token_transport),
    settings: Settings = Depends(get_settings),
) -> SessionAuthority:
    """Per-request authority wired to the database and the session cookie."""
    return SessionAuthority(
        AuthStore(db),
        PasswordHasher(rounds=settings.bcrypt_rounds),
        transport,
        session_ttl=timedelta(hours=settings.session_ttl_hours),
    )


async def get_current_user(
    authority: SessionAuthority = Depends(get_authority),
) -> PublicUser:
    """
    FastAPI dependency to get the user behind the session cookie.

    Returns:
        PublicUser for the authenticated user

    Raises:
        HTTPException 401: If there is no valid session
    """
    result = await run_in_threadpool(authority.validate)
    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.error.message,
        )
    return result.data.user


async def get_current_user_optional(
    authority: SessionAuthority = Depends(get_authority),
) -> Optional[PublicUser]:
    """
    Optional version of get_current_user.

    Returns None instead of raising an exception if not authenticated.
    """
    result = await run_in_threadpool(authority.validate)
    if not result.ok:
        return None
    return result.data.user


# Type aliases for cleaner dependency injection
CurrentUser = Annotated[PublicUser, Depends(get_current_user)]
OptionalUser = Annotated[Optional[PublicUser], Depends(get_current_user_optional)]
