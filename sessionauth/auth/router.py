"""
Authentication API router.

One POST route and one GET route keyed by the action path segment:

    POST {prefix}/sign-up      {name?, email, password} -> {user} | {error}
    POST {prefix}/sign-in      {email, password}        -> {user} | {error}
    POST {prefix}/sign-out                              -> {user} | {error}
    POST {prefix}/get-session                           -> {session}
    GET  {prefix}/get-session                           -> {session}

Authority failures answer 400 with the failure message. get-session never
fails: no valid session is ``{"session": null}``. Faults inside the
adapter itself (unparseable JSON, unexpected exceptions) answer 500.
"""

import logging
from typing import Any, Awaitable, Callable

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from . import actions
from .deps import get_authority
from .results import AuthResult
from .schemas import (
    AuthPayload,
    ErrorResponse,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    UserResponse,
)
from .service import SessionAuthority

logger = logging.getLogger(__name__)

# Mounted under Settings.api_prefix by create_app
router = APIRouter(tags=["auth"])

CREDENTIALS_REQUIRED = "Email and password are required"

Handler = Callable[[Request, Response, SessionAuthority], Awaitable[dict]]


def _error(response: Response, message: str, status_code: int) -> dict:
    response.status_code = status_code
    return ErrorResponse(error=message).model_dump()


def _user_response(
    response: Response, result: AuthResult[AuthPayload], fallback: str
) -> dict:
    if not result.ok:
        return _error(
            response,
            result.error.message or fallback,
            status.HTTP_400_BAD_REQUEST,
        )
    return UserResponse(user=result.data.user).model_dump(mode="json")


async def _read_json(request: Request) -> Any:
    # Raises ValueError on a malformed body; handled as an adapter fault
    return await request.json()


async def handle_sign_up(
    request: Request, response: Response, authority: SessionAuthority
) -> dict:
    try:
        params = SignUpRequest.model_validate(await _read_json(request))
    except ValidationError:
        return _error(response, CREDENTIALS_REQUIRED, status.HTTP_400_BAD_REQUEST)

    result = await run_in_threadpool(
        authority.register, params.email, params.password, params.name
    )
    return _user_response(response, result, "Sign up failed")


async def handle_sign_in(
    request: Request, response: Response, authority: SessionAuthority
) -> dict:
    try:
        params = SignInRequest.model_validate(await _read_json(request))
    except ValidationError:
        return _error(response, CREDENTIALS_REQUIRED, status.HTTP_400_BAD_REQUEST)

    result = await run_in_threadpool(authority.authenticate, params.email, params.password)
    return _user_response(response, result, "Sign in failed")


async def handle_sign_out(
    request: Request, response: Response, authority: SessionAuthority
) -> dict:
    result = await run_in_threadpool(authority.terminate)
    return _user_response(response, result, "Sign out failed")


async def handle_get_session(
    request: Request, response: Response, authority: SessionAuthority
) -> dict:
    result = await run_in_threadpool(authority.validate)
    if not result.ok:
        logger.debug(f"No session: {result.error.kind.value}")
        return SessionResponse(session=None).model_dump(mode="json")
    return SessionResponse(session=result.data).model_dump(mode="json")


POST_HANDLERS: dict[str, Handler] = {
    actions.SIGN_UP: handle_sign_up,
    actions.SIGN_IN: handle_sign_in,
    actions.SIGN_OUT: handle_sign_out,
    actions.GET_SESSION: handle_get_session,
}

GET_HANDLERS: dict[str, Handler] = {
    actions.GET_SESSION: handle_get_session,
}


async def _dispatch(
    handlers: dict[str, Handler],
    action: str,
    request: Request,
    response: Response,
    authority: SessionAuthority,
    unknown_message: str,
    unknown_status: int,
) -> dict:
    handler = handlers.get(action)
    if handler is None:
        return _error(response, unknown_message, unknown_status)

    try:
        return await handler(request, response, authority)
    except Exception as e:
        logger.exception(f"Unhandled error in auth action {action}: {e}")
        return _error(
            response, "Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR
        )


@router.post("/{action}")
async def post_action(
    action: str,
    request: Request,
    response: Response,
    authority: SessionAuthority = Depends(get_authority),
):
    """
    Run an auth action.

    - **sign-up**: create an account and start a session
    - **sign-in**: verify credentials and start a new session
    - **sign-out**: end the session in the cookie
    - **get-session**: current user and session, or null
    """
    return await _dispatch(
        POST_HANDLERS,
        action,
        request,
        response,
        authority,
        "Invalid action",
        status.HTTP_400_BAD_REQUEST,
    )


@router.get("/{action}")
async def get_action(
    action: str,
    request: Request,
    response: Response,
    authority: SessionAuthority = Depends(get_authority),
):
    """
    Read-only actions. Only **get-session** is available over GET.

    Always answers 200 for get-session so polling clients never need
    error handling for the signed-out case.
    """
    return await _dispatch(
        GET_HANDLERS,
        action,
        request,
        response,
        authority,
        "Method not allowed",
        status.HTTP_405_METHOD_NOT_ALLOWED,
    )
