"""Pydantic schemas for authentication."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SignUpRequest(BaseModel):
    """Request body for the sign-up action."""

    name: Optional[str] = None
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SignInRequest(BaseModel):
    """Request body for the sign-in action."""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class PublicUser(BaseModel):
    """User fields safe to disclose to a client."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: Optional[str] = None
    email: str


class SessionView(BaseModel):
    """Session fields disclosed to a client: identifier and expiry only."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    expires_at: datetime


class AuthPayload(BaseModel):
    """Success payload of register, authenticate and terminate."""

    user: PublicUser


class SessionPayload(BaseModel):
    """Success payload of validate."""

    user: PublicUser
    session: SessionView


class UserResponse(BaseModel):
    user: PublicUser


class SessionResponse(BaseModel):
    """get-session response; ``session`` is null when not signed in."""

    session: Optional[SessionPayload] = None


class ErrorResponse(BaseModel):
    error: str
