"""
Admin authentication schemas for request/response validation.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.common import CamelModel


class AdminSessionState(str, Enum):
    """Admin session states derived from the cookie."""
    NO_TOKEN = "no_token"
    VALID = "valid"
    # 만료된 토큰과 형식이 잘못된/서명이 틀린 토큰은 동일하게 취급
    EXPIRED = "expired"


class AdminLogin(BaseModel):
    """Schema for admin login."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AdminTokenPayload(BaseModel):
    """Decoded admin session token."""

    username: str
    exp: int  # absolute expiry, epoch milliseconds


class LoginResponse(CamelModel):
    """Schema for login/logout response."""

    success: bool = True
    message: str


class SessionResponse(CamelModel):
    """Schema for the current admin session state."""

    authenticated: bool
    state: AdminSessionState
    username: Optional[str] = None
    expires_at: Optional[int] = None
