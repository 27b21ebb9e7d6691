"""
Authentication router for the admin console session.
"""
import time

from fastapi import APIRouter, HTTPException, Request, Response, status

from app.config import get_settings
from app.dependencies.auth import read_admin_cookie
from app.middlewares.rate_limit_middleware import get_rate_limit_decorator
from app.schemas.auth import AdminLogin, LoginResponse, SessionResponse, AdminSessionState
from app.utils.prometheus_metrics import (
    admin_login_duration_seconds,
    admin_login_total,
)
from app.utils.security import (
    DAY_MS,
    create_admin_token,
    get_admin_session_state,
    verify_admin_credentials,
)
from app.utils.logger import log_info, log_warning, log_error

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

settings = get_settings()


def set_admin_cookie(response: Response, token: str) -> None:
    """Attach the session cookie (httpOnly, SameSite=strict, path /)."""
    response.set_cookie(
        key=settings.admin_cookie_name,
        value=token,
        max_age=settings.token_lifecycle_days * DAY_MS // 1000,
        path="/",
        httponly=True,
        samesite="strict",
        secure=settings.admin_cookie_secure,
    )


def clear_admin_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.admin_cookie_name,
        path="/",
        httponly=True,
        samesite="strict",
        secure=settings.admin_cookie_secure,
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Admin login",
)
@get_rate_limit_decorator(settings.login_rate_limit)
async def login(
    request: Request,
    response: Response,
    login_data: AdminLogin,
) -> LoginResponse:
    """
    Login with the configured admin username and password.

    On success the signed session token is set as the `admin_token`
    httpOnly cookie; the token itself is never in the response body.
    """
    if not settings.admin_username or not settings.admin_password:
        log_error("Admin credentials are not configured", event="admin_login")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error",
        )

    start = time.perf_counter()
    valid = verify_admin_credentials(login_data.username, login_data.password)
    duration = time.perf_counter() - start
    result = "success" if valid else "failure"
    admin_login_duration_seconds.labels(result=result).observe(duration)
    admin_login_total.labels(result=result).inc()

    if not valid:
        # 무차별 대입 탐지용 WARN
        log_warning("Admin login failed - invalid credentials", event="admin_login")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    set_admin_cookie(response, create_admin_token(login_data.username))
    log_info("Admin login successful", event="admin_login")
    return LoginResponse(success=True, message="Login successful")


@router.post(
    "/logout",
    response_model=LoginResponse,
    summary="Admin logout",
)
async def logout(response: Response) -> LoginResponse:
    """Clear the session cookie. Always succeeds."""
    clear_admin_cookie(response)
    return LoginResponse(success=True, message="Logout successful")


@router.get(
    "/session",
    response_model=SessionResponse,
    summary="Current admin session state",
)
async def get_session(request: Request) -> SessionResponse:
    """
    Report whether the cookie holds a valid session.

    `state` is one of `no_token`, `valid`, `expired` (forged or malformed
    cookies also report `expired`).
    """
    state, payload = get_admin_session_state(read_admin_cookie(request))
    if state is AdminSessionState.VALID:
        return SessionResponse(
            authenticated=True,
            state=state,
            username=payload.username,
            expires_at=payload.exp,
        )
    return SessionResponse(authenticated=False, state=state)
