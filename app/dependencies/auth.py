"""
Authentication dependencies for FastAPI.
The admin session travels in an httpOnly cookie, not a bearer header.
"""
import logging
from typing import Optional

from fastapi import HTTPException, Request, status

from app.config import get_settings
from app.schemas.auth import AdminSessionState, AdminTokenPayload
from app.utils.prometheus_metrics import admin_session_validation_total
from app.utils.security import get_admin_session_state

logger = logging.getLogger("app.auth")


def read_admin_cookie(request: Request) -> Optional[str]:
    return request.cookies.get(get_settings().admin_cookie_name)


async def get_current_admin(request: Request) -> AdminTokenPayload:
    """
    Dependency that requires a valid admin session.

    Args:
        request: Incoming request (cookie source)

    Returns:
        Decoded session payload

    Raises:
        HTTPException: 401 if the cookie is missing, forged or expired
    """
    state, payload = get_admin_session_state(read_admin_cookie(request))
    admin_session_validation_total.labels(state=state.value).inc()

    if state is not AdminSessionState.VALID:
        logger.warning("Admin auth failed", extra={"event": "auth", "reason": state.value})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return payload
