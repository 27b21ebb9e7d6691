"""
Security utility functions: admin session tokens, memory card owner
tokens and credential checks.
"""
import secrets
from typing import Optional, Tuple

from jose import JWTError, jwt

from app.config import get_settings
from app.schemas.auth import AdminSessionState, AdminTokenPayload
from app.utils.clock import now_ms

settings = get_settings()

DAY_MS = 24 * 60 * 60 * 1000

OWNER_TOKEN_SCOPE = "memory_card"


def verify_admin_credentials(username: str, password: str) -> bool:
    """
    Compare login credentials against the configured admin account.

    Args:
        username: Submitted username
        password: Submitted password

    Returns:
        True if both match (constant-time comparison)
    """
    user_ok = secrets.compare_digest(
        username.encode("utf-8"), settings.admin_username.encode("utf-8")
    )
    password_ok = secrets.compare_digest(
        password.encode("utf-8"), settings.admin_password.encode("utf-8")
    )
    return user_ok and password_ok


def create_admin_token(
    username: str,
    lifetime_days: Optional[int] = None,
    issued_at_ms: Optional[int] = None,
) -> str:
    """
    Create a signed admin session token.

    The payload is `{username, exp}` with `exp` as absolute epoch
    milliseconds, signed with HS256 so it cannot be forged without the
    server secret.

    Args:
        username: Admin username
        lifetime_days: Session lifetime (default TOKEN_LIFECYCLE_DAYS)
        issued_at_ms: Issue time in epoch ms (default now)

    Returns:
        Encoded JWT string
    """
    if lifetime_days is None:
        lifetime_days = settings.token_lifecycle_days
    if issued_at_ms is None:
        issued_at_ms = now_ms()

    to_encode = {
        "username": username,
        "exp": issued_at_ms + lifetime_days * DAY_MS,
    }
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_admin_token(token: str) -> Optional[AdminTokenPayload]:
    """
    Decode an admin session token and check its signature.

    Expiry is not checked here (see `is_token_valid`); `exp` is in
    milliseconds, which the JWT library's own check would misread.

    Args:
        token: JWT token string

    Returns:
        AdminTokenPayload if well-formed and correctly signed, None otherwise
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": False},
        )
    except JWTError:
        return None

    username = payload.get("username")
    exp = payload.get("exp")
    if not isinstance(username, str) or isinstance(exp, bool) or not isinstance(exp, int):
        return None
    return AdminTokenPayload(username=username, exp=exp)


def is_token_valid(exp_ms: int, current_ms: Optional[int] = None) -> bool:
    """A session is valid while its expiry is not in the past."""
    if current_ms is None:
        current_ms = now_ms()
    return exp_ms >= current_ms


def get_admin_session_state(
    token: Optional[str],
    current_ms: Optional[int] = None,
) -> Tuple[AdminSessionState, Optional[AdminTokenPayload]]:
    """
    Classify an admin cookie value.

    Returns:
        (state, payload) where payload is only set for VALID sessions
    """
    if not token:
        return AdminSessionState.NO_TOKEN, None

    payload = decode_admin_token(token)
    if payload is None or not is_token_valid(payload.exp, current_ms):
        return AdminSessionState.EXPIRED, None

    return AdminSessionState.VALID, payload


def create_owner_token(card_id: str, device_fingerprint: str) -> str:
    """
    Create the capability token handed to a guest when their memory card
    is created. It binds the card id to the fingerprint that created it.
    """
    to_encode = {
        "scope": OWNER_TOKEN_SCOPE,
        "sub": card_id,
        "fp": device_fingerprint,
    }
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def verify_owner_token(token: Optional[str], card_id: str, device_fingerprint: str) -> bool:
    """
    Verify a memory card owner token for a specific card and fingerprint.
    """
    if not token:
        return False
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return False

    return (
        payload.get("scope") == OWNER_TOKEN_SCOPE
        and payload.get("sub") == card_id
        and payload.get("fp") == device_fingerprint
    )


def is_owner(stored_fingerprint: str, supplied_fingerprint: Optional[str]) -> bool:
    """
    Ownership flag for a memory card: exact, case-sensitive match of the
    supplied fingerprint. A missing fingerprint never owns anything.
    """
    if not supplied_fingerprint:
        return False
    return stored_fingerprint == supplied_fingerprint
