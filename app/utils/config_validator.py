"""
설정 검증 유틸리티.

애플리케이션 시작 시 필수 설정을 검증합니다.
프로덕션 환경에서만 lifespan에서 호출됩니다.
"""
import logging
from typing import List, Tuple

from sqlalchemy import text

from app.config import DEFAULT_JWT_SECRET, Settings, get_settings
from app.database import engine

logger = logging.getLogger("app.config_validator")


async def _validate_database() -> List[str]:
    """DB 연결 테스트."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Database connection failed", extra={"event": "config"}, exc_info=True)
        return [f"Database connection failed: {e}"]
    logger.info("Database connection: OK", extra={"event": "config"})
    return []


def _validate_admin_config(settings: Settings) -> List[str]:
    """관리자 로그인 / 세션 서명 설정 검증."""
    errors: List[str] = []
    if not settings.admin_username:
        errors.append("ADMIN_USERNAME is required")
    if not settings.admin_password:
        errors.append("ADMIN_PASSWORD is required")
    if settings.jwt_secret_key == DEFAULT_JWT_SECRET:
        errors.append("JWT_SECRET_KEY must be changed from the default value")
    if settings.token_lifecycle_days <= 0:
        errors.append("TOKEN_LIFECYCLE_DAYS must be positive")
    return errors


def _validate_memory_card_config(settings: Settings) -> List[str]:
    """게스트 카드 비밀번호 / ImgBB 설정 검증."""
    errors: List[str] = []
    if not settings.memory_card_password:
        errors.append("MEMORY_CARD_PASSWORD is required")
    if not settings.imgbb_api_key:
        errors.append("IMGBB_API_KEY is required (memory card photo upload)")
    return errors


async def validate_all_config() -> Tuple[bool, List[str]]:
    """
    Run every configuration check.

    Returns:
        (ok, errors): ok is True when no check failed
    """
    settings = get_settings()
    logger.info("Starting configuration validation", extra={"event": "config"})

    errors: List[str] = []
    errors.extend(await _validate_database())
    errors.extend(_validate_admin_config(settings))
    errors.extend(_validate_memory_card_config(settings))

    if errors:
        logger.error(
            "Configuration validation failed",
            extra={"event": "config", "errors": errors},
        )
        return False, errors

    logger.info("Configuration validation completed successfully", extra={"event": "config"})
    return True, []
