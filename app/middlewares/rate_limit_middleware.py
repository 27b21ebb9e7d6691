"""
Rate limiting using slowapi.
Protects admin login (brute force) and memory card submission (spam).
"""
import logging
from typing import Callable

from fastapi import Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config import get_settings
from app.utils.client_ip import get_client_ip
from app.utils.prometheus_metrics import rate_limit_hits_total

logger = logging.getLogger("app.rate_limit")
settings = get_settings()

# 라우트별 데코레이터로만 제한 (default_limits 없음)
limiter = Limiter(
    key_func=get_client_ip,
    enabled=settings.rate_limit_enabled,
    storage_uri="memory://",  # 메모리 기반 (다중 인스턴스면 Redis 사용)
)


def setup_rate_limit_exception_handler(app) -> None:
    """
    Register the limiter on the app and the 429 handler.
    """
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        endpoint = request.url.path
        rate_limit_hits_total.labels(endpoint=endpoint).inc()

        logger.warning(
            "Rate limit exceeded",
            extra={
                "event": "rate_limit",
                "client_ip": get_client_ip(request),
                "endpoint": endpoint,
                "limit": str(exc.detail),
            },
        )
        return _rate_limit_exceeded_handler(request, exc)


def get_rate_limit_decorator(limit: str):
    """
    Rate limit 데코레이터 생성 헬퍼.

    Args:
        limit: Rate limit 문자열 (예: "10/minute", "60/hour")

    Returns:
        Rate limit 데코레이터 (비활성화 시 그대로 반환)
    """
    if not settings.rate_limit_enabled:
        def noop_decorator(func: Callable) -> Callable:
            return func
        return noop_decorator

    return limiter.limit(limit)
