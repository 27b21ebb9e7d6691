"""
진행 중인 요청 추적 미들웨어.

Graceful shutdown 시 진행 중인 요청(카드 업로드 등)이 끝날 때까지 기다릴 수 있게 합니다.
"""
import asyncio
import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.utils.prometheus_metrics import in_flight_requests

logger = logging.getLogger("app.request_tracking")

# Health check 경로는 제외 (shutdown 중에도 체크 가능해야 함)
EXCLUDED_PATHS = {"/health", "/health/liveness", "/health/readiness", "/metrics"}

# 이벤트 루프는 단일 스레드라 lock 없이 카운터만 사용
_in_flight = 0


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """Counts requests currently being processed."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        global _in_flight
        if request.url.path in EXCLUDED_PATHS:
            return await call_next(request)

        _in_flight += 1
        in_flight_requests.set(_in_flight)
        try:
            return await call_next(request)
        finally:
            _in_flight = max(0, _in_flight - 1)
            in_flight_requests.set(_in_flight)


async def wait_for_requests(timeout: float = 30.0) -> bool:
    """
    진행 중인 요청이 완료될 때까지 대기.

    Args:
        timeout: 최대 대기 시간 (초)

    Returns:
        True: 모든 요청 완료, False: 타임아웃
    """
    start_time = time.monotonic()
    while _in_flight > 0:
        if time.monotonic() - start_time >= timeout:
            logger.warning(
                "Timeout waiting for requests",
                extra={"event": "shutdown", "remaining_requests": _in_flight, "timeout": timeout},
            )
            return False
        await asyncio.sleep(0.5)

    logger.info("All in-flight requests completed", extra={"event": "shutdown"})
    return True
