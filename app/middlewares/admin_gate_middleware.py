"""
Admin console page gate.

`/user/admin*` 는 유효한 세션 쿠키가 없으면 로그인 페이지로 보내고,
이미 로그인된 상태에서 `/user/auth/login` 에 오면 대시보드로 보냅니다.
API 라우트(`/api/*`)는 여기서 막지 않고 `get_current_admin` 의존성이 401을 반환합니다.
"""
import logging
from typing import Callable

from fastapi import Request, Response, status
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import get_settings
from app.schemas.auth import AdminSessionState
from app.utils.prometheus_metrics import admin_session_validation_total
from app.utils.security import get_admin_session_state

logger = logging.getLogger("app.admin_gate")

ADMIN_PATH_PREFIX = "/user/admin"
LOGIN_PATH = "/user/auth/login"


class AdminGateMiddleware(BaseHTTPMiddleware):
    """Redirects page requests based on the admin session cookie."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if not (path.startswith(LOGIN_PATH) or path.startswith(ADMIN_PATH_PREFIX)):
            return await call_next(request)

        settings = get_settings()
        token = request.cookies.get(settings.admin_cookie_name)
        state, _ = get_admin_session_state(token)

        if path.startswith(LOGIN_PATH):
            if state is AdminSessionState.VALID:
                return RedirectResponse(
                    ADMIN_PATH_PREFIX, status_code=status.HTTP_307_TEMPORARY_REDIRECT
                )
            return await call_next(request)

        admin_session_validation_total.labels(state=state.value).inc()
        if state is AdminSessionState.VALID:
            return await call_next(request)

        response = RedirectResponse(LOGIN_PATH, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
        if state is AdminSessionState.EXPIRED:
            # 만료/위조 쿠키는 지워서 다음 요청부터 no_token 상태
            response.delete_cookie(settings.admin_cookie_name, path="/")
            logger.warning(
                "Admin page access with invalid session",
                extra={"event": "admin_gate", "path": path},
            )
        return response
