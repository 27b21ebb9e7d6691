"""
FastAPI Forever Begins API Application.

Main application entry point that configures:
- CORS middleware
- API routers
- Database lifecycle and default content seeding
- Logging system
- Exception handlers
- Prometheus metrics
- Graceful shutdown
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.database import init_db, close_db
from app.routers import (
    admin_pages_router,
    admin_router,
    albums_router,
    auth_router,
    health_router,
    memory_cards_router,
    timeline_router,
)
from app.services.album import ensure_default_albums
from app.services.timeline import ensure_default_events
from app.utils.prometheus_metrics import (
    exceptions_total,
    ready,
    setup_prometheus,
)
from app.middlewares.admin_gate_middleware import AdminGateMiddleware
from app.middlewares.logging_middleware import LoggingMiddleware
from app.middlewares.rate_limit_middleware import setup_rate_limit_exception_handler
from app.middlewares.request_tracking_middleware import (
    RequestTrackingMiddleware,
    wait_for_requests,
)
from app.utils.logger import setup_logging, get_request_id, log_error, log_info, log_warning

settings = get_settings()
logger = logging.getLogger("app")

# Python logging 설정
setup_logging()

SHUTDOWN_WAIT_SECONDS = 30.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan.

    Startup: 설정 검증 (프로덕션) → 테이블 생성 → 기본 앨범/타임라인 시딩 → ready=1
    Shutdown: ready=0 → 진행 중인 요청 대기 (최대 30초) → DB 연결 종료
    """
    if settings.is_production:
        from app.utils.config_validator import validate_all_config
        config_ok, config_errors = await validate_all_config()
        if not config_ok:
            error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in config_errors)
            log_error(
                "Startup failed: configuration validation errors",
                error_message=error_msg,
                event="lifecycle",
            )
            raise RuntimeError(error_msg)
        log_info("Configuration validation passed", event="lifecycle")

    await init_db()
    if settings.seed_on_startup:
        await ensure_default_albums()
        await ensure_default_events()

    ready.set(1)
    log_info(
        "Application startup completed",
        event="lifecycle",
        version=settings.app_version,
        environment=settings.environment.value,
    )

    yield

    # Graceful shutdown
    ready.set(0)  # Health check 즉시 실패 (로드밸런서가 새 요청 차단)
    log_info("Application shutdown initiated", event="lifecycle")
    await wait_for_requests(timeout=SHUTDOWN_WAIT_SECONDS)
    await close_db()
    log_info("Graceful shutdown completed", event="lifecycle")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
## Forever Begins API

Backend for the wedding website:

- **Albums**: gallery albums linking to Google Photos, with compressed covers
- **Timeline**: love story milestones, reorderable from the admin console
- **Memory Cards**: guest wall with optional photo (hosted on ImgBB)

### Authentication
Admin operations require the `admin_token` session cookie set by
`/api/auth/login`. Guests delete their own cards with the `ownerToken`
returned when the card was created.
    """,
    openapi_tags=[
        {"name": "Authentication", "description": "Admin login and session"},
        {"name": "Albums", "description": "Gallery albums"},
        {"name": "Timeline", "description": "Love story timeline"},
        {"name": "Memory Cards", "description": "Guest wall"},
        {"name": "Admin", "description": "Admin-only moderation"},
    ],
    lifespan=lifespan,
)

# Prometheus: FastAPI metrics + node info at /metrics
setup_prometheus(app)

# Rate limiting: limiter 등록 + 429 핸들러
setup_rate_limit_exception_handler(app)

# 미들웨어는 나중에 추가한 것이 바깥쪽 (Logging → Tracking → AdminGate 순으로 실행)
app.add_middleware(AdminGateMiddleware)
app.add_middleware(RequestTrackingMiddleware)
app.add_middleware(LoggingMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _describe_validation_errors(exc: RequestValidationError) -> str:
    """'field: message' pairs, e.g. "title: Field required; order: ..."."""
    parts = []
    for error in exc.errors():
        # loc = ("body", "title") / ("query", "limit") / ("body", "events", 0, "order")
        loc = [str(item) for item in error.get("loc", ()) if item not in ("body", "query", "path")]
        field = ".".join(loc) or "request"
        parts.append(f"{field}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request validation errors are reported as 400 (not FastAPI's default 422)."""
    detail = _describe_validation_errors(exc)
    log_warning(
        "Request validation failed",
        event="validation",
        http_path=request.url.path,
        error_message=detail,
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": detail},
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Unhandled exception handler with structured logging.

    - ERROR 로그 남김
    - 500 응답 반환 (Request ID 포함, 장애 추적용)
    """
    exceptions_total.inc()
    rid = get_request_id()

    log_error(
        "Unhandled exception occurred",
        exc_info=True,
        error_type=type(exc).__name__,
        error_message=str(exc),
        error_code="INTERNAL_SERVER_ERROR",
        http_method=request.method,
        http_path=request.url.path,
        request_id=rid,
        event="exception",
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "request_id": rid,
        },
    )


for router in (
    health_router,
    auth_router,
    albums_router,
    timeline_router,
    memory_cards_router,
    admin_router,
    admin_pages_router,
):
    app.include_router(router)


@app.get(
    "/",
    tags=["Root"],
    summary="API information",
)
async def root():
    """Service name, version and the public API entry points."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "endpoints": {
            "albums": "/api/albums",
            "timeline": "/api/timeline",
            "memoryCards": "/api/memory-cards",
        },
    }
