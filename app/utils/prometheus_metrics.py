"""
Prometheus metrics for stability, availability, and content operations.

- FastAPI: request count, latency (Instrumentator)
- Node/instance: app_info
- Stability: exceptions_total, db_errors_total, external_request_errors_total
- HA: ready gauge (1=up, 0=shutting down), in_flight_requests
- Business: admin logins, content/memory card operations, image compression
"""
import logging
import socket
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from prometheus_client import REGISTRY, Counter, Gauge, Histogram
from prometheus_fastapi_instrumentator import Instrumentator

from app.config import get_settings

logger = logging.getLogger(__name__)

# --- Stability ---
exceptions_total = Counter(
    "wedding_api_exceptions_total",
    "Total unhandled exceptions",
    registry=REGISTRY,
)
db_errors_total = Counter(
    "wedding_api_db_errors_total",
    "Total database session/transaction errors",
    registry=REGISTRY,
)
external_request_errors_total = Counter(
    "wedding_api_external_request_errors_total",
    "Total external API request failures",
    ["service"],
    registry=REGISTRY,
)

# 외부 서비스 요청 수 (성공/실패 구분)
external_request_total = Counter(
    "wedding_api_external_request_total",
    "Total external API requests by service and outcome",
    ["service", "status"],  # status: success | failure
    registry=REGISTRY,
)

external_request_duration_seconds = Histogram(
    "wedding_api_external_request_duration_seconds",
    "External API request duration in seconds",
    ["service", "result"],  # result: success | failure
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
    registry=REGISTRY,
)

# --- HA ---
ready = Gauge(
    "wedding_api_ready",
    "Application ready (1=up, 0=shutting down)",
    registry=REGISTRY,
)

# 진행 중인 요청 수 (Graceful shutdown용)
in_flight_requests = Gauge(
    "wedding_api_in_flight_requests",
    "Number of requests currently being processed",
    registry=REGISTRY,
)

# --- Rate Limiting ---
rate_limit_hits_total = Counter(
    "wedding_api_rate_limit_hits_total",
    "Total number of rate limit hits (requests blocked)",
    ["endpoint"],
    registry=REGISTRY,
)

# --- Admin session ---
admin_login_total = Counter(
    "wedding_api_admin_login_total",
    "Total admin login attempts",
    ["result"],  # result: success | failure
    registry=REGISTRY,
)

admin_login_duration_seconds = Histogram(
    "wedding_api_admin_login_duration_seconds",
    "Admin login request duration in seconds",
    ["result"],
    buckets=(0.01, 0.05, 0.1, 0.2, 0.5, 1.0, 2.0),
    registry=REGISTRY,
)

admin_session_validation_total = Counter(
    "wedding_api_admin_session_validation_total",
    "Admin session cookie validations on protected routes",
    ["state"],  # state: valid | expired | no_token
    registry=REGISTRY,
)

# --- Content ---
content_operations_total = Counter(
    "wedding_api_content_operations_total",
    "Album / timeline operations",
    ["resource", "operation", "result"],  # resource: album | timeline
    registry=REGISTRY,
)

content_seeded_total = Counter(
    "wedding_api_content_seeded_total",
    "Number of times a collection was (re)filled with its default records",
    ["resource", "reason"],  # reason: empty | reset
    registry=REGISTRY,
)

memory_card_operations_total = Counter(
    "wedding_api_memory_card_operations_total",
    "Memory card create/delete operations",
    ["operation", "result"],  # operation: create | delete | admin_delete
    registry=REGISTRY,
)

# --- Image processing ---
image_compression_duration_seconds = Histogram(
    "wedding_api_image_compression_duration_seconds",
    "Image compression duration in seconds",
    ["policy"],  # policy: square | bounded
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
    registry=REGISTRY,
)

image_compression_output_bytes = Histogram(
    "wedding_api_image_compression_output_bytes",
    "Size of compressed images in bytes",
    ["policy"],
    buckets=(10240, 51200, 76800, 102400, 204800, 409600, 1024000),
    registry=REGISTRY,
)


def _node_identity() -> str:
    """Node/instance identifier: NODE_NAME env or hostname."""
    settings = get_settings()
    if settings.node_name:
        return settings.node_name
    try:
        return socket.gethostname()
    except Exception:
        return "unknown"


@asynccontextmanager
async def record_external_request(service: str) -> AsyncGenerator[None, None]:
    """
    Context manager to record external request duration, total count, and errors.
    Use around image host HTTP calls.
    """
    start = time.perf_counter()
    exc_raised = None
    try:
        yield
    except Exception as e:
        exc_raised = e
        external_request_errors_total.labels(service=service).inc()
        external_request_total.labels(service=service, status="failure").inc()
        raise
    finally:
        duration = time.perf_counter() - start
        result = "failure" if exc_raised is not None else "success"
        if exc_raised is None:
            external_request_total.labels(service=service, status="success").inc()
        external_request_duration_seconds.labels(service=service, result=result).observe(duration)


def setup_prometheus(app) -> None:
    """
    Register Prometheus instrumentation and custom metrics.

    1. app_info + Instrumentator (FastAPI request metrics).
    2. /metrics 엔드포인트 노출 (스크래핑용).
    """
    settings = get_settings()

    app_info = Gauge(
        "wedding_api_app_info",
        "Application and node identity (labels only, value is 1)",
        ["node", "app", "version", "environment"],
        registry=REGISTRY,
    )
    app_info.labels(
        node=_node_identity(),
        app=settings.app_name,
        version=settings.app_version,
        environment=settings.environment.value,
    ).set(1)

    # status 라벨을 2xx/3xx 대신 구체 코드(200, 201, 404, 500 등)로 노출
    Instrumentator(should_group_status_codes=False).instrument(app).expose(
        app, endpoint="/metrics"
    )
