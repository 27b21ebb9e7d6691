"""
운영 환경용 Python 로깅 설정.

원칙:
- INFO: 중요 비즈니스 이벤트 (관리자 로그인, 카드 작성, 타임라인 초기화)
- WARNING: 클라이언트 오류 (잘못된 비밀번호, 만료된 세션, 소유자 불일치)
- ERROR: 시스템 오류, 외부 서비스(ImgBB) 실패
- 개인정보 제외 (password, token, fingerprint 등은 로깅하지 않음)

로그 출력:
- stdout: 사람이 읽기 쉬운 텍스트
- LOG_DIR/*.log: NDJSON (설정 시에만)
"""
import contextvars
import json
import logging
import socket
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

from app.config import get_settings

# 로깅에서 제외할 개인정보 필드
_SENSITIVE_FIELDS = frozenset({
    "username", "password", "token", "secret",
    "owner_token", "device_fingerprint", "fingerprint",
})

# Request ID를 저장하는 context variable (비동기 안전)
request_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "request_id", default=None
)

_app_logger = logging.getLogger("app")

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def _get_instance_ip() -> str:
    """환경변수 INSTANCE_IP 사용. 없으면 hostname."""
    ip = (get_settings().instance_ip or "").strip()
    if ip:
        return ip
    return socket.gethostname()


INSTANCE_IP = _get_instance_ip()


def generate_request_id() -> str:
    """새 Request ID 생성. 짧고 읽기 쉬운 형식."""
    return uuid.uuid4().hex[:12]


def get_request_id() -> Optional[str]:
    """현재 Request ID 반환."""
    return request_id_var.get()


def set_request_id(request_id: Optional[str] = None) -> str:
    """Request ID 설정. None이면 새로 생성."""
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


class FlushingRotatingFileHandler(RotatingFileHandler):
    """매 로그마다 디스크에 flush."""

    def emit(self, record: logging.LogRecord) -> None:
        super().emit(record)
        self.flush()


# 로그 레코드의 표준 필드 (ctx에 넣지 않음)
_STANDARD_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "message", "asctime", "taskName",
    }
)


class JsonLinesFormatter(logging.Formatter):
    """
    운영용 NDJSON 포맷터.

    출력 필드:
    - ts: 타임스탬프 (UTC)
    - level: 로그 레벨
    - instance: 인스턴스 식별자
    - rid: Request ID (요청 추적)
    - event: 이벤트 타입 (lifecycle, request, auth, album, timeline, memory_card, image)
    - msg: 메시지
    - ctx: 추가 컨텍스트 (개인정보 제외)
    - exc: 예외 정보 (에러 시)
    """

    def format(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        try:
            msecs = int(getattr(record, "msecs", 0) or 0) % 1000
        except (TypeError, ValueError):
            msecs = 0
        payload = {
            "ts": dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{msecs:03d}Z",
            "level": record.levelname,
            "instance": INSTANCE_IP,
        }

        rid = get_request_id()
        if rid:
            payload["rid"] = rid

        if getattr(record, "event", None):
            payload["event"] = record.event

        payload["msg"] = record.getMessage()

        _skip_in_ctx = _STANDARD_ATTRS | {"event", "instance"}
        extra_ctx = {
            k: v for k, v in record.__dict__.items()
            if k not in _skip_in_ctx
            and k not in _SENSITIVE_FIELDS
            and v is not None
        }
        if extra_ctx:
            payload["ctx"] = extra_ctx

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def _json_file_handler(path: Path, level: int) -> logging.Handler:
    """NDJSON 파일 핸들러 (10MB x 5개 로테이션)."""
    handler = FlushingRotatingFileHandler(
        path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(JsonLinesFormatter())
    return handler


def setup_logging() -> None:
    """
    운영 환경용 로깅 설정.

    - stdout: 텍스트 포맷 (INFO 이상)
    - stderr: ERROR 이상
    - LOG_DIR/app.log, LOG_DIR/error.log: NDJSON (LOG_DIR 설정 시)
    - 외부 라이브러리 로그 억제 (uvicorn, httpx, sqlalchemy 등)
    """
    settings = get_settings()
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)
    root_logger.handlers.clear()

    text_formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for stream, level in ((sys.stdout, logging.INFO), (sys.stderr, logging.ERROR)):
        handler = logging.StreamHandler(stream)
        handler.setLevel(level)
        handler.setFormatter(text_formatter)
        root_logger.addHandler(handler)

    log_dir = (settings.log_dir or "").strip()
    if log_dir:
        try:
            path = Path(log_dir)
            path.mkdir(parents=True, exist_ok=True)
            for filename, level in (("app.log", logging.INFO), ("error.log", logging.ERROR)):
                root_logger.addHandler(_json_file_handler(path / filename, level))
        except OSError as e:
            root_logger.warning("File logging disabled: %s", e)

    # 외부 라이브러리 로그 억제 (운영에서 노이즈 방지)
    for name in (
        "uvicorn", "uvicorn.access", "uvicorn.error",
        "httpx", "httpcore", "asyncio", "PIL",
        "sqlalchemy", "sqlalchemy.engine", "sqlalchemy.pool",
        "sqlalchemy.dialects", "sqlalchemy.orm",
    ):
        logging.getLogger(name).setLevel(logging.WARNING)


def _log(level: int, message: str, exc_info: bool = False, **fields: Any) -> None:
    _app_logger.log(level, message, extra=fields, exc_info=exc_info)


def log_info(message: str, **fields: Any) -> None:
    """Log an info message with structured fields."""
    _log(logging.INFO, message, **fields)


def log_warning(message: str, **fields: Any) -> None:
    """Log a warning message with structured fields."""
    _log(logging.WARNING, message, **fields)


def log_error(message: str, exc_info: bool = False, **fields: Any) -> None:
    """Log an error message with structured fields."""
    _log(logging.ERROR, message, exc_info=exc_info, **fields)
