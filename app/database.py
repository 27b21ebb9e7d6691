"""
Database engine and sessions (async SQLAlchemy).

SQLite (aiosqlite) is the default store. Album covers live in the album row
as data URIs, so statements are truncated before they are logged.
- SQL echo 비활성화
- 1초 이상 걸린 쿼리만 WARN
"""
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import HTTPException
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from app.config import get_settings
from app.utils.prometheus_metrics import db_errors_total

_logger = logging.getLogger("app.db")

settings = get_settings()

# 느린 쿼리 임계값 (초)
SLOW_QUERY_THRESHOLD = 1.0

_database_url = settings.database_url.strip()

# Create async engine - echo는 항상 False (로그 노이즈 방지)
if "sqlite" in _database_url:
    engine = create_async_engine(
        _database_url,
        echo=False,
        poolclass=NullPool,
    )
else:
    engine = create_async_engine(
        _database_url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_recycle=1800,
        pool_pre_ping=True,
    )


# 느린 쿼리 로깅
@event.listens_for(engine.sync_engine, "before_cursor_execute")
def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    conn.info.setdefault("query_start_time", []).append(time.perf_counter())


@event.listens_for(engine.sync_engine, "after_cursor_execute")
def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    start_times = conn.info.get("query_start_time")
    if start_times:
        elapsed = time.perf_counter() - start_times.pop()
        if elapsed >= SLOW_QUERY_THRESHOLD:
            # 쿼리 앞 100자만 로깅 (cover 이미지 data URI가 길 수 있음)
            short_stmt = statement[:100] + "..." if len(statement) > 100 else statement
            _logger.warning(
                "Slow query",
                extra={"event": "db", "ms": round(elapsed * 1000), "query": short_stmt},
            )


# Create async session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


async def init_db() -> None:
    """Initialize database by creating all tables."""
    # 모델 모듈을 import해야 metadata에 테이블이 등록됨
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections properly."""
    await engine.dispose()


def _record_db_error(message: str, exc: Exception) -> None:
    db_errors_total.inc()
    _logger.error(
        message,
        extra={"event": "db", "error_type": type(exc).__name__, "error": str(exc)[:200]},
    )


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session (FastAPI dependency).

    The whole request runs in one transaction: committed when the endpoint
    returns, rolled back on any exception. Timeline reorder, compaction and
    the reset endpoints rely on this to be all-or-nothing.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except HTTPException:
            # 4xx 응답: 변경 사항만 되돌리고 DB 에러로 집계하지 않음
            await session.rollback()
            raise
        except Exception as e:
            _record_db_error("DB error", e)
            await session.rollback()
            raise


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Session outside of a request (default content seeding).
    Commits on exit.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            _record_db_error("DB context error", e)
            await session.rollback()
            raise
