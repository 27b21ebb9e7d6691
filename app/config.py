"""
Application configuration using Pydantic Settings.
Manages all environment variables and settings.
"""
from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, model_validator

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./forever_begins.db"
DEFAULT_JWT_SECRET = "jwt-secret-change-in-production"


class Environment(str, Enum):
    """Application environment modes."""
    DEV = "DEV"
    PRODUCTION = "PRODUCTION"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    environment: Environment = Field(
        default=Environment.DEV,
        description="Application environment: DEV or PRODUCTION"
    )

    # Application
    app_name: str = Field(default="Forever Begins API")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)

    @model_validator(mode='after')
    def set_debug_from_environment(self):
        """Set debug mode based on environment if not explicitly set via environment variable."""
        # DEBUG 환경 변수가 명시적으로 설정되지 않은 경우에만 환경 모드에 따라 설정
        import os
        if 'DEBUG' not in os.environ:
            self.debug = self.environment == Environment.DEV
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    # Database (빈 문자열이면 기본값 사용)
    database_url: str = Field(default=DEFAULT_DATABASE_URL)

    @field_validator("database_url", mode="before")
    @classmethod
    def coerce_empty_database_url(cls, v: str) -> str:
        if not v or not str(v).strip():
            return DEFAULT_DATABASE_URL
        return v

    # 기본 앨범/타임라인 데이터를 시작 시 한 번 넣음 (이미 있으면 아무것도 안 함)
    seed_on_startup: bool = Field(default=True)

    # Admin console
    admin_username: str = Field(default="", description="관리자 로그인 ID")
    admin_password: str = Field(default="", description="관리자 로그인 비밀번호")
    admin_cookie_name: str = Field(default="admin_token")
    token_lifecycle_days: int = Field(default=100, ge=1, description="관리자 세션 유효 기간 (일)")
    cookie_secure: Optional[bool] = Field(
        default=None,
        description="쿠키 Secure 플래그. 비우면 PRODUCTION에서만 True",
    )

    # JWT (admin session + memory card owner token 서명용)
    jwt_secret_key: str = Field(default=DEFAULT_JWT_SECRET)
    jwt_algorithm: str = Field(default="HS256")

    @property
    def admin_cookie_secure(self) -> bool:
        if self.cookie_secure is None:
            return self.is_production
        return self.cookie_secure

    # Memory cards (guest wall)
    memory_card_password: str = Field(default="", description="게스트 카드 작성용 공용 비밀번호")
    memory_card_owner_token_required: bool = Field(
        default=True,
        description="True면 본인 카드 삭제 시 작성 시 발급된 ownerToken 필요",
    )
    memory_card_message_max_length: int = Field(default=200)
    memory_card_photo_max_kb: int = Field(default=400)
    memory_card_photo_max_width: int = Field(default=1200)
    memory_card_photo_max_height: int = Field(default=1200)

    # Album cover (square avatar compression)
    album_cover_target_kb: int = Field(default=75)

    # Upload limits
    max_upload_size_mb: int = Field(default=10)

    # ImgBB (third-party image host)
    imgbb_api_key: str = Field(default="")
    imgbb_folder: str = Field(default="forever-begins")
    imgbb_upload_url: str = Field(default="https://api.imgbb.com/1/upload")
    imgbb_timeout_seconds: float = Field(default=30.0)

    # Rate limiting (slowapi)
    rate_limit_enabled: bool = Field(default=True)
    login_rate_limit: str = Field(default="10/minute")
    memory_card_rate_limit: str = Field(default="20/minute")

    # Logging: 비우면 파일 로그 비활성화 (stdout/stderr만 사용)
    log_dir: str = Field(default="", description="NDJSON 로그 디렉터리 (예: /var/log/forever-begins)")

    # Prometheus
    node_name: str = Field(default="", description="Node/Pod identifier for Prometheus labels")
    # 인스턴스 식별용 사설 IP (로그·메트릭용). 비우면 hostname 사용
    instance_ip: str = Field(default="", description="서버 사설 IP (비우면 hostname)")

    class Config:
        # 환경변수만 사용 (.env 파일 미사용)
        env_file = None
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Using lru_cache to avoid reading the environment on every request.
    """
    return Settings()
