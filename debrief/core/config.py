"""환경 변수 기반 설정. pydantic-settings 사용."""

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """앱 설정. 환경변수에서 로드. 시크릿은 SecretStr로 마스킹, 필수 시크릿은 기본값 없음(Fail-fast)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # 관측
    sentry_dsn: SecretStr | None = None
    environment: str = "development"  # Sentry/로깅용. production, staging, development 등.

    # DB
    database_url: str | None = None
    db_connect_retries: int = Field(5, ge=1, le=20)  # 연결 실패 시 재시도 횟수.
    db_connect_retry_interval_sec: float = Field(2.0, ge=0.5, le=60.0)  # 재시도 간격(초).

    # Auth (필수: 기본값 없음 → 부팅 시점 Fail-fast)
    jwt_secret: SecretStr
    jwt_issuer: str = "debrief"  # JWT iss 클레임 (발급자). 검증 시 사용.
    jwt_audience: str = "debrief-api"  # JWT aud 클레임 (대상). 검증 시 사용.
    jwt_access_expire_seconds: int = Field(600, ge=60, le=86400)  # Access 토큰 만료(초). 1분~24시간.
    jwt_refresh_expire_days: int = Field(7, ge=1, le=90)  # Refresh 토큰 만료(일).
    google_client_id: str  # 필수. 기본값 없음.
    google_client_secret: SecretStr  # 필수. 기본값 없음.
    # 허용 redirect_uri 목록(쉼표 구분). 비어 있으면 검사 생략. 예: http://localhost:3000/auth/callback
    google_redirect_uris: str = ""

    # Redis (Access Token Blocklist)
    redis_url: str | None = None
    # Redis 소켓/연결 타임아웃(초). 풀 포화·장애 시 무한 대기 방지.
    redis_socket_timeout: float = Field(5.0, ge=1.0, le=60.0)
    redis_socket_connect_timeout: float = Field(2.0, ge=0.5, le=30.0)
    # Blocklist: Redis 장애 시 정책. True=Fail-Closed(인증 거부), False=Fail-Open(서명만 검증 후 통과).
    redis_blocklist_fail_closed: bool = True
    redis_blocklist_max_connections: int = Field(20, ge=1, le=100)

    # 캘린더
    # 공유 링크 베이스 URL. {app_url}/calendar/public/{slug 또는 public_id}
    app_url: str = "http://localhost:3000"
    # True면 기본 캘린더 생성 시 slug 부여, False면 첫 공개 전환 시점까지 slug=NULL.
    assign_slug_at_creation: bool = True
    # slug 숫자 접미사 시도 횟수 상한. 초과 시 타임스탬프 접미사로 종료.
    slug_max_attempts: int = Field(100, ge=1, le=1000)
    default_calendar_title: str = "My Calendar"
    default_calendar_description: str = "Default calendar for events"

    # CORS
    allowed_origins: str = ""

    def _blank_production_requirements(self) -> list[str]:
        required = {
            "DATABASE_URL": self.database_url,
            "REDIS_URL": self.redis_url,
            "JWT_SECRET": self.jwt_secret.get_secret_value(),
            "GOOGLE_CLIENT_ID": self.google_client_id,
            "GOOGLE_CLIENT_SECRET": self.google_client_secret.get_secret_value(),
            "APP_URL": self.app_url,
        }
        return [name for name, value in required.items() if not (value or "").strip()]

    @model_validator(mode="after")
    def fail_fast_production(self) -> "Settings":
        """production에서 필수 값이 비었거나 공유 링크 베이스가 https가 아니면 부팅 거부."""
        if self.environment.strip().lower() != "production":
            return self
        missing = self._blank_production_requirements()
        if missing:
            raise ValueError(
                f"Production environment requires these variables to be set: {', '.join(missing)}"
            )
        if not self.app_url.startswith("https://"):
            raise ValueError("APP_URL must use https in production (public share links)")
        return self


settings = Settings()
