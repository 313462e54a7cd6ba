from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_env: str = Field(default="dev", alias="APP_ENV")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8000, alias="APP_PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    enable_openapi_docs: bool = Field(default=True, alias="ENABLE_OPENAPI_DOCS")

    internal_api_token: str = Field(
        default="dev_internal_token_change_me",
        alias="INTERNAL_API_TOKEN",
    )
    internal_api_allowlist: str = Field(
        default="127.0.0.1/32,::1/128",
        alias="INTERNAL_API_ALLOWLIST",
    )
    internal_api_trusted_proxies: str = Field(default="", alias="INTERNAL_API_TRUSTED_PROXIES")

    paymongo_webhook_secret: str = Field(
        default="dev_paymongo_webhook_secret_change_me",
        alias="PAYMONGO_WEBHOOK_SECRET",
    )
    paymongo_live_mode: bool = Field(default=False, alias="PAYMONGO_LIVE_MODE")
    season_pass_price: int = Field(default=399, alias="SEASON_PASS_PRICE")

    usage_timezone: str = Field(default="Asia/Manila", alias="USAGE_TIMEZONE")
    explanation_cache_ttl_seconds: int = Field(default=3600, alias="EXPLANATION_CACHE_TTL_SECONDS")
    mock_exam_expiry_grace_minutes: int = Field(default=5, alias="MOCK_EXAM_EXPIRY_GRACE_MINUTES")

    database_url: str = Field(alias="DATABASE_URL")
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")

    celery_broker_url: str = Field(default="redis://localhost:6379/1", alias="CELERY_BROKER_URL")
    celery_result_backend: str = Field(default="redis://localhost:6379/2", alias="CELERY_RESULT_BACKEND")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
