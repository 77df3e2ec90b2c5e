"""
Application configuration — loads from environment variables or a .env file.
No secrets are ever hardcoded for production; the defaults are for local dev.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── Environment ──
    environment: str = "development"

    # ── Postgres ──
    postgres_user: str = "bookreview_user"
    postgres_password: str = "changeme"
    postgres_db: str = "bookreview"
    postgres_host: str = "postgres"
    postgres_port: int = 5432
    database_url: Optional[str] = None
    database_echo: bool = False

    # ── Redis ──
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_password: str = "changeme"
    redis_url: Optional[str] = None

    # ── JWT ──
    jwt_secret_key: str = "CHANGE_ME"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7

    # ── Rate Limiting ──
    rate_limit_enabled: bool = True
    rate_limit_per_ip: int = 100
    rate_limit_window_seconds: int = 15 * 60

    # ── Monitoring ──
    enable_metrics: bool = True
    log_level: str = "INFO"
    log_format: str = "json"

    # ── CORS ──
    cors_origins: str = "http://localhost:3000,http://localhost:3001,http://localhost:3002"

    @property
    def database_dsn(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def redis_dsn(self) -> str:
        if self.redis_url:
            return self.redis_url
        return f"redis://:{self.redis_password}@{self.redis_host}:{self.redis_port}/0"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.database_dsn.startswith("sqlite")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
