"""Configuration management using Pydantic Settings."""

from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Report service settings loaded from environment variables or .env."""

    # FastAPI
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    debug: bool = Field(default=False)
    environment: str = Field(default="production")
    cors_origins: str = Field(default="")

    # Platform database (read by report queries, written by the audit task)
    database_url: str = Field(...)
    database_pool_size: int = Field(default=20)
    database_max_overflow: int = Field(default=10)

    # Redis (rate limiting)
    redis_url: str = Field(...)

    # Celery (defaults to Redis URL if not set)
    celery_broker_url: Optional[str] = Field(default=None)
    celery_result_backend: Optional[str] = Field(default=None)
    audit_queue: str = Field(default="audit")
    audit_task_max_retries: int = Field(default=5, ge=0)

    # Reporting
    report_brand_name: str = Field(default="Educademy")
    report_max_workers: int = Field(default=4, ge=1)
    platform_health_error_threshold: int = Field(default=100, ge=1)

    # Rate limits, per admin per minute
    report_rate_limit_per_minute: int = Field(default=10, ge=1)
    default_rate_limit_per_minute: int = Field(default=100, ge=1)

    # Monitoring
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v_upper

    def __init__(self, **data):
        super().__init__(**data)
        # Set Celery URLs to Redis URL if not explicitly provided
        if not self.celery_broker_url:
            self.celery_broker_url = self.redis_url
        if not self.celery_result_backend:
            self.celery_result_backend = self.redis_url

    @property
    def database_url_sync(self) -> str:
        """Synchronous database URL for SQLAlchemy."""
        return self.database_url.replace("postgresql://", "postgresql+psycopg2://")

    @property
    def is_sqlite(self) -> bool:
        return self.database_url_sync.startswith("sqlite")

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def allowed_origins(self) -> List[str]:
        """CORS origins; any origin in debug mode when none are configured."""
        origins = [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]
        if origins:
            return origins
        return ["*"] if self.debug else []


# Global settings instance
settings = Settings()
