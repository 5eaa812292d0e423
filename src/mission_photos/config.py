"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    s3_bucket: str
    aws_region: str = "us-east-1"
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    s3_endpoint_url: str | None = None
    signed_url_ttl_seconds: int = 600
    signed_url_check_exists: bool = True
    broker_url: str = "redis://localhost:6379/0"
    enqueue_timeout_seconds: float = 3.0
    job_max_retries: int = 5
    job_retry_backoff_max_seconds: int = 600
    upsert_max_attempts: int = 3
    upsert_backoff_seconds: float = 0.05
    max_upload_bytes: int = 10 * 1024 * 1024
    upload_timeout_seconds: float = 30.0
    jpeg_quality: int = 85
    public_cache_ttl_seconds: int = 5
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
