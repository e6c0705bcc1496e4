"""Configuration management for the class-action registry."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


def _load_default_private_key() -> str:
    default_path = Path(__file__).resolve().parent / "../.." / "configs" / "dev-jwt.pem"
    if default_path.exists():
        return default_path.read_text(encoding="utf-8")
    raise FileNotFoundError("Default JWT private key not found. Provide JWT_PRIVATE_KEY environment variable.")


class Settings(BaseSettings):
    app_name: str = Field(default="Class Action Registry")
    version: str = Field(default="0.1.0")
    docs_url: str | None = Field(default="/docs")
    redoc_url: str | None = Field(default="/redoc")
    openapi_url: str = Field(default="/openapi.json")

    database_url: str = Field(default="postgresql+psycopg://registry:registry@db:5432/registry")

    aws_region: str = Field(default="eu-west-3")
    s3_endpoint_url: str | None = Field(default=None)
    audit_log_bucket: str = Field(default="class-action-audit-logs")
    audit_log_prefix: str = Field(default="audit/records")
    audit_log_sample_rate: float = Field(default=1.0)

    enable_metrics: bool = Field(default=True)
    enable_tracing: bool = Field(default=True)
    otel_exporter_endpoint: str | None = Field(default=None)

    supported_companies: list[str] = Field(default_factory=lambda: ["atos", "urpea"])
    default_page_size: int = Field(default=25)
    max_page_size: int = Field(default=200)

    data_retention_days: int = Field(default=0)  # 0 keeps records forever
    data_retention_interval_seconds: int = Field(default=86400)

    brand_name: str = Field(default="UPRA")
    support_email: str = Field(default="admin@upra.fr")
    contact_email: str = Field(default="info@upra.fr")
    email_notifications: bool = Field(default=True)
    admin_notifications: bool = Field(default=False)
    admin_email: str | None = Field(default=None)
    email_from_name: str = Field(default="UPRA")
    email_from_address: str = Field(default="no-reply@upra.fr")
    email_reply_to: str | None = Field(default="info@upra.fr")
    smtp_host: str = Field(default="localhost")
    smtp_port: int = Field(default=587)
    smtp_user: str | None = Field(default=None)
    smtp_password: str | None = Field(default=None)
    smtp_start_tls: bool = Field(default=True)
    smtp_timeout_seconds: float = Field(default=10.0)

    jwt_algorithm: str = Field(default="RS256")
    jwt_private_key: str = Field(default_factory=_load_default_private_key)
    access_token_expire_minutes: int = Field(default=15)
    refresh_token_expire_days: int = Field(default=7)
    default_role: str = Field(default="ADMIN")
    default_user_hashed_password: str = Field(
        default="$2b$12$oyI2qhzyapMI2vlA38nS4uK91tQ8gjVjTgQExlbDGQLHw6/oEFzOG"
    )  # password: changeme
    default_user_password: str = Field(default="changeme")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


__all__ = ["Settings", "get_settings"]
