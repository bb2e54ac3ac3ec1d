"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import URL

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str
    db_password: str
    db_name: str
    db_pool_size: int = 10
    jwt_secret: str
    jwt_expires_minutes: int = 15
    reset_token_expires_minutes: int = 15
    verification_token_expires_minutes: int = 15
    redis_url: str = "redis://localhost:6379"
    ai_provider: str = "openai"
    openai_api_key: str | None = None
    openai_model: str = "gpt-5.2"
    openai_reasoning_effort: str | None = "low"
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-1.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    email_host: str = "localhost"
    email_port: int = 587
    email_user: str | None = None
    email_password: str | None = None
    email_from: str = "no-reply@localhost"
    support_email: str | None = None
    frontend_url: str = "http://localhost:3000"
    allowed_image_types: str = "image/jpeg,image/png,image/jpg"
    max_upload_bytes: int = 5 * 1024 * 1024
    environment: str = _ENVIRONMENT
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def database_url(self) -> URL:
        """Build the SQLAlchemy URL for the MySQL database."""
        return URL.create(
            "mysql+pymysql",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
            query={"charset": "utf8mb4"},
        )


def parse_image_types(raw: str | None) -> frozenset[str]:
    """Parse the allowed upload MIME types from env."""
    if raw is None:
        return frozenset()
    types: set[str] = set()
    for chunk in raw.split(","):
        value = chunk.strip().lower()
        if value:
            types.add(value)
    return frozenset(types)
