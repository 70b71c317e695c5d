from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_SQLITE_PATH = BASE_DIR / "checkpoint_admin.db"
DEFAULT_SQLITE_URL = f"sqlite:///{DEFAULT_SQLITE_PATH}"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=BASE_DIR / ".env", env_prefix="APP_", case_sensitive=False)

    api_token: str = Field(default="dev-token", description="Bootstrap bearer token granting every capability")
    database_url: str = Field(default=DEFAULT_SQLITE_URL, description="SQLAlchemy database URL")
    # Comma-separated values or '*' for all
    cors_origins: str = Field(default="*")
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Rate limiting (per principal+IP per minute)
    rate_limit_enabled: bool = Field(default=False)
    rate_limit_per_minute: int = Field(default=600)

    # Checkpoint keys
    checkpoint_key_length: int = Field(default=12, ge=4, le=64, description="Hex chars kept from the digest")
    checkpoint_key_unique_check: bool = Field(default=True)
    checkpoint_key_max_attempts: int = Field(default=5, ge=1)

    # Public scan app and admin front-end
    app_domain: str = Field(default="http://localhost:3000/", description="Base URL encoded in flyer QR codes")
    admin_domain: str = Field(default="http://localhost:8000")
    app_name: str = Field(default="Checkpoint")

    # Email
    email_provider: str = Field(default="console", description="console|sendgrid")
    admin_email_from: str = Field(default="admin@example.com")
    sendgrid_api_key: Optional[str] = Field(default=None)

    # Password reset
    reset_token_ttl_hours: int = Field(default=24)
    reset_token_bytes: int = Field(default=24)

    @property
    def cors_origins_list(self) -> List[str]:
        s = (self.cors_origins or "").strip()
        if not s or s == "*":
            return ["*"]
        return [part.strip() for part in s.split(",") if part.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
