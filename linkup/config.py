"""
Runtime configuration helpers for the LinkUp service and its clients.

Loads DATABASE_URL and the remaining variables from the .env file located
in the project root.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root
BASE_DIR = Path(__file__).resolve().parents[1]

# Absolute path to .env
ENV_PATH = BASE_DIR / ".env"

# Load .env defaults without overriding environment variables provided by the platform
load_dotenv(dotenv_path=ENV_PATH, override=False)

# Values copied from .env.example that must never sign real tokens
PLACEHOLDER_SECRETS = frozenset({"changeme", "change-me", "placeholder", "your-jwt-secret"})


class MissingSecretError(RuntimeError):
    """Raised when a required secret is unset or still a placeholder."""


class Settings(BaseSettings):
    # Required, read from .env or the environment
    database_url: str = Field(..., alias="DATABASE_URL")

    app_name: str = Field(default="LinkUp", alias="APP_NAME")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    cors_origins: str | None = Field(default=None, alias="CORS_ORIGINS")

    jwt_secret_key: str | None = Field(default=None, alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_expires_minutes: int = Field(default=1440, alias="JWT_EXPIRES_MINUTES")

    # Client side: where the feed layer reaches the backend
    backend_url: str = Field(default="http://localhost:8000", alias="BACKEND_URL")
    backend_api_key: str | None = Field(default=None, alias="BACKEND_API_KEY")
    backend_timeout: float = Field(default=10.0, alias="BACKEND_TIMEOUT")

    # Reverse geocoding (OpenStreetMap Nominatim, dev use only)
    geocoder_url: str = Field(default="https://nominatim.openstreetmap.org", alias="GEOCODER_URL")
    geocoder_timeout: float = Field(default=5.0, alias="GEOCODER_TIMEOUT")
    geocode_debounce_seconds: float = Field(default=0.25, alias="GEOCODE_DEBOUNCE_SECONDS")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    def require_jwt_secret(self) -> str:
        """Return the trimmed signing key or raise :class:`MissingSecretError`."""

        secret = (self.jwt_secret_key or "").strip()
        if not secret or secret.lower() in PLACEHOLDER_SECRETS:
            raise MissingSecretError("JWT_SECRET_KEY is required and must not use a placeholder value")
        return secret


@lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["MissingSecretError", "PLACEHOLDER_SECRETS", "Settings", "get_settings"]
