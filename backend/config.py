"""
Configuration management for the Poultry Market API.

Loads settings from .env via pydantic-settings.

Security notes:
    - validate_production_settings() refuses wildcard CORS and a missing
      JWT secret when ENVIRONMENT=production
"""
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Database ────────────────────────────────────────────────────
    database_url: str = "sqlite:///./data/poultry_market.db"

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"
    sql_echo: bool = False

    # ── Auth (JWT) ──────────────────────────────────────────────────
    jwt_secret: str = ""
    jwt_issuer: str = "poultry-market-api"
    jwt_access_ttl_minutes: int = 24 * 60
    auth_cookie_name: str = "token"
    auth_rate_limit_per_minute: int = 20

    # ── Notifications ───────────────────────────────────────────────
    # Channel used for workflow notifications: EMAIL | SMS | IN_APP
    notification_default_channel: str = "EMAIL"

    # ── Pagination ──────────────────────────────────────────────────
    default_page_limit: int = 10
    max_page_limit: int = 100

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8081"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # allow unknown .env keys without crashing
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def validate_production_settings(self):
        """
        Validate settings for production safety.

        Called during app startup.
        """
        if self.environment == "production":
            if "*" in self.cors_origins:
                raise ValueError(
                    "CORS_ORIGINS must not contain '*' in production. "
                    "Set explicit allowed origins."
                )
            if not self.jwt_secret:
                raise ValueError(
                    "JWT_SECRET must be set in production. "
                    "It is used to sign session tokens."
                )
            logger.info("Production settings validated")
        else:
            warnings = []
            if not self.jwt_secret:
                warnings.append("JWT_SECRET is empty (logins will fail)")
            if "*" in self.cors_origins:
                warnings.append("CORS_ORIGINS contains '*' (open access)")
            for w in warnings:
                logger.warning(w)


# Global settings instance
settings = Settings()
