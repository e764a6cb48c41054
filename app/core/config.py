"""
Application configuration with environment-specific settings.

Supported environment files (loaded in order of precedence):
1. .env.{ENVIRONMENT} (e.g., .env.production, .env.development)
2. .env (fallback)

Nothing here is secret: the ESPN site API is public. The file mostly
carries cache TTLs, the analysis batch size and strategy defaults, e.g.

    ESPN_CACHE_TTL=120
    ANALYSIS_BATCH_SIZE=5
    DEFAULT_RISK_MODE=conservative
"""
import os
import logging
from pathlib import Path
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).parent.parent.parent

# Local web and Expo dev servers
DEV_CORS_ORIGINS = [
    "http://localhost:8081",
    "http://localhost:19006",
    "http://127.0.0.1:8081",
    "http://127.0.0.1:19006",
]

logger = logging.getLogger(__name__)


def _env_file() -> Path:
    """The .env file for the current ENVIRONMENT, falling back to .env."""
    environment = os.getenv("ENVIRONMENT", "development")
    specific = PROJECT_ROOT / f".env.{environment}"
    if specific.exists():
        logger.info(f"Loading environment from {specific.name}")
        return specific
    return PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Service settings; every field can be overridden by an env var of the same name."""

    model_config = SettingsConfigDict(
        env_file=str(_env_file()),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    ENVIRONMENT: Literal["development", "production", "test"] = "development"
    APP_NAME: str = "RTP Picks & Strategy API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    RATE_LIMIT_ENABLED: bool = True

    # ESPN site API; TTLs in seconds
    ESPN_TIMEOUT: float = Field(15.0, gt=0)
    ESPN_CACHE_TTL: int = Field(300, ge=0)  # scoreboards and team records
    ADVANCED_STATS_CACHE_TTL: int = Field(6 * 60 * 60, ge=0)
    SCHEDULE_CACHE_TTL: int = Field(60 * 60, ge=0)
    INJURIES_CACHE_TTL: int = Field(30 * 60, ge=0)
    SCOREBOARD_LOOKAHEAD_DAYS: int = Field(7, ge=0)

    # Games analyzed concurrently per batch
    ANALYSIS_BATCH_SIZE: int = Field(3, ge=1)

    DEFAULT_BANKROLL: float = Field(100.0, gt=0)
    DEFAULT_RISK_MODE: Literal["conservative", "balanced", "aggressive"] = "balanced"

    # Comma-separated
    CORS_ORIGINS_STR: str = ""

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """
        Allowed CORS origins.

        Explicit origins from CORS_ORIGINS_STR win. Production never gets a
        wildcard or the development defaults.
        """
        origins = [o.strip() for o in self.CORS_ORIGINS_STR.split(",") if o.strip()]

        if self.is_production():
            if "*" in origins:
                logger.warning("Wildcard CORS origin ignored in production; set explicit origins")
                return []
            if not origins:
                logger.warning("CORS_ORIGINS_STR not set in production; cross-origin requests disabled")
            return origins

        return origins or list(DEV_CORS_ORIGINS)

    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


settings = Settings()
