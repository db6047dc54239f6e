"""
Configuration management for the FMCSA Register scraper.
"""

import os
from pathlib import Path
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    # Remote register source
    register_url: str = Field(
        "https://li-public.fmcsa.dot.gov/LIVIEW/PKG_register.prc_reg_detail",
        alias="FMCSA_REGISTER_URL",
    )
    register_referer: str = Field(
        "https://li-public.fmcsa.dot.gov/LIVIEW/PKG_REGISTER.prc_reg_list",
        alias="FMCSA_REGISTER_REFERER",
    )
    register_origin: str = Field("https://li-public.fmcsa.dot.gov", alias="FMCSA_REGISTER_ORIGIN")
    user_agent: str = Field(DEFAULT_USER_AGENT, alias="FMCSA_USER_AGENT")
    request_timeout: int = Field(60, alias="REQUEST_TIMEOUT")

    # Extraction
    marker_phrase: str = Field("FMCSA REGISTER", alias="REGISTER_MARKER_PHRASE")
    context_window: int = Field(1500, alias="CONTEXT_WINDOW")
    category_precedence: str = Field("declared", alias="CATEGORY_PRECEDENCE")

    # Storage
    database_path: str = Field("data/fmcsa_register.db", alias="DATABASE_PATH")
    default_query_limit: int = Field(500, alias="DEFAULT_QUERY_LIMIT")

    # Redis cache
    cache_enabled: bool = Field(False, alias="CACHE_ENABLED")
    redis_host: str = Field("localhost", alias="REDIS_HOST")
    redis_port: int = Field(6379, alias="REDIS_PORT")
    redis_db: int = Field(0, alias="REDIS_DB")
    redis_password: Optional[str] = Field(None, alias="REDIS_PASSWORD")
    cache_ttl_seconds: int = Field(86400, alias="CACHE_TTL_SECONDS")

    # Backfill
    max_workers: int = Field(4, alias="MAX_WORKERS")

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_dir: str = Field("logs", alias="LOG_DIR")

    @property
    def logs_dir(self) -> Path:
        """Get the logs directory."""
        return Path(self.log_dir)


# Global settings instance
settings = Settings()

# Ensure required directories exist
os.makedirs(settings.log_dir, exist_ok=True)
