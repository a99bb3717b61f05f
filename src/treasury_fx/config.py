"""
Treasury FX Configuration Management

Values are read from environment variables (or a local .env file).
See .env.example for the full list.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # === Treasury Rates of Exchange API ===
    treasury_base_url: str = Field(
        default="https://api.fiscaldata.treasury.gov/services/api/fiscal_service",
        description="Fiscal Data service base URL"
    )
    treasury_timeout_seconds: float = Field(
        default=30.0,
        description="Per-attempt HTTP timeout"
    )
    treasury_default_page_size: int = Field(default=100, ge=1)

    # === Retry Policy ===
    treasury_max_retries: int = Field(
        default=3,
        ge=0,
        description="Retries after the first attempt (4 attempts total by default)"
    )
    treasury_retry_base_delay_seconds: float = Field(default=1.0, ge=0)
    treasury_retry_max_delay_seconds: float = Field(default=30.0, ge=0)
    treasury_retry_jitter_seconds: float = Field(default=1.0, ge=0)

    # === Conversion ===
    rate_lookback_months: int = Field(
        default=6,
        ge=1,
        description="How far back a rate may be taken from the transaction date"
    )

    # === API Configuration ===
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])

    # === Logging ===
    log_level: str = Field(default="INFO")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
