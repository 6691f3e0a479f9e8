"""
Application Configuration

All settings loaded from environment variables.
"""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Application
    app_name: str = "ChartDesk Backend"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS (Frontend URL)
    frontend_url: str = "http://localhost:5173"
    allowed_origins: list[str] = ["http://localhost:5173"]

    # Redis (analysis report cache)
    redis_url: str = "redis://localhost:6379"
    analysis_cache_ttl_seconds: int = 7 * 24 * 3600

    # Exchange APIs
    okx_base_url: str = "https://www.okx.com/api/v5"
    binance_base_url: str = "https://api.binance.com/api/v3"
    gate_base_url: str = "https://api.gateio.ws/api/v4"
    mexc_base_url: str = "https://api.mexc.com/api/v3"

    # Fallback chain, tried in this order
    data_source_order: list[str] = ["okx", "binance", "gate", "mexc"]
    http_timeout_seconds: float = 10.0

    # Symbol universe cache
    symbol_cache_ttl_seconds: float = 300.0

    # Dashboard polling
    poll_interval_seconds: float = 30.0
    default_kline_limit: int = 200

    # LLM Providers
    llm_primary_provider: str = "openai"  # Options: openai, anthropic
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None  # Any OpenAI-compatible endpoint
    openai_model: str = "gpt-4o-mini"
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-3-5-haiku-latest"
    llm_max_tokens: int = 4096
    llm_temperature: float = 0.3

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
