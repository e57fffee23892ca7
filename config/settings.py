"""
Inventory Insights settings.

Configuration loaded from environment variables.
"""
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Inventory Insights configuration."""

    # WooCommerce store
    woocommerce_url: str = "http://localhost:8080"
    woocommerce_consumer_key: str = ""
    woocommerce_consumer_secret: str = ""
    woocommerce_timeout_seconds: float = 30.0
    woocommerce_per_page: int = 100

    # Circuit breaker around catalog calls
    catalog_failure_threshold: int = 5
    catalog_recovery_timeout: float = 30.0

    # Anti-forgery tokens
    nonce_secret: str = ""  # random per process when empty
    nonce_lifetime_seconds: int = 86400

    # Search
    strict_selectors: bool = False

    # Client-local recent searches
    history_file: str = "~/.inventory_insights/recent_searches.json"
    history_limit: int = 10

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    # Server
    cors_origins: str = "*"  # Comma-separated list
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False
    workers: int = 1

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def get_cors_origins(self) -> List[str]:
        """
        Get allowed CORS origins.

        Returns:
            List of origins.
        """
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance.
    """
    return Settings()
