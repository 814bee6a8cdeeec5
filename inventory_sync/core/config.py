# inventory_sync/core/config.py

import os
from functools import lru_cache
from typing import Optional
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings.
    Loads values from environment variables (.env file)
    """
    # Database settings
    DATABASE_URL: str = ""

    # Reconciliation engine
    SYNC_BATCH_SIZE: int = 25              # Items per chunk
    SYNC_BATCH_DELAY_SECONDS: float = 0.1  # Pause between chunks
    SYNC_ITEM_CONCURRENCY: int = 5         # Concurrent items inside a chunk
    SYNC_JOB_TIMEOUT_SECONDS: float = 600.0
    WEBHOOK_DEDUP_WINDOW_SECONDS: int = 60

    # Platform adapters
    PLATFORM_REQUEST_TIMEOUT: float = 15.0
    PLATFORM_MAX_PAGES: int = 100

    # Webhook secrets
    CLOVER_WEBHOOK_SECRET: str = ""
    SHOPIFY_WEBHOOK_SECRET: str = ""
    BIGCOMMERCE_WEBHOOK_SECRET: str = ""

    # BigCommerce (CLI only, per-tenant credentials normally come from the caller)
    BIGCOMMERCE_STORE_HASH: str = ""
    BIGCOMMERCE_CLIENT_ID: str = ""
    BIGCOMMERCE_ACCESS_TOKEN: str = ""

    # Shopify
    SHOPIFY_STORE_DOMAIN: str = ""
    SHOPIFY_ACCESS_TOKEN: str = ""

    # Clover
    CLOVER_MERCHANT_ID: str = ""
    CLOVER_ACCESS_TOKEN: str = ""
    CLOVER_ENVIRONMENT: str = "us"

    # AI labelling
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    model_config = ConfigDict(
        env_file=os.environ.get('ENV_FILE', '.env') if os.path.exists('.env') else None,
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings():
    """Cached settings to avoid loading .env file for every call"""
    return Settings()

def clear_settings_cache():
    """Clear the settings cache - useful when switching between environments"""
    get_settings.cache_clear()

def get_webhook_secret(platform: str) -> Optional[str]:
    """Get the webhook secret configured for a platform ('clover', 'shopify', 'bigcommerce')"""
    settings = get_settings()
    secret = getattr(settings, f"{platform.upper()}_WEBHOOK_SECRET", "")
    return secret or None
