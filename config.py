# config.py

"""Application configuration utilities.

Values are primarily loaded from ``config.json`` and may be overridden by
environment variables. The :func:`get_settings` helper merges the two sources
and caches the result.
"""

from __future__ import annotations

import json
import os
from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment.

    ``PRODUCTION`` hides exception details from error responses; every other
    value exposes them to ease debugging.
    """

    DEVELOPMENT = "development"
    PRODUCTION = "production"


class BankAccount(BaseModel):
    """Bank account shown to customers paying by transfer."""

    bank_name: str
    account_number: str
    account_name: str


class Settings(BaseSettings):
    """Application settings merged from JSON and environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: Environment = Environment.DEVELOPMENT
    postgres_tenant_dsn_template: str = "sqlite+aiosqlite:///./tenant_{tenant_id}.db"
    redis_url: str = "redis://localhost:6379/0"

    tax_rate: float = 0.11
    service_fee_rate: float = 0.05
    min_order_value: int = 1000
    prep_window_minutes: int = 30

    proof_max_bytes: int = 5 * 1024 * 1024
    proof_max_dimension: int = 1600
    proof_jpeg_quality: int = 80
    storage_backend: str = "local"
    media_dir: str = "media"

    merchant_name: str = "Cafe"
    qris_static_code: str = "QRIS_STATIC_CODE"
    bank_accounts: list[BankAccount] = []
    transfer_expiry_minutes: int = 60

    retry_attempts: int = 3
    retry_base_delay: float = 0.1
    storage_timeout_secs: float = 5.0

    default_language: str = "id"

    @property
    def is_production(self) -> bool:
        return self.env is Environment.PRODUCTION


# Cached singleton to avoid repeated file reads
@lru_cache
def get_settings() -> Settings:
    """Return merged settings with environment variable precedence.

    The configuration is read from ``config.json`` located alongside this file
    and fed into :class:`Settings`. Environment variables override any values
    from the JSON file. The result is cached to prevent repeated disk reads.
    """

    config_path = Path(__file__).with_name("config.json")
    data = json.loads(config_path.read_text()) if config_path.exists() else {}
    env_override = {
        k.lower(): v
        for k, v in os.environ.items()
        if k.lower() in Settings.model_fields
    }
    merged = {**data, **env_override}
    # Environment variables override values from the JSON file.
    return Settings(**merged)
