"""Run configuration loaded from environment variables (and ``.env``)."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class E2ESettings(BaseSettings):
    """Endpoints and retry budgets for one testnet run.

    Every field maps to the upper-cased env var of the same name
    (``API_URL``, ``IOTA_RPC_URL``, ``PRIVATE_KEY``, ...).
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Endpoints
    api_url: str = "http://localhost:8090"
    iota_rpc_url: str = "https://api.testnet.iota.cafe"
    iota_faucet_url: str = "https://faucet.testnet.iota.cafe"
    iota_explorer_url: str = "https://explorer.iota.org/testnet"

    # Wallet (hex-encoded 32-byte Ed25519 secret, optional 0x prefix)
    private_key: SecretStr | None = None

    # Faucet
    faucet_max_retries: int = Field(default=3, ge=1)

    # Balance watcher
    balance_max_retries: int = Field(default=10, ge=1)
    balance_interval_ms: int = Field(default=3000, ge=0)

    # Publisher
    publish_timeout_seconds: float = Field(default=60.0, gt=0)
    gas_budget: int = Field(default=500_000_000, gt=0)

    # Orchestrator
    concurrency: int = Field(default=1, ge=1)
    health_max_retries: int = Field(default=30, ge=1)
    health_interval_ms: int = Field(default=2000, ge=0)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "console"] = "console"

    @property
    def private_key_hex(self) -> str | None:
        if self.private_key is None:
            return None
        return self.private_key.get_secret_value() or None


_settings: E2ESettings | None = None


def get_settings() -> E2ESettings:
    """Get or create the settings instance."""
    global _settings
    if _settings is None:
        _settings = E2ESettings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings (tests, re-reading the environment)."""
    global _settings
    _settings = None
