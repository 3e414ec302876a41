"""Engine configuration using pydantic-settings.

Backend credentials, endpoints and quote lifetimes are read from the
environment (or a .env file). Nothing here is required for tests, which use
the dry-run backend.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug logging")
    dry_run: bool = Field(
        default=False, description="Use the simulated backend instead of real APIs"
    )

    # ======================
    # Engine
    # ======================
    http_timeout_seconds: float = Field(
        default=30.0, description="Timeout for a single backend HTTP call"
    )
    max_swappable_iterations: int = Field(
        default=8, ge=1, description="Iteration budget of the max-swappable resolver"
    )

    # ======================
    # Godex (central exchange)
    # ======================
    godex_api_url: str = Field(
        default="https://api.godex.io/api/v1/", description="Godex API base URL"
    )
    godex_api_key: Optional[str] = Field(default=None, description="Godex affiliate id")
    godex_quote_lifetime_seconds: int = Field(
        default=60, description="Validity of a Godex quote"
    )
    godex_network_fee_percent: Decimal = Field(
        default=Decimal("0.001"),
        ge=0,
        description="Share of the amount reserved for the deposit transaction fee",
    )

    # ======================
    # Totle (DEX aggregator)
    # ======================
    totle_api_url: str = Field(
        default="https://api.totle.com", description="Totle API base URL"
    )
    totle_api_key: Optional[str] = Field(default=None, description="Totle API key")
    totle_partner_contract: Optional[str] = Field(
        default=None, description="Totle partner contract address"
    )
    totle_quote_lifetime_seconds: int = Field(
        default=20 * 60, description="Validity of a Totle quote"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def get_quote_lifetime(self, backend: str) -> int:
        """Get quote lifetime in seconds for a backend."""
        lifetimes = {
            "godex": self.godex_quote_lifetime_seconds,
            "totle": self.totle_quote_lifetime_seconds,
        }
        return lifetimes.get(backend.lower(), 60)

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "dry_run": self.dry_run,
            "http_timeout_seconds": self.http_timeout_seconds,
            "max_swappable_iterations": self.max_swappable_iterations,
            "godex": {
                "url": self.godex_api_url,
                "api_key": "***" if self.godex_api_key else "(not set)",
                "quote_lifetime": self.godex_quote_lifetime_seconds,
                "network_fee_percent": str(self.godex_network_fee_percent),
            },
            "totle": {
                "url": self.totle_api_url,
                "api_key": "***" if self.totle_api_key else "(not set)",
                "partner_contract": self.totle_partner_contract or "(not set)",
                "quote_lifetime": self.totle_quote_lifetime_seconds,
            },
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
