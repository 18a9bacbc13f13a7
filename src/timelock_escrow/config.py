"""Application configuration via pydantic-settings.

Reads from .env file or environment variables. All settings are validated
at startup, so a malformed value fails fast with a clear error message.

Usage:
    from timelock_escrow.config import get_settings
    settings = get_settings()
    print(settings.token_symbol)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the escrow service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = True
    app_log_level: str = "DEBUG"
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # --- Clock ---
    # "manual" freezes time at manual_clock_start until advanced (demo/test networks)
    clock_mode: Literal["system", "manual"] = "system"
    manual_clock_start: int = 1_700_000_000

    # --- Default asset ---
    token_name: str = "EscrowToken"
    token_symbol: str = "EKT"
    token_decimals: int = 18
    token_initial_supply: str = "1000000000"  # whole tokens, scaled by token_decimals
    deployer_address: str = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton of the application settings."""
    return Settings()
