"""
Configuration for the sidechain deposit workflow.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from walletapi.client import DEFAULT_ACCOUNT


class DepositSettings(BaseSettings):
    """Settings for the deposit workflow, read from DEPOSIT_* env vars or .env."""

    model_config = SettingsConfigDict(
        env_prefix="DEPOSIT_", env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    # Wallet service
    api_url: str = "http://127.0.0.1:37221"
    request_timeout: float = Field(default=30.0, gt=0)
    wallet_name: str = ""
    account_name: str = DEFAULT_ACCOUNT
    coin_unit: str = "STRAT"

    # Timing
    settle_delay: float = Field(
        default=0.3, ge=0.0, description="Quiet period after the last edit (seconds)"
    )
    balance_poll_interval: float = Field(
        default=5.0, gt=0.0, description="Seconds between balance refreshes"
    )

    # Drop fee estimates that complete after a newer request was applied.
    # Off by default: the most recently completed response wins.
    discard_stale_fee_estimates: bool = False

    log_level: str = "INFO"


def get_settings() -> DepositSettings:
    return DepositSettings()
