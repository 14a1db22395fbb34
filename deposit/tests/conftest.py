"""
Test configuration for deposit tests.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fakes import RecordingUI, balance_response
from walletapi.models import BuiltTransaction, MaxBalance

from deposit.config import DepositSettings
from deposit.form import DepositForm


@pytest.fixture
def ui() -> RecordingUI:
    return RecordingUI()


@pytest.fixture
def mock_client():
    """Wallet API client with happy-path responses."""
    client = MagicMock()
    client.get_wallet_balance = AsyncMock(return_value=balance_response(150_000_000, 50_000_000))
    client.get_maximum_balance = AsyncMock(
        return_value=MaxBalance(max_spendable_amount=199_990_000, fee=10_000)
    )
    client.estimate_fee = AsyncMock(return_value=10_000)
    client.build_transaction = AsyncMock(return_value=BuiltTransaction(hex="abcd", fee=15_000))
    client.send_transaction = AsyncMock(return_value=None)
    client.close = AsyncMock()
    return client


@pytest.fixture
def form() -> DepositForm:
    return DepositForm()


@pytest.fixture
def settings() -> DepositSettings:
    return DepositSettings(
        wallet_name="sidechain-wallet",
        settle_delay=0.01,
        balance_poll_interval=0.05,
        _env_file=None,
    )
