"""
Outbound requests from the deposit workflow to the presentation layer.
"""

from __future__ import annotations

from typing import Protocol

from loguru import logger
from walletapi.models import TransactionBuildRequest

from deposit.units import format_coins


class DepositUI(Protocol):
    def open_dialog(self, title: str | None = None, message: str | None = None) -> None:
        """Show a generic informational dialog. (None, None) means the connectivity dialog."""

    def open_confirmation(self, transaction: TransactionBuildRequest, fee: int) -> None:
        """Show the blocking confirmation for a broadcast transaction."""

    def close_form(self) -> None:
        """Close the deposit form."""


class LoggingUI:
    """DepositUI that reports every request through the logger."""

    def __init__(self, coin_unit: str = "STRAT") -> None:
        self.coin_unit = coin_unit
        self.confirmed: list[tuple[TransactionBuildRequest, int]] = []

    def open_dialog(self, title: str | None = None, message: str | None = None) -> None:
        if title is None and message is None:
            logger.error("Something went wrong while connecting to the API.")
            return
        logger.warning(f"{title or 'Notice'}: {message or ''}")

    def open_confirmation(self, transaction: TransactionBuildRequest, fee: int) -> None:
        self.confirmed.append((transaction, fee))
        logger.info(
            f"Deposit of {transaction.amount} {self.coin_unit} to "
            f"{transaction.destination_address} broadcast "
            f"(fee {format_coins(fee)} {self.coin_unit})"
        )

    def close_form(self) -> None:
        logger.debug("Deposit form closed")
