"""
Wallet balance polling.

The monitor owns the wallet snapshot and the polling subscription. Failures
are handled inside the subscription:

- service unreachable: stop and show the connectivity dialog
- domain error with a description: stop and show its message
- domain error without a description: stop and immediately start again
- malformed success body: log and keep polling
- anything else: log and stop
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from loguru import logger
from walletapi.client import WalletApiClient
from walletapi.errors import ErrorKind, WalletApiError

from deposit.ui import DepositUI


class MonitorState(str, Enum):
    ACTIVE = "active"
    STOPPED = "stopped"


@dataclass(frozen=True)
class WalletSnapshot:
    total_balance: int = 0  # confirmed + unconfirmed, in satoshis


class BalanceSubscription:
    """Handle on a running polling task."""

    def __init__(self, task: asyncio.Task[None]):
        self._task = task

    @property
    def active(self) -> bool:
        return not self._task.done()

    def cancel(self) -> None:
        # The poll loop may tear down its own subscription; it then just returns
        if not self._task.done() and self._task is not asyncio.current_task():
            self._task.cancel()

    async def wait_closed(self) -> None:
        if self._task is asyncio.current_task():
            return
        with contextlib.suppress(asyncio.CancelledError):
            await self._task


class BalanceMonitor:
    def __init__(
        self,
        client: WalletApiClient,
        ui: DepositUI,
        wallet_name: str,
        poll_interval: float = 5.0,
    ):
        self.client = client
        self.ui = ui
        self.wallet_name = wallet_name
        self.poll_interval = poll_interval

        self.snapshot = WalletSnapshot()
        self.state = MonitorState.STOPPED
        self.restart_count = 0
        self._subscription: BalanceSubscription | None = None
        self._listeners: list[Callable[[WalletSnapshot], None]] = []

    @property
    def total_balance(self) -> int:
        return self.snapshot.total_balance

    def add_listener(self, listener: Callable[[WalletSnapshot], None]) -> None:
        self._listeners.append(listener)

    async def refresh(self, wallet_name: str | None = None) -> WalletSnapshot:
        """
        Fetch the wallet balance once and update the snapshot.

        Raises:
            WalletApiError: If the balance call fails
        """
        balance = await self.client.get_wallet_balance(wallet_name or self.wallet_name)
        if not balance.balances:
            logger.warning("Balance response contained no accounts, keeping previous balance")
            return self.snapshot

        self.snapshot = WalletSnapshot(total_balance=balance.balances[0].total)
        logger.debug(f"Wallet balance: {self.snapshot.total_balance:,} sats")
        for listener in self._listeners:
            listener(self.snapshot)
        return self.snapshot

    def start(self) -> None:
        """Open the polling subscription. No-op if already active."""
        if self._subscription is not None and self._subscription.active:
            return
        self.state = MonitorState.ACTIVE
        self._subscription = BalanceSubscription(asyncio.create_task(self._poll()))

    def stop(self) -> None:
        """Cancel the polling subscription."""
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        self.state = MonitorState.STOPPED

    async def close(self) -> None:
        subscription = self._subscription
        self.stop()
        if subscription is not None:
            await subscription.wait_closed()

    async def _poll(self) -> None:
        while True:
            try:
                await self.refresh()
            except WalletApiError as e:
                if not e.malformed:
                    self._handle_error(e)
                    return
                logger.error(f"Malformed balance response: {e.body!r}")

            await asyncio.sleep(self.poll_interval)

    def _handle_error(self, error: WalletApiError) -> None:
        classified = error.classification

        if classified.kind == ErrorKind.CONNECTIVITY:
            self.stop()
            self.ui.open_dialog(None, None)
        elif classified.kind == ErrorKind.DOMAIN_MESSAGE and classified.description_bearing:
            self.stop()
            self.ui.open_dialog(None, classified.message)
        elif classified.kind == ErrorKind.DOMAIN_MESSAGE:
            logger.debug(f"Transient balance error ({classified.message}), restarting")
            self.stop()
            self.restart_count += 1
            self.start()
        else:
            logger.error(f"Balance polling failed: {error} body={error.body!r}")
            self.stop()
