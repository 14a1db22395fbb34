"""
Deposit workflow: wires the form, validation, fee estimation, balance
polling and the transaction orchestrator together.
"""

from __future__ import annotations

from loguru import logger
from walletapi.client import WalletApiClient

from deposit.balance import BalanceMonitor
from deposit.config import DepositSettings
from deposit.debounce import Debouncer
from deposit.fee import FeeEstimator
from deposit.form import DepositForm
from deposit.orchestrator import TransactionOrchestrator
from deposit.ui import DepositUI
from deposit.validation import FormValidation, ValidationEngine


class DepositWorkflow:
    """
    Lifetime of one deposit form.

    Field edits are coalesced by the settle-delay debouncer; once settled the
    form is revalidated and, if address and amount are valid, the fee is
    re-estimated. Balance and fee updates revalidate immediately because they
    move the amount's upper bound.
    """

    def __init__(self, client: WalletApiClient, ui: DepositUI, settings: DepositSettings):
        self.client = client
        self.ui = ui
        self.settings = settings

        self.form = DepositForm()
        self.validation_engine = ValidationEngine(coin_unit=settings.coin_unit)
        self.balance_monitor = BalanceMonitor(
            client,
            ui,
            wallet_name=settings.wallet_name,
            poll_interval=settings.balance_poll_interval,
        )
        self.fee_estimator = FeeEstimator(
            client,
            ui,
            self.form,
            wallet_name=settings.wallet_name,
            account_name=settings.account_name,
            discard_stale=settings.discard_stale_fee_estimates,
        )
        self.orchestrator = TransactionOrchestrator(
            client,
            ui,
            self.form,
            self.fee_estimator,
            validate=self.current_validation,
            wallet_name=settings.wallet_name,
            account_name=settings.account_name,
        )
        self.debouncer = Debouncer(settings.settle_delay, self.on_value_changed)

        self.form.add_listener(lambda _values: self.debouncer.trigger())
        self.balance_monitor.add_listener(lambda _snapshot: self.revalidate())
        self.fee_estimator.add_listener(lambda _fee: self.revalidate())

    @property
    def total_balance(self) -> int:
        return self.balance_monitor.total_balance

    @property
    def estimated_fee(self) -> int:
        return self.fee_estimator.estimated_fee

    @property
    def form_errors(self) -> dict[str, str]:
        return self.validation_engine.form_errors

    @property
    def api_error(self) -> str:
        return self.form.api_error

    def current_validation(self) -> FormValidation:
        return self.validation_engine.evaluate(
            self.form.values, self.total_balance, self.estimated_fee
        )

    def revalidate(self) -> FormValidation:
        """Re-run validation and publish the field messages."""
        return self.validation_engine.refresh(
            self.form.values, self.total_balance, self.estimated_fee, self.form.dirty
        )

    async def on_value_changed(self) -> None:
        validation = self.revalidate()
        self.form.api_error = ""

        if validation.is_valid("address") and validation.is_valid("amount"):
            await self.fee_estimator.estimate(self.form.values, validation)

    def activate(self) -> None:
        logger.info(f"Activating deposit form for wallet '{self.settings.wallet_name}'")
        self.balance_monitor.start()

    def set_values(self, **changes: object) -> None:
        self.form.patch(**changes)

    async def deposit(self) -> bool:
        return await self.orchestrator.deposit()

    async def get_max_balance(self) -> None:
        await self.orchestrator.get_max_balance()

    async def teardown(self) -> None:
        """Cancel pending work and the balance subscription."""
        self.orchestrator.cancel()
        await self.debouncer.close()
        await self.balance_monitor.close()
        logger.debug("Deposit form torn down")
