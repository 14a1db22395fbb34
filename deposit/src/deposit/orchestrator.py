"""
Deposit transaction orchestration.

A deposit attempt moves through:

    IDLE -> BUILDING -> SENDING -> CONFIRMING -> IDLE
    IDLE -> BUILDING -> FAILED
    IDLE -> BUILDING -> SENDING -> FAILED

Build and send requests are never aborted. Cancelling an attempt clears the
is_depositing flag, and any response that arrives afterwards is discarded
instead of advancing the state machine. The send step is only reachable from
a successful build of the same attempt. The form password is cleared as soon
as a build succeeds.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from loguru import logger
from walletapi.client import DEFAULT_ACCOUNT, WalletApiClient
from walletapi.errors import ClassifiedError, ErrorKind, WalletApiError
from walletapi.models import BuiltTransaction, MaxBalance, TransactionBuildRequest

from deposit.fee import FeeEstimator
from deposit.form import DepositForm
from deposit.ui import DepositUI
from deposit.units import format_coins, to_coins
from deposit.validation import FormValidation

CONNECTIVITY_MESSAGE = (
    "Something went wrong while connecting to the API. Please restart the application."
)


class DepositState(str, Enum):
    IDLE = "idle"
    BUILDING = "building"
    SENDING = "sending"
    CONFIRMING = "confirming"
    FAILED = "failed"


@dataclass
class DepositAttempt:
    """One build -> send -> confirm sequence."""

    attempt_id: int
    request: TransactionBuildRequest | None = None
    built: BuiltTransaction | None = None
    confirmed: bool = False


class TransactionOrchestrator:
    def __init__(
        self,
        client: WalletApiClient,
        ui: DepositUI,
        form: DepositForm,
        fee_estimator: FeeEstimator,
        validate: Callable[[], FormValidation],
        wallet_name: str,
        account_name: str = DEFAULT_ACCOUNT,
    ):
        """
        Args:
            client: Wallet API client
            ui: Receiver of dialog and confirmation requests
            form: Deposit form holding the user's input
            fee_estimator: Owner of the current fee estimate
            validate: Returns the form validation against the live balance and fee
            wallet_name: Wallet to spend from
            account_name: Account within the wallet
        """
        self.client = client
        self.ui = ui
        self.form = form
        self.fee_estimator = fee_estimator
        self.validate = validate
        self.wallet_name = wallet_name
        self.account_name = account_name

        self.state = DepositState.IDLE
        self.is_depositing = False
        self.attempt: DepositAttempt | None = None
        self.transaction_hex = ""
        self._attempt_counter = 0

    def _is_current(self, attempt: DepositAttempt | None) -> bool:
        return attempt is not None and self.is_depositing and self.attempt is attempt

    async def deposit(self) -> bool:
        """
        Start a deposit attempt with the current form values.

        Returns:
            True if the transaction was broadcast and confirmation requested
        """
        if self.is_depositing:
            logger.warning("Deposit already in progress, ignoring")
            return False

        validation = self.validate()
        if not validation.valid:
            invalid = [name for name, f in validation.fields.items() if not f.valid]
            logger.warning(f"Cannot deposit, invalid field(s): {', '.join(invalid)}")
            return False

        self._attempt_counter += 1
        attempt = DepositAttempt(attempt_id=self._attempt_counter)
        self.attempt = attempt
        self.is_depositing = True
        self.form.api_error = ""
        self.state = DepositState.BUILDING
        logger.info(f"Starting deposit attempt #{attempt.attempt_id}")

        await self.build_transaction()
        return attempt.confirmed

    def cancel(self) -> None:
        """Abandon the current attempt; pending responses will be discarded."""
        if self.is_depositing and self.attempt is not None:
            logger.info(f"Deposit attempt #{self.attempt.attempt_id} cancelled")
        self.is_depositing = False
        self.attempt = None
        if self.state in (DepositState.BUILDING, DepositState.SENDING):
            self.state = DepositState.IDLE

    async def build_transaction(self) -> None:
        """Build and sign the transaction; continue to send if the attempt is still live."""
        attempt = self.attempt
        values = self.form.values
        if values.fee is None:
            logger.warning("Cannot build transaction without a fee tier")
            return

        request = TransactionBuildRequest(
            wallet_name=self.wallet_name,
            account_name=self.account_name,
            password=values.password,
            destination_address=values.address.strip(),
            amount=values.amount,
            fee_type=values.fee,
            fee_amount=to_coins(self.fee_estimator.estimated_fee),
        )
        logger.info(
            f"Building transaction: {request.amount} to {request.destination_address} "
            f"(fee {format(request.fee_amount, 'f')})"
        )

        try:
            built = await self.client.build_transaction(request)
        except WalletApiError as e:
            self._fail(attempt, e, "build")
            return

        self.form.clear_password()
        self.fee_estimator.apply(built.fee)
        self.transaction_hex = built.hex

        if not self._is_current(attempt):
            logger.info("Build result discarded: deposit no longer in progress")
            return

        attempt.request = request.model_copy(update={"password": ""})
        attempt.built = built
        self.state = DepositState.SENDING
        await self.deposit_transaction(built.hex)

    async def deposit_transaction(self, tx_hex: str) -> None:
        """Broadcast the hex built in the current attempt."""
        attempt = self.attempt
        if (
            not self._is_current(attempt)
            or self.state != DepositState.SENDING
            or attempt.built is None
            or attempt.built.hex != tx_hex
        ):
            logger.error("Refusing to send a transaction that was not built in this attempt")
            return

        logger.info(f"Broadcasting transaction ({len(tx_hex) // 2} bytes)")
        try:
            await self.client.send_transaction(tx_hex)
        except WalletApiError as e:
            self._fail(attempt, e, "send")
            return

        if not self._is_current(attempt):
            logger.info("Send result discarded: deposit no longer in progress")
            return

        self.ui.close_form()
        self.state = DepositState.CONFIRMING
        self.ui.open_confirmation(attempt.request, self.fee_estimator.estimated_fee)
        attempt.confirmed = True
        logger.info(f"Deposit attempt #{attempt.attempt_id} broadcast")
        self._finish()

    async def get_max_balance(self) -> MaxBalance | None:
        """Fill the amount field with the maximum spendable amount for the fee tier."""
        fee_type = self.form.values.fee
        if fee_type is None:
            logger.warning("Cannot get maximum balance without a fee tier")
            return None

        try:
            max_balance = await self.client.get_maximum_balance(
                self.wallet_name, fee_type, account_name=self.account_name
            )
        except WalletApiError as e:
            self._report(e, "max balance")
            return None

        self.form.patch(amount=format_coins(max_balance.max_spendable_amount))
        self.fee_estimator.apply(max_balance.fee)
        return max_balance

    def _finish(self) -> None:
        self.is_depositing = False
        self.attempt = None
        self.state = DepositState.IDLE

    def _fail(self, attempt: DepositAttempt | None, error: WalletApiError, step: str) -> None:
        if attempt is not None and self.attempt is not attempt:
            logger.info(f"Ignoring {step} failure of abandoned attempt #{attempt.attempt_id}")
            return
        self.is_depositing = False
        self.attempt = None
        self.state = DepositState.FAILED
        self._report(error, step)

    def _report(self, error: WalletApiError, step: str) -> ClassifiedError:
        classified = error.classification
        if classified.kind == ErrorKind.CONNECTIVITY:
            self.form.api_error = CONNECTIVITY_MESSAGE
        elif classified.kind == ErrorKind.DOMAIN_MESSAGE:
            self.form.api_error = classified.message or ""
        else:
            logger.warning(f"{step.capitalize()} failed: {error} body={error.body!r}")
        return classified
