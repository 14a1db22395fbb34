"""
Fee estimation for the deposit form.

estimated_fee has a single write path, FeeEstimator.apply(), which the
orchestrator also uses after a build or a max-balance lookup. Overlapping
estimates are not cancelled. By default the most recently completed response
is applied, even when it answers an older request; with discard_stale enabled
each request gets a sequence number and responses older than the last applied
one are dropped.
"""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger
from walletapi.client import DEFAULT_ACCOUNT, WalletApiClient
from walletapi.errors import ErrorKind, WalletApiError
from walletapi.models import FeeEstimationRequest

from deposit.form import DepositForm, DepositFormValues
from deposit.ui import DepositUI
from deposit.validation import FormValidation


class FeeEstimator:
    def __init__(
        self,
        client: WalletApiClient,
        ui: DepositUI,
        form: DepositForm,
        wallet_name: str,
        account_name: str = DEFAULT_ACCOUNT,
        discard_stale: bool = False,
    ):
        self.client = client
        self.ui = ui
        self.form = form
        self.wallet_name = wallet_name
        self.account_name = account_name
        self.discard_stale = discard_stale

        self.estimated_fee = 0
        self._listeners: list[Callable[[int], None]] = []
        self._last_requested = 0
        self._last_applied = 0

    def add_listener(self, listener: Callable[[int], None]) -> None:
        self._listeners.append(listener)

    def apply(self, fee: int) -> None:
        """Set the current fee estimate and notify listeners."""
        self.estimated_fee = int(fee)
        for listener in self._listeners:
            listener(self.estimated_fee)

    async def estimate(self, values: DepositFormValues, validation: FormValidation) -> int | None:
        """
        Estimate the fee for the current form values.

        No request is issued unless both address and amount are valid in
        `validation`.

        Returns:
            The applied fee in satoshis, or None if skipped, failed or stale
        """
        if not (validation.is_valid("address") and validation.is_valid("amount")):
            logger.debug("Skipping fee estimation: address or amount is invalid")
            return None
        if values.fee is None:
            logger.debug("Skipping fee estimation: no fee tier selected")
            return None

        self._last_requested += 1
        sequence = self._last_requested

        request = FeeEstimationRequest(
            wallet_name=self.wallet_name,
            account_name=self.account_name,
            destination_address=values.address.strip(),
            amount=values.amount,
            fee_type=values.fee,
        )

        try:
            fee = await self.client.estimate_fee(request)
        except WalletApiError as e:
            self._handle_error(e)
            return None

        if self.discard_stale and sequence < self._last_applied:
            logger.debug(
                f"Dropping stale fee estimate #{sequence} (already applied #{self._last_applied})"
            )
            return None

        self._last_applied = max(self._last_applied, sequence)
        logger.debug(f"Fee estimate #{sequence}: {fee} sats")
        self.apply(fee)
        return self.estimated_fee

    def _handle_error(self, error: WalletApiError) -> None:
        classified = error.classification
        if classified.kind == ErrorKind.CONNECTIVITY:
            self.ui.open_dialog(None, None)
        elif classified.kind == ErrorKind.DOMAIN_MESSAGE:
            self.form.api_error = classified.message or ""
        else:
            logger.warning(f"Fee estimation failed: {error} body={error.body!r}")
