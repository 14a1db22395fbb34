"""
HTTP client for the full node wallet REST API.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from walletapi.errors import WalletApiError
from walletapi.models import (
    BuiltTransaction,
    FeeEstimationRequest,
    FeeTier,
    MaxBalance,
    TransactionBuildRequest,
    TransactionSendRequest,
    WalletBalance,
)

# Timeout for regular API calls (seconds)
DEFAULT_API_TIMEOUT = 30.0

DEFAULT_ACCOUNT = "account 0"


class WalletApiClient:
    """
    Thin async client for the wallet endpoints used by the deposit workflow.

    Every failure is raised as WalletApiError: transport problems (refused
    connection, timeout) with status 0, HTTP errors with the response status
    and its body (parsed JSON when possible, raw text otherwise). A success
    response whose body does not decode into the expected model is raised with
    its 2xx status and `malformed` set, which classifies as SILENT.
    """

    def __init__(
        self,
        api_url: str = "http://127.0.0.1:37221",
        timeout: float = DEFAULT_API_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def _api_call(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        parse: Callable[[Any], Any] | None = None,
    ) -> Any:
        """
        Make an API call to the wallet service.

        Args:
            parse: Converts the decoded body; a body it rejects is raised as a
                malformed-response WalletApiError

        Returns:
            Decoded JSON response (None for an empty body), passed through `parse`

        Raises:
            WalletApiError: On transport or HTTP errors, or a malformed success body
        """
        url = f"{self.api_url}/{endpoint}"

        try:
            if method == "GET":
                response = await self.client.get(url, params=params)
            elif method == "POST":
                response = await self.client.post(url, json=data)
            else:
                raise ValueError(f"Unsupported HTTP method: {method}")

            response.raise_for_status()

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            try:
                body: Any = e.response.json()
            except ValueError:
                body = e.response.text
            logger.debug(f"Wallet API call failed: {endpoint} - HTTP {status}")
            raise WalletApiError(status, body, endpoint) from e

        except httpx.TransportError as e:
            logger.error(f"Wallet API unreachable: {endpoint} - {type(e).__name__}: {e}")
            raise WalletApiError(0, None, endpoint) from e

        body = None
        if response.content:
            try:
                body = response.json()
            except ValueError:
                body = response.text

        if parse is None:
            return body
        try:
            return parse(body)
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning(f"Malformed wallet API response: {endpoint} - {e}")
            raise WalletApiError(response.status_code, body, endpoint, malformed=True) from e

    async def get_wallet_balance(self, wallet_name: str) -> WalletBalance:
        return await self._api_call(
            "GET",
            "api/wallet/balance",
            params={"walletName": wallet_name},
            parse=lambda data: WalletBalance.model_validate(data or {}),
        )

    async def get_maximum_balance(
        self,
        wallet_name: str,
        fee_type: FeeTier,
        account_name: str = DEFAULT_ACCOUNT,
        allow_unconfirmed: bool = True,
    ) -> MaxBalance:
        """Get the maximum spendable amount and its fee for a fee tier."""
        params = {
            "walletName": wallet_name,
            "accountName": account_name,
            "feeType": FeeTier(fee_type).value,
            "allowUnconfirmed": "true" if allow_unconfirmed else "false",
        }
        return await self._api_call(
            "GET", "api/wallet/maxbalance", params=params, parse=MaxBalance.model_validate
        )

    async def estimate_fee(self, request: FeeEstimationRequest) -> int:
        """Estimate the fee (in satoshis) of a transaction to the given address."""
        return await self._api_call(
            "GET", "api/wallet/estimate-txfee", params=request.to_params(), parse=int
        )

    async def build_transaction(self, request: TransactionBuildRequest) -> BuiltTransaction:
        """Build and sign a transaction without broadcasting it."""
        return await self._api_call(
            "POST",
            "api/wallet/build-transaction",
            data=request.to_body(),
            parse=BuiltTransaction.model_validate,
        )

    async def send_transaction(self, tx_hex: str) -> None:
        """Broadcast a previously built transaction."""
        await self._api_call(
            "POST",
            "api/wallet/send-transaction",
            data=TransactionSendRequest(hex=tx_hex).model_dump(),
        )

    async def close(self) -> None:
        await self.client.aclose()
