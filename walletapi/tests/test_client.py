"""
Tests for WalletApiClient against a mocked transport.
"""

from __future__ import annotations

import json
from decimal import Decimal

import httpx
import pytest

from walletapi.client import WalletApiClient
from walletapi.errors import ErrorKind, WalletApiError
from walletapi.models import FeeEstimationRequest, FeeTier, TransactionBuildRequest

ADDRESS = "1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa"


def make_client(handler) -> tuple[WalletApiClient, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    client = WalletApiClient("http://wallet.test/", transport=httpx.MockTransport(record))
    return client, requests


class TestQueries:
    @pytest.mark.asyncio
    async def test_get_wallet_balance(self):
        client, requests = make_client(
            lambda _r: httpx.Response(
                200,
                json={
                    "balances": [
                        {
                            "accountName": "account 0",
                            "amountConfirmed": 150_000_000,
                            "amountUnconfirmed": 50_000_000,
                        }
                    ]
                },
            )
        )

        balance = await client.get_wallet_balance("sidechain-wallet")

        assert balance.balances[0].total == 200_000_000
        assert requests[0].url.path == "/api/wallet/balance"
        assert requests[0].url.params["walletName"] == "sidechain-wallet"
        await client.close()

    @pytest.mark.asyncio
    async def test_get_maximum_balance(self):
        client, requests = make_client(
            lambda _r: httpx.Response(200, json={"maxSpendableAmount": 199_990_000, "fee": 10_000})
        )

        result = await client.get_maximum_balance("sidechain-wallet", FeeTier.HIGH)

        assert result.max_spendable_amount == 199_990_000
        assert result.fee == 10_000
        params = requests[0].url.params
        assert params["accountName"] == "account 0"
        assert params["feeType"] == "high"
        assert params["allowUnconfirmed"] == "true"
        await client.close()

    @pytest.mark.asyncio
    async def test_estimate_fee(self):
        client, requests = make_client(lambda _r: httpx.Response(200, json=10_000))
        request = FeeEstimationRequest(
            wallet_name="sidechain-wallet",
            account_name="account 0",
            destination_address=ADDRESS,
            amount="1.5",
            fee_type=FeeTier.LOW,
        )

        assert await client.estimate_fee(request) == 10_000
        params = requests[0].url.params
        assert requests[0].url.path == "/api/wallet/estimate-txfee"
        assert params["destinationAddress"] == ADDRESS
        assert params["amount"] == "1.5"
        assert params["feeType"] == "low"
        await client.close()


class TestTransactions:
    @pytest.mark.asyncio
    async def test_build_transaction_body(self):
        client, requests = make_client(
            lambda _r: httpx.Response(200, json={"hex": "abcd", "fee": 15_000})
        )
        request = TransactionBuildRequest(
            wallet_name="sidechain-wallet",
            account_name="account 0",
            password="hunter2",
            destination_address=ADDRESS,
            amount="1.5",
            fee_type=FeeTier.MEDIUM,
            fee_amount=Decimal("0.00010000"),
        )

        built = await client.build_transaction(request)

        assert built.hex == "abcd"
        assert built.fee == 15_000
        assert requests[0].method == "POST"
        body = json.loads(requests[0].content)
        assert body == {
            "walletName": "sidechain-wallet",
            "accountName": "account 0",
            "password": "hunter2",
            "destinationAddress": ADDRESS,
            "amount": "1.5",
            "feeType": "medium",
            "feeAmount": "0.00010000",
            "allowUnconfirmed": True,
            "shuffleOutputs": False,
        }
        await client.close()

    def test_password_not_in_repr(self):
        request = TransactionBuildRequest(
            wallet_name="w",
            account_name="account 0",
            password="hunter2",
            destination_address=ADDRESS,
            amount="1",
            fee_type=FeeTier.LOW,
            fee_amount=Decimal(0),
        )
        assert "hunter2" not in repr(request)

    @pytest.mark.asyncio
    async def test_send_transaction_empty_response(self):
        client, requests = make_client(lambda _r: httpx.Response(200))

        assert await client.send_transaction("abcd") is None
        assert requests[0].url.path == "/api/wallet/send-transaction"
        assert json.loads(requests[0].content) == {"hex": "abcd"}
        await client.close()


class TestFailures:
    @pytest.mark.asyncio
    async def test_connection_refused_is_status_zero(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        client, _ = make_client(refuse)

        with pytest.raises(WalletApiError) as exc_info:
            await client.get_wallet_balance("sidechain-wallet")

        assert exc_info.value.status == 0
        assert exc_info.value.kind == ErrorKind.CONNECTIVITY
        await client.close()

    @pytest.mark.asyncio
    async def test_error_body_is_parsed(self):
        client, _ = make_client(
            lambda _r: httpx.Response(
                400, json={"errors": [{"status": 400, "message": "Invalid password"}]}
            )
        )

        with pytest.raises(WalletApiError) as exc_info:
            await client.send_transaction("abcd")

        error = exc_info.value
        assert error.status == 400
        assert error.endpoint == "api/wallet/send-transaction"
        assert error.classification.message == "Invalid password"
        await client.close()

    @pytest.mark.asyncio
    async def test_non_json_error_body_is_silent(self):
        client, _ = make_client(lambda _r: httpx.Response(400, text="Bad Request"))

        with pytest.raises(WalletApiError) as exc_info:
            await client.get_wallet_balance("sidechain-wallet")

        assert exc_info.value.body == "Bad Request"
        assert exc_info.value.kind == ErrorKind.SILENT
        await client.close()


class TestMalformedSuccess:
    @pytest.mark.asyncio
    async def test_build_body_without_hex(self):
        client, _ = make_client(lambda _r: httpx.Response(200, json={"unexpected": True}))
        request = TransactionBuildRequest(
            wallet_name="sidechain-wallet",
            account_name="account 0",
            password="hunter2",
            destination_address=ADDRESS,
            amount="1.5",
            fee_type=FeeTier.MEDIUM,
            fee_amount=Decimal("0.0001"),
        )

        with pytest.raises(WalletApiError) as exc_info:
            await client.build_transaction(request)

        error = exc_info.value
        assert error.malformed
        assert error.status == 200
        assert error.body == {"unexpected": True}
        assert error.kind == ErrorKind.SILENT
        await client.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [{}, {"text": "x"}, {"json": {"fee": 1}}])
    async def test_unusable_fee_estimate(self, content):
        client, _ = make_client(lambda _r: httpx.Response(200, **content))
        request = FeeEstimationRequest(
            wallet_name="sidechain-wallet",
            account_name="account 0",
            destination_address=ADDRESS,
            amount="1.5",
            fee_type=FeeTier.LOW,
        )

        with pytest.raises(WalletApiError) as exc_info:
            await client.estimate_fee(request)

        assert exc_info.value.malformed
        assert exc_info.value.kind == ErrorKind.SILENT
        await client.close()

    @pytest.mark.asyncio
    async def test_max_balance_missing_amount(self):
        client, _ = make_client(lambda _r: httpx.Response(200, json={"fee": 10_000}))

        with pytest.raises(WalletApiError) as exc_info:
            await client.get_maximum_balance("sidechain-wallet", FeeTier.HIGH)

        assert exc_info.value.malformed
        await client.close()
