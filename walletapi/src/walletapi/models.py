"""
Wire models for the wallet service REST API.

Field names follow the service's camelCase JSON; the Python side uses
snake_case and populates by either name.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_serializer


def _plain_decimal(value: Decimal) -> str:
    return format(value, "f")


class FeeTier(str, Enum):
    """Fee priority understood by the wallet service."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AccountBalance(BaseModel):
    model_config = {"populate_by_name": True}

    account_name: str = Field(default="", alias="accountName")
    amount_confirmed: int = Field(default=0, alias="amountConfirmed")
    amount_unconfirmed: int = Field(default=0, alias="amountUnconfirmed")

    @property
    def total(self) -> int:
        return self.amount_confirmed + self.amount_unconfirmed


class WalletBalance(BaseModel):
    balances: list[AccountBalance] = Field(default_factory=list)


class MaxBalance(BaseModel):
    model_config = {"populate_by_name": True}

    max_spendable_amount: int = Field(..., alias="maxSpendableAmount")
    fee: int = 0


class FeeEstimationRequest(BaseModel):
    """Query for api/wallet/estimate-txfee."""

    model_config = {"populate_by_name": True}

    wallet_name: str = Field(..., alias="walletName")
    account_name: str = Field(..., alias="accountName")
    destination_address: str = Field(..., alias="destinationAddress")
    amount: str
    fee_type: FeeTier = Field(..., alias="feeType")
    allow_unconfirmed: bool = Field(default=True, alias="allowUnconfirmed")

    def to_params(self) -> dict[str, str]:
        return {
            "walletName": self.wallet_name,
            "accountName": self.account_name,
            "destinationAddress": self.destination_address,
            "amount": self.amount,
            "feeType": self.fee_type.value,
            "allowUnconfirmed": "true" if self.allow_unconfirmed else "false",
        }


class TransactionBuildRequest(BaseModel):
    """Body for api/wallet/build-transaction."""

    model_config = {"populate_by_name": True}

    wallet_name: str = Field(..., alias="walletName")
    account_name: str = Field(..., alias="accountName")
    password: str = Field(..., repr=False)
    destination_address: str = Field(..., alias="destinationAddress")
    amount: str
    fee_type: FeeTier = Field(..., alias="feeType")
    fee_amount: Decimal = Field(..., ge=0, alias="feeAmount")
    allow_unconfirmed: bool = Field(default=True, alias="allowUnconfirmed")
    shuffle_outputs: bool = Field(default=False, alias="shuffleOutputs")

    @field_serializer("fee_amount")
    def serialize_fee_amount(self, value: Decimal) -> str:
        return _plain_decimal(value)

    def to_body(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)


class BuiltTransaction(BaseModel):
    hex: str
    fee: int = 0


class TransactionSendRequest(BaseModel):
    hex: str
