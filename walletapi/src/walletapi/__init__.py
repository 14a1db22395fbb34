"""
walletapi - Client for the full node wallet REST API

Provides the request/response models, the async HTTP client and the
classification of failed calls.
"""

__version__ = "0.1.0"

from walletapi.client import DEFAULT_ACCOUNT, WalletApiClient
from walletapi.errors import (
    ClassifiedError,
    ErrorKind,
    WalletApiError,
    classify,
)
from walletapi.models import (
    AccountBalance,
    BuiltTransaction,
    FeeEstimationRequest,
    FeeTier,
    MaxBalance,
    TransactionBuildRequest,
    WalletBalance,
)

__all__ = [
    "DEFAULT_ACCOUNT",
    "AccountBalance",
    "BuiltTransaction",
    "ClassifiedError",
    "ErrorKind",
    "FeeEstimationRequest",
    "FeeTier",
    "MaxBalance",
    "TransactionBuildRequest",
    "WalletApiClient",
    "WalletApiError",
    "WalletBalance",
    "classify",
]
