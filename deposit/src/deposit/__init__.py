"""
deposit - Sidechain deposit workflow

Validates the deposit form against the live wallet balance, keeps the fee
estimate current, and drives the build -> send -> confirm sequence against
the wallet API.
"""

__version__ = "0.1.0"

from deposit.balance import BalanceMonitor, MonitorState, WalletSnapshot
from deposit.config import DepositSettings, get_settings
from deposit.debounce import Debouncer
from deposit.fee import FeeEstimator
from deposit.form import DepositForm, DepositFormValues
from deposit.orchestrator import DepositState, TransactionOrchestrator
from deposit.ui import DepositUI, LoggingUI
from deposit.validation import FormValidation, Rule, ValidationEngine
from deposit.workflow import DepositWorkflow

__all__ = [
    "BalanceMonitor",
    "Debouncer",
    "DepositForm",
    "DepositFormValues",
    "DepositSettings",
    "DepositState",
    "DepositUI",
    "DepositWorkflow",
    "FeeEstimator",
    "FormValidation",
    "LoggingUI",
    "MonitorState",
    "Rule",
    "TransactionOrchestrator",
    "ValidationEngine",
    "WalletSnapshot",
    "get_settings",
]
