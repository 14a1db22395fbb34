"""
Deposit form validation.

The amount's upper bound depends on two live values owned elsewhere: the
wallet balance (BalanceMonitor) and the estimated fee (FeeEstimator). It is
recomputed on every evaluation from the values passed in, never captured when
the form is built.

Rules other than "required" are skipped for empty values. The min/max rules
only apply to amounts that parse as a number, so "abc" reports just the
pattern violation while "-1" reports pattern and min.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum

from deposit.form import FIELDS, DepositFormValues
from deposit.units import SATOSHI_PER_COIN

MIN_ADDRESS_LENGTH = 26
MIN_AMOUNT = Decimal("0.00001")

# Non-negative, at most 8 decimals
AMOUNT_PATTERN = re.compile(r"^([0-9]+)?(\.[0-9]{0,8})?$")


class Rule(str, Enum):
    REQUIRED = "required"
    MIN_LENGTH = "minlength"
    PATTERN = "pattern"
    MIN = "min"
    MAX = "max"


# Message order within a field follows the Rule declaration order
VALIDATION_MESSAGES: dict[str, dict[Rule, str]] = {
    "address": {
        Rule.REQUIRED: "An address is required.",
        Rule.MIN_LENGTH: "An address is at least 26 characters long.",
    },
    "amount": {
        Rule.REQUIRED: "An amount is required.",
        Rule.PATTERN: (
            "Enter a valid transaction amount. Only positive numbers and no more "
            "than 8 decimals are allowed."
        ),
        Rule.MIN: "The amount has to be more or equal to 0.00001 {coin_unit}.",
        Rule.MAX: "The total transaction amount exceeds your available balance.",
    },
    "fee": {
        Rule.REQUIRED: "A fee is required.",
    },
    "password": {
        Rule.REQUIRED: "Your password is required.",
    },
}


@dataclass(frozen=True)
class FieldValidation:
    errors: frozenset[Rule] = frozenset()

    @property
    def valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class FormValidation:
    fields: dict[str, FieldValidation] = field(default_factory=dict)
    max_amount: Decimal = Decimal(0)

    def is_valid(self, name: str) -> bool:
        return self.fields[name].valid

    def errors(self, name: str) -> frozenset[Rule]:
        return self.fields[name].errors

    @property
    def valid(self) -> bool:
        return all(f.valid for f in self.fields.values())


def max_amount(total_balance: int, estimated_fee: int) -> Decimal:
    """Largest amount (in coins) the balance can cover after the fee."""
    return Decimal(total_balance - estimated_fee) / SATOSHI_PER_COIN


def parse_amount(text: str) -> Decimal | None:
    """Parse an amount string; None if it is not a finite number."""
    try:
        value = Decimal(text.strip())
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    return value


def _validate_address(address: str) -> set[Rule]:
    if not address:
        return {Rule.REQUIRED}
    if len(address) < MIN_ADDRESS_LENGTH:
        return {Rule.MIN_LENGTH}
    return set()


def _validate_amount(amount: str, upper_bound: Decimal) -> set[Rule]:
    if not amount:
        return {Rule.REQUIRED}

    errors: set[Rule] = set()
    if not AMOUNT_PATTERN.fullmatch(amount) or not any(c.isdigit() for c in amount):
        errors.add(Rule.PATTERN)

    value = parse_amount(amount)
    if value is not None:
        if value < MIN_AMOUNT:
            errors.add(Rule.MIN)
        if value > upper_bound:
            errors.add(Rule.MAX)
    return errors


def evaluate(values: DepositFormValues, total_balance: int, estimated_fee: int) -> FormValidation:
    """Evaluate every field rule against the given balance and fee. Pure."""
    upper_bound = max_amount(total_balance, estimated_fee)
    results = {
        "address": _validate_address(values.address),
        "amount": _validate_amount(values.amount, upper_bound),
        "fee": set() if values.fee is not None else {Rule.REQUIRED},
        "password": set() if values.password else {Rule.REQUIRED},
    }
    return FormValidation(
        fields={name: FieldValidation(frozenset(errors)) for name, errors in results.items()},
        max_amount=upper_bound,
    )


class ValidationEngine:
    """
    Evaluates the form and publishes the per-field error messages.

    form_errors maps each field to the text shown beneath it; a field only
    gets messages once it is dirty.
    """

    def __init__(self, coin_unit: str = "STRAT"):
        self.coin_unit = coin_unit
        self.form_errors: dict[str, str] = {name: "" for name in FIELDS}

    def evaluate(
        self, values: DepositFormValues, total_balance: int, estimated_fee: int
    ) -> FormValidation:
        return evaluate(values, total_balance, estimated_fee)

    def messages_for(self, name: str, errors: frozenset[Rule]) -> str:
        catalog = VALIDATION_MESSAGES[name]
        return " ".join(
            catalog[rule].format(coin_unit=self.coin_unit) for rule in Rule if rule in errors
        )

    def refresh(
        self,
        values: DepositFormValues,
        total_balance: int,
        estimated_fee: int,
        dirty: set[str] | frozenset[str] = frozenset(),
    ) -> FormValidation:
        """Evaluate and publish form_errors for the dirty fields."""
        validation = self.evaluate(values, total_balance, estimated_fee)
        for name in FIELDS:
            if name in dirty and not validation.is_valid(name):
                self.form_errors[name] = self.messages_for(name, validation.errors(name))
            else:
                self.form_errors[name] = ""
        return validation
