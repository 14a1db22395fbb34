"""
Deposit form state: field values, dirty tracking and the form-level API error.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any

from walletapi.models import FeeTier

FIELDS = ("address", "amount", "fee", "password")


@dataclass(frozen=True)
class DepositFormValues:
    """Immutable snapshot of the form fields."""

    address: str = ""
    amount: str = ""
    fee: FeeTier | None = FeeTier.MEDIUM
    password: str = field(default="", repr=False)


def _coerce(name: str, value: Any) -> Any:
    if name == "fee":
        if value is None or value == "":
            return None
        return FeeTier(value)
    if value is None:
        return ""
    return str(value)


class DepositForm:
    """
    Holds the current field values.

    Validity is not stored here; it is derived from the values by the
    ValidationEngine. Every patch notifies the change listeners, which the
    workflow feeds into its settle-delay debouncer.
    """

    def __init__(self) -> None:
        self.values = DepositFormValues()
        self.dirty: set[str] = set()
        self.api_error = ""
        self._listeners: list[Callable[[DepositFormValues], None]] = []

    def add_listener(self, listener: Callable[[DepositFormValues], None]) -> None:
        self._listeners.append(listener)

    def patch(self, **changes: Any) -> DepositFormValues:
        """Update one or more fields and notify listeners."""
        unknown = set(changes) - set(FIELDS)
        if unknown:
            raise ValueError(f"Unknown form field(s): {', '.join(sorted(unknown))}")

        coerced = {name: _coerce(name, value) for name, value in changes.items()}
        self.values = replace(self.values, **coerced)
        self.dirty.update(coerced)

        for listener in self._listeners:
            listener(self.values)
        return self.values

    def clear_password(self) -> None:
        """Forget the password without triggering a change event."""
        self.values = replace(self.values, password="")
