"""
Coin unit conversions.
"""

from __future__ import annotations

from decimal import Decimal

SATOSHI_PER_COIN = 100_000_000
COIN_DECIMALS = 8

_QUANTUM = Decimal(1).scaleb(-COIN_DECIMALS)


def to_coins(satoshi: int) -> Decimal:
    """Convert satoshis to coins, exact to 8 decimals."""
    return (Decimal(satoshi) / SATOSHI_PER_COIN).quantize(_QUANTUM)


def format_coins(satoshi: int) -> str:
    """Format satoshis as a plain coin amount without trailing zeros ("1.5", "0.0001")."""
    text = format(to_coins(satoshi), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
