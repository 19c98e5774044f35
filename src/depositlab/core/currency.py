"""
Currency and precision handling for DepositLab.

All interest, fee and ten-thousand-unit figures go through the same quantizer so
that per-row amounts and aggregated totals can never drift apart.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum


class RoundingPolicy(Enum):
    """Rounding policies for currency calculations."""

    HALF_UP = ROUND_HALF_UP  # half away from zero


class Currency:
    """
    Currency definition with precision and rounding rules.

    Attributes:
        code: ISO currency code
        decimals: Number of decimal places for this currency
        rounding: Rounding policy for calculations
    """

    def __init__(
        self,
        code: str,
        decimals: int = 0,
        rounding: RoundingPolicy = RoundingPolicy.HALF_UP,
    ):
        self.code = code.upper()
        self.decimals = decimals
        self.rounding = rounding

    def whole(self, amount: Decimal | float | int | str) -> int:
        """Round to whole currency units and return a plain ``int``."""
        return int(
            to_decimal(amount).quantize(Decimal("1"), rounding=self.rounding.value)
        )

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency('{self.code}', decimals={self.decimals})"


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    """Convert through ``str`` so floats like 1.2 stay exactly 1.2."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# Ledger amounts are whole New Taiwan Dollars
TWD = Currency("TWD", decimals=0, rounding=RoundingPolicy.HALF_UP)

def percent_of(principal: int | float, rate_pct: float, currency: Currency = TWD) -> int:
    """
    Return ``principal * rate_pct / 100`` rounded to whole units.

    This is the single rounding rule for monthly interest and intro fees.
    """
    raw = to_decimal(principal) * to_decimal(rate_pct) / Decimal("100")
    return currency.whole(raw)


def to_wan(amount: int | float) -> int:
    """Amount in ten-thousand units (萬), rounded half up."""
    return TWD.whole(to_decimal(amount) / Decimal("10000"))


def format_number(value: int | float | Decimal) -> str:
    """
    Plain decimal text without trailing zeros: ``1.20 -> '1.2'``, ``1.0 -> '1'``.
    """
    d = to_decimal(value).normalize()
    text = format(d, "f")
    return "0" if text in ("-0", "") else text
