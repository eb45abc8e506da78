"""Withholding tax policies applied to gross pay at payroll time."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Protocol

from campus_admin.config import settings

CENTS = Decimal("0.01")


def round_money(value: Decimal) -> Decimal:
    """Quantize to centavos, half-up."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


class TaxPolicy(Protocol):
    def __call__(self, gross: Decimal) -> Decimal: ...


class NoTax:
    """Default policy: nothing withheld."""

    def __call__(self, gross: Decimal) -> Decimal:
        return Decimal("0.00")

    def __repr__(self) -> str:
        return "NoTax()"


class FlatRateTax:
    """A fixed fraction of gross pay, e.g. ``FlatRateTax(Decimal("0.10"))``."""

    def __init__(self, rate: Decimal) -> None:
        if rate < 0 or rate >= 1:
            raise ValueError(f"Tax rate must be in [0, 1), got {rate}")
        self.rate = rate

    def __call__(self, gross: Decimal) -> Decimal:
        if gross <= 0:
            return Decimal("0.00")
        return round_money(gross * self.rate)

    def __repr__(self) -> str:
        return f"FlatRateTax({self.rate})"


def get_tax_policy(rate: Optional[Decimal] = None) -> TaxPolicy:
    """Policy for *rate*, or for ``settings.PAYROLL_TAX_RATE`` when omitted."""
    if rate is None:
        rate = settings.PAYROLL_TAX_RATE
    if rate > 0:
        return FlatRateTax(rate)
    return NoTax()
