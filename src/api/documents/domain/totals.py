"""Monetary totals for document lines.

All arithmetic is done in ``Decimal``. Per line:

* base = quantity x unit price
* discount = base x discount fraction (0..1)
* tax = (base - discount) x tax rate (0..1)
* total = base - discount + tax

Each amount is rounded half-up to cents before it is summed, so the header
totals always equal the sum of the stored line amounts.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Round a value half-up to cents."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LineAmounts:
    base: Decimal
    discount: Decimal
    tax: Decimal

    @property
    def net(self) -> Decimal:
        return self.base - self.discount

    @property
    def total(self) -> Decimal:
        return self.net + self.tax


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Decimal
    discount: Decimal
    tax: Decimal

    @property
    def grand_total(self) -> Decimal:
        return self.subtotal - self.discount + self.tax


def compute_line(
    quantity: Decimal,
    unit_price: Decimal,
    discount_percentage: Decimal = ZERO,
    tax_rate: Decimal = ZERO,
) -> LineAmounts:
    base = to_money(Decimal(quantity) * Decimal(unit_price))
    discount = to_money(base * Decimal(discount_percentage))
    tax = to_money((base - discount) * Decimal(tax_rate))
    return LineAmounts(base=base, discount=discount, tax=tax)


def compute_totals(lines: Iterable[LineAmounts]) -> DocumentTotals:
    """Sum line amounts into header totals."""
    subtotal = discount = tax = ZERO
    for line in lines:
        subtotal += line.base
        discount += line.discount
        tax += line.tax
    return DocumentTotals(subtotal=subtotal, discount=discount, tax=tax)
