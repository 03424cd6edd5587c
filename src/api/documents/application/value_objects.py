"""Application-layer inputs and views for documents and payments.

Inputs are framework-agnostic: the HTTP layer converts its pydantic
models into these before calling the services.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from documents.domain.value_objects import InvoiceType, PaymentMethod, PaymentType

ZERO = Decimal("0")


@dataclass(frozen=True)
class LineInput:
    quantity: Decimal
    unit_price: Decimal
    item_id: str | None = None
    description: str | None = None
    discount_percentage: Decimal = ZERO
    tax_rate: Decimal = ZERO


@dataclass(frozen=True)
class DocumentInput:
    """Header and lines of a new order or invoice.

    ``party_id`` is the customer for sales documents and the supplier for
    purchase documents. Type-specific fields are ignored by types that do
    not have them.
    """

    party_id: str
    document_date: date
    lines: tuple[LineInput, ...]
    currency: str = "USD"
    due_date: date | None = None
    expected_delivery_date: date | None = None
    source_order_id: str | None = None
    shipping_address_id: str | None = None
    billing_address_id: str | None = None
    payment_terms: str | None = None
    reference_number: str | None = None
    supplier_invoice_number: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class DocumentChanges:
    """Partial update of an editable document.

    ``None`` leaves a field unchanged; ``lines`` replaces the whole line set.
    The party and number never change.
    """

    document_date: date | None = None
    lines: tuple[LineInput, ...] | None = None
    currency: str | None = None
    due_date: date | None = None
    expected_delivery_date: date | None = None
    source_order_id: str | None = None
    shipping_address_id: str | None = None
    billing_address_id: str | None = None
    payment_terms: str | None = None
    reference_number: str | None = None
    supplier_invoice_number: str | None = None
    notes: str | None = None

    def header_fields(self) -> dict[str, Any]:
        """Changed header fields, excluding lines."""
        return {
            name: value
            for name, value in self.__dict__.items()
            if name != "lines" and value is not None
        }


@dataclass(frozen=True)
class DocumentView:
    """A document header with its lines in line-number order."""

    header: Any
    lines: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class AllocationInput:
    invoice_type: InvoiceType
    invoice_id: str
    amount: Decimal


@dataclass(frozen=True)
class PaymentInput:
    payment_type: PaymentType
    payment_method: PaymentMethod
    payment_date: date
    amount: Decimal
    allocations: tuple[AllocationInput, ...]
    customer_id: str | None = None
    supplier_id: str | None = None
    currency: str = "USD"
    reference_number: str | None = None
    bank_account: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class PaymentChanges:
    """Header fields of a pending payment that may be changed.

    Allocations are fixed once the payment exists.
    """

    payment_date: date | None = None
    payment_method: PaymentMethod | None = None
    amount: Decimal | None = None
    currency: str | None = None
    reference_number: str | None = None
    bank_account: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class PaymentView:
    payment: Any
    allocations: list[Any] = field(default_factory=list)
