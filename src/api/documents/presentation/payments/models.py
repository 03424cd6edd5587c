"""Pydantic models for payment API requests and responses."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from documents.application.value_objects import (
    AllocationInput,
    PaymentChanges,
    PaymentInput,
    PaymentView,
)
from documents.domain.value_objects import InvoiceType, PaymentMethod, PaymentType


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AllocationRequest(_CamelModel):
    invoice_type: InvoiceType
    invoice_id: str
    amount: Decimal = Field(..., gt=0)


class CreatePaymentRequest(_CamelModel):
    """Request model for recording a payment.

    ``CUSTOMER_PAYMENT`` names a ``customerId`` and allocates to sales
    invoices; ``SUPPLIER_PAYMENT`` names a ``supplierId`` and allocates to
    purchase invoices.
    """

    payment_type: PaymentType
    payment_method: PaymentMethod
    payment_date: date
    amount: Decimal = Field(..., gt=0)
    customer_id: str | None = None
    supplier_id: str | None = None
    currency: str = Field(default="USD", min_length=3, max_length=3)
    reference_number: str | None = Field(default=None, max_length=100)
    bank_account: str | None = Field(default=None, max_length=100)
    notes: str | None = None
    allocations: list[AllocationRequest] = Field(default_factory=list)

    def to_input(self) -> PaymentInput:
        return PaymentInput(
            payment_type=self.payment_type,
            payment_method=self.payment_method,
            payment_date=self.payment_date,
            amount=self.amount,
            allocations=tuple(
                AllocationInput(
                    invoice_type=a.invoice_type, invoice_id=a.invoice_id, amount=a.amount
                )
                for a in self.allocations
            ),
            customer_id=self.customer_id,
            supplier_id=self.supplier_id,
            currency=self.currency,
            reference_number=self.reference_number,
            bank_account=self.bank_account,
            notes=self.notes,
        )


class UpdatePaymentRequest(_CamelModel):
    """Request model for editing a PENDING payment's header."""

    payment_date: date | None = None
    payment_method: PaymentMethod | None = None
    amount: Decimal | None = Field(default=None, gt=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    reference_number: str | None = Field(default=None, max_length=100)
    bank_account: str | None = Field(default=None, max_length=100)
    notes: str | None = None

    def to_changes(self) -> PaymentChanges:
        return PaymentChanges(**self.model_dump())


class AllocationResponse(_CamelModel):
    id: str
    invoice_type: str
    invoice_id: str
    amount_allocated: Decimal


class PaymentResponse(_CamelModel):
    """Response model for a payment with its allocations."""

    id: str
    number: str
    status: str
    payment_date: date
    payment_type: str
    payment_method: str
    customer_id: str | None
    supplier_id: str | None
    amount: Decimal
    currency: str
    reference_number: str | None
    bank_account: str | None
    notes: str | None
    approved_by_id: str | None = None
    approved_at: datetime | None = None
    created_at: datetime | None = None
    allocations: list[AllocationResponse] = Field(default_factory=list)

    @classmethod
    def from_view(cls, view: PaymentView) -> PaymentResponse:
        payment = view.payment
        return cls(
            id=payment.id,
            number=payment.number,
            status=payment.status,
            payment_date=payment.payment_date,
            payment_type=payment.payment_type,
            payment_method=payment.payment_method,
            customer_id=payment.customer_id,
            supplier_id=payment.supplier_id,
            amount=payment.amount,
            currency=payment.currency,
            reference_number=payment.reference_number,
            bank_account=payment.bank_account,
            notes=payment.notes,
            approved_by_id=payment.approved_by_id,
            approved_at=payment.approved_at,
            created_at=payment.created_at,
            allocations=[
                AllocationResponse.model_validate(row, from_attributes=True)
                for row in view.allocations
            ],
        )
