"""Pydantic models for order and invoice API requests and responses."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from documents.application.registry import DocumentDefinition
from documents.application.value_objects import (
    DocumentChanges,
    DocumentInput,
    DocumentView,
    LineInput,
)
from documents.domain.value_objects import PartyKind
from shared_kernel.exceptions import DocumentValidationError


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LineRequest(_CamelModel):
    """One line of an order or invoice."""

    item_id: str | None = Field(default=None, description="Item ID (ULID format)")
    description: str | None = Field(default=None, max_length=500)
    quantity: Decimal = Field(..., gt=0, description="Quantity ordered or billed")
    unit_price: Decimal = Field(..., ge=0)
    discount_percentage: Decimal = Field(
        default=Decimal("0"), ge=0, le=1, description="Fraction between 0 and 1"
    )
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=1, description="Fraction between 0 and 1")

    def to_input(self) -> LineInput:
        return LineInput(
            quantity=self.quantity,
            unit_price=self.unit_price,
            item_id=self.item_id,
            description=self.description,
            discount_percentage=self.discount_percentage,
            tax_rate=self.tax_rate,
        )


class _HeaderFields(_CamelModel):
    due_date: date | None = None
    expected_delivery_date: date | None = None
    sales_order_id: str | None = None
    purchase_order_id: str | None = None
    shipping_address_id: str | None = None
    billing_address_id: str | None = None
    payment_terms: str | None = Field(default=None, max_length=100)
    reference_number: str | None = Field(default=None, max_length=100)
    supplier_invoice_number: str | None = Field(default=None, max_length=100)
    notes: str | None = None

    def _source_order_id(self, definition: DocumentDefinition) -> str | None:
        if definition.source_field == "sales_order_id":
            return self.sales_order_id
        if definition.source_field == "purchase_order_id":
            return self.purchase_order_id
        return None


class CreateDocumentRequest(_HeaderFields):
    """Request model for creating an order or invoice.

    Sales documents name a ``customerId``, purchase documents a ``supplierId``.
    """

    customer_id: str | None = None
    supplier_id: str | None = None
    document_date: date
    currency: str = Field(default="USD", min_length=3, max_length=3)
    lines: list[LineRequest] = Field(default_factory=list)

    def to_input(self, definition: DocumentDefinition) -> DocumentInput:
        if definition.party is PartyKind.CUSTOMER:
            party_id = self.customer_id
        else:
            party_id = self.supplier_id
        if not party_id:
            field = "customerId" if definition.party is PartyKind.CUSTOMER else "supplierId"
            raise DocumentValidationError(f"{field} is required")
        return DocumentInput(
            party_id=party_id,
            document_date=self.document_date,
            lines=tuple(line.to_input() for line in self.lines),
            currency=self.currency,
            due_date=self.due_date,
            expected_delivery_date=self.expected_delivery_date,
            source_order_id=self._source_order_id(definition),
            shipping_address_id=self.shipping_address_id,
            billing_address_id=self.billing_address_id,
            payment_terms=self.payment_terms,
            reference_number=self.reference_number,
            supplier_invoice_number=self.supplier_invoice_number,
            notes=self.notes,
        )


class UpdateDocumentRequest(_HeaderFields):
    """Request model for editing a DRAFT document.

    Omitted fields are left unchanged; ``lines`` replaces every line.
    """

    document_date: date | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    lines: list[LineRequest] | None = None

    def to_changes(self, definition: DocumentDefinition) -> DocumentChanges:
        lines = None
        if self.lines is not None:
            lines = tuple(line.to_input() for line in self.lines)
        return DocumentChanges(
            document_date=self.document_date,
            lines=lines,
            currency=self.currency,
            due_date=self.due_date,
            expected_delivery_date=self.expected_delivery_date,
            source_order_id=self._source_order_id(definition),
            shipping_address_id=self.shipping_address_id,
            billing_address_id=self.billing_address_id,
            payment_terms=self.payment_terms,
            reference_number=self.reference_number,
            supplier_invoice_number=self.supplier_invoice_number,
            notes=self.notes,
        )


class CancelRequest(_CamelModel):
    """Request model for cancelling a document or payment."""

    reason: str | None = Field(default=None, max_length=500)


class LineResponse(_CamelModel):
    id: str
    line_number: int
    item_id: str | None
    description: str | None
    quantity: Decimal
    unit_price: Decimal
    discount_percentage: Decimal
    discount_amount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    line_total: Decimal


class DocumentResponse(_CamelModel):
    """Response model for an order or invoice with its lines.

    Fields that a document type does not have are omitted.
    """

    id: str
    document_type: str
    number: str
    status: str
    document_date: date
    customer_id: str | None = None
    supplier_id: str | None = None
    currency: str
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    shipping_charges: Decimal
    grand_total: Decimal
    amount_paid: Decimal | None = None
    balance_due: Decimal | None = None
    due_date: date | None = None
    expected_delivery_date: date | None = None
    sales_order_id: str | None = None
    purchase_order_id: str | None = None
    supplier_invoice_number: str | None = None
    payment_terms: str | None = None
    reference_number: str | None = None
    notes: str | None = None
    approved_by_id: str | None = None
    approved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    lines: list[LineResponse] = Field(default_factory=list)

    @classmethod
    def from_view(cls, definition: DocumentDefinition, view: DocumentView) -> DocumentResponse:
        header = view.header
        values: dict[str, Any] = {
            name: getattr(header, name)
            for name in cls.model_fields
            if name not in ("document_type", "lines") and hasattr(header, name)
        }
        return cls(
            document_type=definition.doc_type.value,
            lines=[LineResponse.model_validate(line, from_attributes=True) for line in view.lines],
            **values,
        )
