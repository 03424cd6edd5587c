"""Value objects for the documents bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import StrEnum

from ulid import ULID


@dataclass(frozen=True)
class DocumentId:
    """Identifier for documents, lines, payments and allocations."""

    value: str

    def __str__(self) -> str:
        return self.value

    @classmethod
    def generate(cls) -> DocumentId:
        """Generate a new DocumentId using ULID."""
        return cls(value=str(ULID()))


class DocumentType(StrEnum):
    """Kinds of numbered documents.

    Each type owns its own number series per tenant and period.
    """

    SALES_ORDER = "SALES_ORDER"
    PURCHASE_ORDER = "PURCHASE_ORDER"
    SALES_INVOICE = "SALES_INVOICE"
    PURCHASE_INVOICE = "PURCHASE_INVOICE"
    PAYMENT = "PAYMENT"

    @property
    def prefix(self) -> str:
        return _PREFIXES[self]

    def period_for(self, on: date) -> str:
        """Period component of a number issued on ``on``.

        Payments are numbered per day, everything else per month.
        """
        if self is DocumentType.PAYMENT:
            return on.strftime("%Y%m%d")
        return on.strftime("%Y%m")


_PREFIXES = {
    DocumentType.SALES_ORDER: "SO",
    DocumentType.PURCHASE_ORDER: "PO",
    DocumentType.SALES_INVOICE: "SI",
    DocumentType.PURCHASE_INVOICE: "PI",
    DocumentType.PAYMENT: "PAY",
}


class SalesOrderStatus(StrEnum):
    DRAFT = "DRAFT"
    CONFIRMED = "CONFIRMED"
    PARTIALLY_DELIVERED = "PARTIALLY_DELIVERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PurchaseOrderStatus(StrEnum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    CONFIRMED = "CONFIRMED"
    PARTIALLY_RECEIVED = "PARTIALLY_RECEIVED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class SalesInvoiceStatus(StrEnum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class PurchaseInvoiceStatus(StrEnum):
    DRAFT = "DRAFT"
    RECEIVED = "RECEIVED"
    APPROVED = "APPROVED"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class PaymentStatus(StrEnum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


class PaymentType(StrEnum):
    """Direction of a payment."""

    CUSTOMER_PAYMENT = "CUSTOMER_PAYMENT"
    SUPPLIER_PAYMENT = "SUPPLIER_PAYMENT"

    @property
    def invoice_type(self) -> InvoiceType:
        if self is PaymentType.CUSTOMER_PAYMENT:
            return InvoiceType.SALES_INVOICE
        return InvoiceType.PURCHASE_INVOICE


class PaymentMethod(StrEnum):
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"
    CHECK = "CHECK"
    CREDIT_CARD = "CREDIT_CARD"
    OTHER = "OTHER"


class InvoiceType(StrEnum):
    """Invoice kinds a payment can be allocated to."""

    SALES_INVOICE = "SALES_INVOICE"
    PURCHASE_INVOICE = "PURCHASE_INVOICE"

    @property
    def document_type(self) -> DocumentType:
        return DocumentType(self.value)


class PartyKind(StrEnum):
    """The counterparty a document is issued to or received from."""

    CUSTOMER = "CUSTOMER"
    SUPPLIER = "SUPPLIER"
