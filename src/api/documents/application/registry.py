"""How each order and invoice type maps onto storage.

The orchestrator is written once against ``DocumentDefinition``; adding a
document type means adding a definition, not another service.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from documents.domain.value_objects import DocumentType, PartyKind
from documents.infrastructure.models import (
    CustomerModel,
    PurchaseInvoiceLineModel,
    PurchaseInvoiceModel,
    PurchaseOrderLineModel,
    PurchaseOrderModel,
    SalesInvoiceLineModel,
    SalesInvoiceModel,
    SalesOrderLineModel,
    SalesOrderModel,
    SupplierModel,
)


@dataclass(frozen=True)
class DocumentDefinition:
    """Storage layout and reference rules of one document type.

    Attributes:
        doc_type: The document type.
        label: Human-readable name used in error messages.
        slug: URL segment under ``/api/documents``.
        header_model: ORM model of the header table.
        line_model: ORM model of the line table.
        party: Whether the counterparty is a customer or a supplier.
        party_field: Header column holding the counterparty id.
        item_required: Whether every line must reference an item.
        source_field: Header column referencing the source order, if any.
        source_type: Document type of the source order, if any.
        has_addresses: Whether the header carries customer addresses.
        is_invoice: Whether the header carries due date and balance.
        header_fields: Optional input fields stored on this header.
    """

    doc_type: DocumentType
    label: str
    slug: str
    header_model: Any
    line_model: Any
    party: PartyKind
    party_field: str
    item_required: bool
    source_field: str | None = None
    source_type: DocumentType | None = None
    has_addresses: bool = False
    is_invoice: bool = False
    header_fields: frozenset[str] = frozenset()

    @property
    def party_model(self) -> Any:
        return PARTY_MODELS[self.party]

    @property
    def party_label(self) -> str:
        return self.party.value.capitalize()


PARTY_MODELS: Mapping[PartyKind, Any] = MappingProxyType(
    {
        PartyKind.CUSTOMER: CustomerModel,
        PartyKind.SUPPLIER: SupplierModel,
    }
)

_COMMON_FIELDS = frozenset(
    {"currency", "payment_terms", "reference_number", "notes"}
)

DEFINITIONS: Mapping[DocumentType, DocumentDefinition] = MappingProxyType(
    {
        DocumentType.SALES_ORDER: DocumentDefinition(
            doc_type=DocumentType.SALES_ORDER,
            label="Sales order",
            slug="sales-orders",
            header_model=SalesOrderModel,
            line_model=SalesOrderLineModel,
            party=PartyKind.CUSTOMER,
            party_field="customer_id",
            item_required=True,
            has_addresses=True,
            header_fields=_COMMON_FIELDS
            | {"expected_delivery_date", "shipping_address_id", "billing_address_id"},
        ),
        DocumentType.PURCHASE_ORDER: DocumentDefinition(
            doc_type=DocumentType.PURCHASE_ORDER,
            label="Purchase order",
            slug="purchase-orders",
            header_model=PurchaseOrderModel,
            line_model=PurchaseOrderLineModel,
            party=PartyKind.SUPPLIER,
            party_field="supplier_id",
            item_required=True,
            header_fields=_COMMON_FIELDS | {"expected_delivery_date"},
        ),
        DocumentType.SALES_INVOICE: DocumentDefinition(
            doc_type=DocumentType.SALES_INVOICE,
            label="Sales invoice",
            slug="sales-invoices",
            header_model=SalesInvoiceModel,
            line_model=SalesInvoiceLineModel,
            party=PartyKind.CUSTOMER,
            party_field="customer_id",
            item_required=False,
            source_field="sales_order_id",
            source_type=DocumentType.SALES_ORDER,
            has_addresses=True,
            is_invoice=True,
            header_fields=_COMMON_FIELDS
            | {"due_date", "shipping_address_id", "billing_address_id"},
        ),
        DocumentType.PURCHASE_INVOICE: DocumentDefinition(
            doc_type=DocumentType.PURCHASE_INVOICE,
            label="Purchase invoice",
            slug="purchase-invoices",
            header_model=PurchaseInvoiceModel,
            line_model=PurchaseInvoiceLineModel,
            party=PartyKind.SUPPLIER,
            party_field="supplier_id",
            item_required=False,
            source_field="purchase_order_id",
            source_type=DocumentType.PURCHASE_ORDER,
            is_invoice=True,
            header_fields=_COMMON_FIELDS | {"due_date", "supplier_invoice_number"},
        ),
    }
)


def get_definition(doc_type: DocumentType) -> DocumentDefinition:
    try:
        return DEFINITIONS[doc_type]
    except KeyError:
        raise ValueError(f"{doc_type} is not an order or invoice type") from None


def definition_for_slug(slug: str) -> DocumentDefinition | None:
    for definition in DEFINITIONS.values():
        if definition.slug == slug:
            return definition
    return None
