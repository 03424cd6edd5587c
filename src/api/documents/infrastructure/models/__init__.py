"""SQLAlchemy ORM models for the documents bounded context."""

from documents.infrastructure.models.invoices import (
    PurchaseInvoiceLineModel,
    PurchaseInvoiceModel,
    SalesInvoiceLineModel,
    SalesInvoiceModel,
)
from documents.infrastructure.models.orders import (
    PurchaseOrderLineModel,
    PurchaseOrderModel,
    SalesOrderLineModel,
    SalesOrderModel,
)
from documents.infrastructure.models.payments import (
    PaymentAllocationModel,
    PaymentModel,
)
from documents.infrastructure.models.reference import (
    CustomerAddressModel,
    CustomerModel,
    ItemModel,
    SupplierModel,
)

__all__ = [
    "CustomerAddressModel",
    "CustomerModel",
    "ItemModel",
    "PaymentAllocationModel",
    "PaymentModel",
    "PurchaseInvoiceLineModel",
    "PurchaseInvoiceModel",
    "PurchaseOrderLineModel",
    "PurchaseOrderModel",
    "SalesInvoiceLineModel",
    "SalesInvoiceModel",
    "SalesOrderLineModel",
    "SalesOrderModel",
    "SupplierModel",
]
