"""Status transition tables for numbered documents.

Every status change goes through ``ensure_transition``; a pair missing from
the table is rejected before anything is written.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from documents.domain.value_objects import (
    DocumentType,
    PaymentStatus,
    PurchaseInvoiceStatus,
    PurchaseOrderStatus,
    SalesInvoiceStatus,
    SalesOrderStatus,
)
from shared_kernel.exceptions import InvalidTransitionError

_SO = SalesOrderStatus
_PO = PurchaseOrderStatus
_SI = SalesInvoiceStatus
_PI = PurchaseInvoiceStatus
_PAY = PaymentStatus

_SO_TABLE = {
    _SO.DRAFT: {_SO.CONFIRMED, _SO.CANCELLED},
    _SO.CONFIRMED: {_SO.PARTIALLY_DELIVERED, _SO.COMPLETED, _SO.CANCELLED},
    _SO.PARTIALLY_DELIVERED: {_SO.COMPLETED},
}

_PO_TABLE = {
    _PO.DRAFT: {_PO.SENT, _PO.CONFIRMED, _PO.CANCELLED},
    _PO.SENT: {_PO.CONFIRMED, _PO.CANCELLED},
    _PO.CONFIRMED: {_PO.PARTIALLY_RECEIVED, _PO.COMPLETED, _PO.CANCELLED},
    _PO.PARTIALLY_RECEIVED: {_PO.COMPLETED},
}

_SI_TABLE = {
    _SI.DRAFT: {_SI.SENT, _SI.PARTIALLY_PAID, _SI.PAID, _SI.CANCELLED},
    _SI.SENT: {_SI.PARTIALLY_PAID, _SI.PAID, _SI.OVERDUE, _SI.CANCELLED},
    _SI.OVERDUE: {_SI.PARTIALLY_PAID, _SI.PAID, _SI.CANCELLED},
    _SI.PARTIALLY_PAID: {_SI.PAID, _SI.SENT, _SI.CANCELLED},
}

_PI_TABLE = {
    _PI.DRAFT: {_PI.RECEIVED, _PI.APPROVED, _PI.CANCELLED},
    _PI.RECEIVED: {_PI.APPROVED, _PI.CANCELLED},
    _PI.APPROVED: {_PI.PARTIALLY_PAID, _PI.PAID, _PI.OVERDUE, _PI.CANCELLED},
    _PI.OVERDUE: {_PI.PARTIALLY_PAID, _PI.PAID, _PI.CANCELLED},
    _PI.PARTIALLY_PAID: {_PI.PAID, _PI.APPROVED, _PI.CANCELLED},
}

_PAY_TABLE = {
    _PAY.PENDING: {_PAY.COMPLETED, _PAY.CANCELLED, _PAY.FAILED},
}

TRANSITIONS: Mapping[DocumentType, Mapping[str, frozenset[str]]] = MappingProxyType(
    {
        doc_type: MappingProxyType({k: frozenset(v) for k, v in table.items()})
        for doc_type, table in (
            (DocumentType.SALES_ORDER, _SO_TABLE),
            (DocumentType.PURCHASE_ORDER, _PO_TABLE),
            (DocumentType.SALES_INVOICE, _SI_TABLE),
            (DocumentType.PURCHASE_INVOICE, _PI_TABLE),
            (DocumentType.PAYMENT, _PAY_TABLE),
        )
    }
)

INITIAL_STATUS: Mapping[DocumentType, str] = MappingProxyType(
    {
        DocumentType.SALES_ORDER: _SO.DRAFT,
        DocumentType.PURCHASE_ORDER: _PO.DRAFT,
        DocumentType.SALES_INVOICE: _SI.DRAFT,
        DocumentType.PURCHASE_INVOICE: _PI.DRAFT,
        DocumentType.PAYMENT: _PAY.PENDING,
    }
)

APPROVED_STATUS: Mapping[DocumentType, str] = MappingProxyType(
    {
        DocumentType.SALES_ORDER: _SO.CONFIRMED,
        DocumentType.PURCHASE_ORDER: _PO.CONFIRMED,
        DocumentType.SALES_INVOICE: _SI.SENT,
        DocumentType.PURCHASE_INVOICE: _PI.APPROVED,
        DocumentType.PAYMENT: _PAY.COMPLETED,
    }
)

CANCELLED = "CANCELLED"


def can_transition(doc_type: DocumentType, current: str, target: str) -> bool:
    return target in TRANSITIONS[doc_type].get(current, frozenset())


def is_terminal(doc_type: DocumentType, status: str) -> bool:
    return not TRANSITIONS[doc_type].get(status)


def is_editable(doc_type: DocumentType, status: str) -> bool:
    """Only documents still in their initial status may be edited."""
    return status == INITIAL_STATUS[doc_type]


def ensure_transition(doc_type: DocumentType, current: str, target: str) -> None:
    """Raise ``InvalidTransitionError`` unless ``current -> target`` is allowed."""
    if not can_transition(doc_type, current, target):
        raise InvalidTransitionError(doc_type.value, current, target)
