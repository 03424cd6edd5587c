"""Domain probe for document and payment operations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class DocumentProbe(Protocol):
    """Domain probe for the document transaction orchestrator."""

    def document_created(
        self, tenant_id: str, document_type: str, document_id: str, number: str
    ) -> None:
        """Record that a document and its lines were committed."""
        ...

    def document_updated(
        self, tenant_id: str, document_type: str, document_id: str, lines_replaced: bool
    ) -> None:
        """Record that an editable document was changed."""
        ...

    def status_changed(
        self,
        tenant_id: str,
        document_type: str,
        document_id: str,
        from_status: str,
        to_status: str,
    ) -> None:
        """Record a status transition."""
        ...

    def payment_allocated(
        self, tenant_id: str, payment_id: str, invoice_id: str, amount: str
    ) -> None:
        """Record that part of a payment was applied to an invoice."""
        ...

    def operation_rejected(
        self, tenant_id: str, document_type: str, operation: str, error_code: str
    ) -> None:
        """Record that an operation failed with a classified error."""
        ...

    def with_context(self, context: ObservationContext) -> DocumentProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultDocumentProbe:
    """Default implementation of DocumentProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultDocumentProbe:
        """Create a new probe with observation context bound."""
        return DefaultDocumentProbe(logger=self._logger, context=context)

    def document_created(
        self, tenant_id: str, document_type: str, document_id: str, number: str
    ) -> None:
        self._logger.info(
            "document_created",
            tenant_id=tenant_id,
            document_type=document_type,
            document_id=document_id,
            number=number,
            **self._get_context_kwargs(),
        )

    def document_updated(
        self, tenant_id: str, document_type: str, document_id: str, lines_replaced: bool
    ) -> None:
        self._logger.info(
            "document_updated",
            tenant_id=tenant_id,
            document_type=document_type,
            document_id=document_id,
            lines_replaced=lines_replaced,
            **self._get_context_kwargs(),
        )

    def status_changed(
        self,
        tenant_id: str,
        document_type: str,
        document_id: str,
        from_status: str,
        to_status: str,
    ) -> None:
        self._logger.info(
            "document_status_changed",
            tenant_id=tenant_id,
            document_type=document_type,
            document_id=document_id,
            from_status=from_status,
            to_status=to_status,
            **self._get_context_kwargs(),
        )

    def payment_allocated(
        self, tenant_id: str, payment_id: str, invoice_id: str, amount: str
    ) -> None:
        self._logger.info(
            "payment_allocated",
            tenant_id=tenant_id,
            payment_id=payment_id,
            invoice_id=invoice_id,
            amount=amount,
            **self._get_context_kwargs(),
        )

    def operation_rejected(
        self, tenant_id: str, document_type: str, operation: str, error_code: str
    ) -> None:
        self._logger.warning(
            "document_operation_rejected",
            tenant_id=tenant_id,
            document_type=document_type,
            operation=operation,
            error_code=error_code,
            **self._get_context_kwargs(),
        )
