"""Dependency injection for the documents bounded context.

Composes the request's tenant-bound session with the process-wide sequence
generator into the orchestrator and payment service.
"""

from typing import Annotated

from fastapi import Depends

from documents.application.observability import DefaultDocumentProbe, DocumentProbe
from documents.application.orchestrator import DocumentTransactionOrchestrator
from documents.application.payment_service import PaymentService
from documents.infrastructure.sequence_generator import (
    SequenceGenerator,
    get_default_generator,
)
from iam.dependencies.tenant_session import get_tenant_session
from infrastructure.database.tenant_session import TenantSession
from infrastructure.settings import DocumentSettings, get_document_settings


def get_document_probe() -> DocumentProbe:
    """Get DocumentProbe instance.

    Returns:
        DefaultDocumentProbe instance for observability
    """
    return DefaultDocumentProbe()


def get_sequence_generator() -> SequenceGenerator:
    """Get the process-wide sequence generator.

    All requests share it so same-series callers queue on one lock.
    """
    return get_default_generator()


def get_orchestrator(
    tenant_session: Annotated[TenantSession, Depends(get_tenant_session)],
    sequences: Annotated[SequenceGenerator, Depends(get_sequence_generator)],
    settings: Annotated[DocumentSettings, Depends(get_document_settings)],
    probe: Annotated[DocumentProbe, Depends(get_document_probe)],
) -> DocumentTransactionOrchestrator:
    """Get DocumentTransactionOrchestrator bound to the request's tenant."""
    return DocumentTransactionOrchestrator(
        tenant_session=tenant_session,
        sequences=sequences,
        settings=settings,
        probe=probe,
    )


def get_payment_service(
    tenant_session: Annotated[TenantSession, Depends(get_tenant_session)],
    sequences: Annotated[SequenceGenerator, Depends(get_sequence_generator)],
    settings: Annotated[DocumentSettings, Depends(get_document_settings)],
    probe: Annotated[DocumentProbe, Depends(get_document_probe)],
) -> PaymentService:
    """Get PaymentService bound to the request's tenant."""
    return PaymentService(
        tenant_session=tenant_session,
        sequences=sequences,
        settings=settings,
        probe=probe,
    )
