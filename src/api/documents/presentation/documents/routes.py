"""HTTP routes for orders and invoices.

One set of routes serves every document type; the ``{doc_slug}`` segment
(``sales-orders``, ``purchase-orders``, ``sales-invoices``,
``purchase-invoices``) selects the definition.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Path, status

from documents.application.orchestrator import DocumentTransactionOrchestrator
from documents.application.registry import DocumentDefinition, definition_for_slug
from documents.dependencies import get_orchestrator
from documents.presentation.documents.models import (
    CancelRequest,
    CreateDocumentRequest,
    DocumentResponse,
    UpdateDocumentRequest,
)
from iam.application.value_objects import Principal
from iam.dependencies.user import get_current_principal
from shared_kernel.exceptions import NotFoundError

router = APIRouter(
    prefix="/documents",
    tags=["documents"],
)


def get_document_definition(
    doc_slug: Annotated[str, Path(description="Document type, e.g. sales-invoices")],
) -> DocumentDefinition:
    """Resolve the document type named in the path.

    Raises:
        NotFoundError: 404 for an unknown document type
    """
    definition = definition_for_slug(doc_slug)
    if definition is None:
        raise NotFoundError(f"Unknown document type: {doc_slug}")
    return definition


Definition = Annotated[DocumentDefinition, Depends(get_document_definition)]
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
Orchestrator = Annotated[DocumentTransactionOrchestrator, Depends(get_orchestrator)]


@router.post("/{doc_slug}", status_code=status.HTTP_201_CREATED)
async def create_document(
    body: CreateDocumentRequest,
    definition: Definition,
    principal: CurrentPrincipal,
    orchestrator: Orchestrator,
) -> DocumentResponse:
    """Create a document with its lines and the next number of its series.

    Returns:
        DocumentResponse with the allocated number and computed totals

    Raises:
        DocumentValidationError: 400 for invalid lines or missing fields
        CrossTenantReferenceError: 422 if a reference is not visible
        NotFoundError: 404 if a reference is inactive or mismatched
    """
    view = await orchestrator.create(
        definition.doc_type, body.to_input(definition), created_by=principal.id
    )
    return DocumentResponse.from_view(definition, view)


@router.get("/{doc_slug}/{document_id}")
async def get_document(
    document_id: str,
    definition: Definition,
    principal: CurrentPrincipal,
    orchestrator: Orchestrator,
) -> DocumentResponse:
    """Get a document with its lines."""
    view = await orchestrator.get(definition.doc_type, document_id)
    return DocumentResponse.from_view(definition, view)


@router.put("/{doc_slug}/{document_id}")
async def update_document(
    document_id: str,
    body: UpdateDocumentRequest,
    definition: Definition,
    principal: CurrentPrincipal,
    orchestrator: Orchestrator,
) -> DocumentResponse:
    """Edit a DRAFT document.

    Raises:
        DocumentNotEditableError: 409 once the document left DRAFT
    """
    view = await orchestrator.update(
        definition.doc_type, document_id, body.to_changes(definition)
    )
    return DocumentResponse.from_view(definition, view)


@router.post("/{doc_slug}/{document_id}/cancel")
async def cancel_document(
    document_id: str,
    definition: Definition,
    principal: CurrentPrincipal,
    orchestrator: Orchestrator,
    body: Annotated[CancelRequest | None, Body()] = None,
) -> DocumentResponse:
    """Cancel a document.

    Raises:
        InvalidTransitionError: 409 if the document cannot be cancelled
    """
    reason = body.reason if body else None
    view = await orchestrator.cancel(definition.doc_type, document_id, reason=reason)
    return DocumentResponse.from_view(definition, view)


@router.post("/{doc_slug}/{document_id}/approve")
async def approve_document(
    document_id: str,
    definition: Definition,
    principal: CurrentPrincipal,
    orchestrator: Orchestrator,
) -> DocumentResponse:
    """Confirm an order, send a sales invoice or approve a purchase invoice.

    Raises:
        InvalidTransitionError: 409 if the document cannot be approved
    """
    view = await orchestrator.approve(
        definition.doc_type, document_id, approved_by=principal.id
    )
    return DocumentResponse.from_view(definition, view)
