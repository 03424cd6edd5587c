"""HTTP routes for payments."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends, status

from documents.application.payment_service import PaymentService
from documents.dependencies import get_payment_service
from documents.presentation.documents.models import CancelRequest
from documents.presentation.payments.models import (
    CreatePaymentRequest,
    PaymentResponse,
    UpdatePaymentRequest,
)
from iam.application.value_objects import Principal
from iam.dependencies.user import get_current_principal

router = APIRouter(
    prefix="/payments",
    tags=["payments"],
)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_payment(
    body: CreatePaymentRequest,
    principal: Annotated[Principal, Depends(get_current_principal)],
    service: Annotated[PaymentService, Depends(get_payment_service)],
) -> PaymentResponse:
    """Record a payment and apply its allocations.

    Raises:
        DocumentValidationError: 400 for a mismatched party or over-allocation
        AllocationExceedsBalanceError: 400 if an invoice balance is exceeded
        CrossTenantReferenceError: 422 if the party or an invoice is not visible
    """
    view = await service.create(body.to_input(), created_by=principal.id)
    return PaymentResponse.from_view(view)


@router.get("/{payment_id}")
async def get_payment(
    payment_id: str,
    principal: Annotated[Principal, Depends(get_current_principal)],
    service: Annotated[PaymentService, Depends(get_payment_service)],
) -> PaymentResponse:
    """Get a payment with its allocations."""
    return PaymentResponse.from_view(await service.get(payment_id))


@router.put("/{payment_id}")
async def update_payment(
    payment_id: str,
    body: UpdatePaymentRequest,
    principal: Annotated[Principal, Depends(get_current_principal)],
    service: Annotated[PaymentService, Depends(get_payment_service)],
) -> PaymentResponse:
    """Edit a PENDING payment.

    Raises:
        DocumentNotEditableError: 409 once the payment left PENDING
    """
    return PaymentResponse.from_view(await service.update(payment_id, body.to_changes()))


@router.post("/{payment_id}/cancel")
async def cancel_payment(
    payment_id: str,
    principal: Annotated[Principal, Depends(get_current_principal)],
    service: Annotated[PaymentService, Depends(get_payment_service)],
    body: Annotated[CancelRequest | None, Body()] = None,
) -> PaymentResponse:
    """Cancel a PENDING payment and reverse its allocations.

    Raises:
        InvalidTransitionError: 409 if the payment or an invoice cannot move back
    """
    reason = body.reason if body else None
    return PaymentResponse.from_view(await service.cancel(payment_id, reason=reason))


@router.post("/{payment_id}/approve")
async def approve_payment(
    payment_id: str,
    principal: Annotated[Principal, Depends(get_current_principal)],
    service: Annotated[PaymentService, Depends(get_payment_service)],
) -> PaymentResponse:
    """Complete a PENDING payment."""
    view = await service.approve(payment_id, approved_by=principal.id)
    return PaymentResponse.from_view(view)
