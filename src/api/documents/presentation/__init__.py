"""Presentation layer for the documents bounded context."""

from fastapi import APIRouter

from documents.presentation.documents.routes import router as documents_router
from documents.presentation.payments.routes import router as payments_router

router = APIRouter()
router.include_router(documents_router)
router.include_router(payments_router)

__all__ = ["router"]
