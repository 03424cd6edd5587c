"""Fixtures for document and payment service tests."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from documents.application.observability import DocumentProbe
from documents.application.orchestrator import DocumentTransactionOrchestrator
from documents.application.payment_service import PaymentService
from documents.application.value_objects import DocumentInput, LineInput
from documents.infrastructure.sequence_generator import SequenceGenerator
from infrastructure.database.tenant_session import TenantSession
from infrastructure.settings import DocumentSettings

DOC_DATE = date(2024, 10, 12)
DUE_DATE = date(2024, 11, 11)
CREATED_AT = datetime(2024, 10, 12, 9, 30, tzinfo=timezone.utc)


def clock() -> datetime:
    return CREATED_AT


def line(
    item_id: str | None,
    quantity: str = "2",
    unit_price: str = "50",
    tax_rate: str = "0.2",
    discount: str = "0",
) -> LineInput:
    return LineInput(
        item_id=item_id,
        quantity=Decimal(quantity),
        unit_price=Decimal(unit_price),
        discount_percentage=Decimal(discount),
        tax_rate=Decimal(tax_rate),
    )


def document_input(party_id: str, *lines: LineInput, **fields) -> DocumentInput:
    fields.setdefault("due_date", DUE_DATE)
    return DocumentInput(
        party_id=party_id,
        document_date=fields.pop("document_date", DOC_DATE),
        lines=tuple(lines),
        **fields,
    )


@pytest.fixture
def document_probe() -> MagicMock:
    return MagicMock(spec=DocumentProbe)


@pytest.fixture
def document_settings() -> DocumentSettings:
    return DocumentSettings(retry_backoff_seconds=0)


@pytest.fixture
def sequences() -> SequenceGenerator:
    return SequenceGenerator()


@pytest.fixture
def orchestrator_a(
    tenant_session_a: TenantSession,
    sequences: SequenceGenerator,
    document_settings: DocumentSettings,
    document_probe: MagicMock,
) -> DocumentTransactionOrchestrator:
    return DocumentTransactionOrchestrator(
        tenant_session_a, sequences, document_settings, document_probe, clock
    )


@pytest.fixture
def orchestrator_b(
    tenant_session_b: TenantSession,
    sequences: SequenceGenerator,
    document_settings: DocumentSettings,
    document_probe: MagicMock,
) -> DocumentTransactionOrchestrator:
    return DocumentTransactionOrchestrator(
        tenant_session_b, sequences, document_settings, document_probe, clock
    )


@pytest.fixture
def payments_a(
    tenant_session_a: TenantSession,
    sequences: SequenceGenerator,
    document_settings: DocumentSettings,
    document_probe: MagicMock,
) -> PaymentService:
    return PaymentService(tenant_session_a, sequences, document_settings, document_probe)
