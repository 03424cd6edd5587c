"""Unit tests for run_in_tenant_transaction()."""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError

from documents.infrastructure.models import CustomerModel
from infrastructure.database.exceptions import TenantNotBoundError
from infrastructure.database.tenant_session import TenantSession, release_tenant
from infrastructure.database.transactions import (
    is_number_conflict,
    run_in_tenant_transaction,
)
from shared_kernel.exceptions import SequenceConflictError, UnavailableError
from tests.unit.conftest import new_id


async def _customer_codes(tenant_session: TenantSession) -> list[str]:
    result = await tenant_session.session.execute(select(CustomerModel.code))
    return sorted(result.scalars().all())


class TestRunInTenantTransaction:
    """Tests for the transactional unit of work."""

    @pytest.mark.asyncio
    async def test_commits_all_writes(self, tenant_session_a: TenantSession) -> None:
        async def write(session):
            session.add(CustomerModel(id=new_id(), code="A", name="A"))
            session.add(CustomerModel(id=new_id(), code="B", name="B"))
            return "done"

        result = await run_in_tenant_transaction(tenant_session_a, write)

        assert result == "done"
        assert await _customer_codes(tenant_session_a) == ["A", "B"]

    @pytest.mark.asyncio
    async def test_rolls_back_everything_on_error(
        self, tenant_session_a: TenantSession
    ) -> None:
        async def write(session):
            session.add(CustomerModel(id=new_id(), code="A", name="A"))
            await session.flush()
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await run_in_tenant_transaction(tenant_session_a, write)

        assert await _customer_codes(tenant_session_a) == []

    @pytest.mark.asyncio
    async def test_requires_bound_session(self, tenant_session_a: TenantSession) -> None:
        release_tenant(tenant_session_a.session)

        async def write(session):
            raise AssertionError("must not run")

        with pytest.raises(TenantNotBoundError):
            await run_in_tenant_transaction(tenant_session_a, write)

    @pytest.mark.asyncio
    async def test_timeout_maps_to_unavailable(
        self, tenant_session_a: TenantSession
    ) -> None:
        async def slow(session):
            await asyncio.sleep(1)

        with pytest.raises(UnavailableError) as exc_info:
            await run_in_tenant_transaction(tenant_session_a, slow, timeout_seconds=0.01)

        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_operational_error_maps_to_unavailable(
        self, tenant_session_a: TenantSession
    ) -> None:
        async def broken(session):
            raise OperationalError("SELECT 1", {}, Exception("connection reset"))

        with pytest.raises(UnavailableError):
            await run_in_tenant_transaction(tenant_session_a, broken)

    @pytest.mark.asyncio
    async def test_number_conflict_maps_to_sequence_conflict(
        self, tenant_session_a: TenantSession
    ) -> None:
        async def conflict(session):
            raise IntegrityError(
                "INSERT",
                {},
                Exception(
                    "UNIQUE constraint failed: "
                    "sales_orders.tenant_id, sales_orders.number"
                ),
            )

        with pytest.raises(SequenceConflictError):
            await run_in_tenant_transaction(tenant_session_a, conflict)

    @pytest.mark.asyncio
    async def test_other_integrity_errors_propagate(
        self, tenant_session_a: TenantSession
    ) -> None:
        async def duplicate_code(session):
            session.add(CustomerModel(id=new_id(), code="DUP", name="A"))
            session.add(CustomerModel(id=new_id(), code="DUP", name="B"))

        with pytest.raises(IntegrityError):
            await run_in_tenant_transaction(tenant_session_a, duplicate_code)


class TestIsNumberConflict:
    """Tests for is_number_conflict()."""

    @pytest.mark.parametrize(
        "message",
        [
            'duplicate key value violates unique constraint "uq_sales_invoices_tenant_number"',
            "UNIQUE constraint failed: payments.tenant_id, payments.number",
        ],
    )
    def test_detects_number_keys(self, message: str) -> None:
        assert is_number_conflict(IntegrityError("INSERT", {}, Exception(message)))

    def test_ignores_other_keys(self) -> None:
        error = IntegrityError(
            "INSERT",
            {},
            Exception("UNIQUE constraint failed: customers.tenant_id, customers.code"),
        )

        assert not is_number_conflict(error)
