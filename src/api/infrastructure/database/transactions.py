"""Atomic units of work on a tenant-bound session."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.exceptions import TenantNotBoundError
from infrastructure.database.tenant_session import TenantSession, bound_tenant_id
from shared_kernel.exceptions import SequenceConflictError, UnavailableError

T = TypeVar("T")

DEFAULT_TIMEOUT_SECONDS = 10.0

# Constraint names (PostgreSQL) and column lists (SQLite) of the number keys.
_NUMBER_CONSTRAINT_MARKERS = ("_tenant_number", ".number")


def is_number_conflict(error: IntegrityError) -> bool:
    """Whether an integrity error came from a ``(tenant_id, number)`` key."""
    message = str(error.orig)
    return any(marker in message for marker in _NUMBER_CONSTRAINT_MARKERS)


async def run_in_tenant_transaction(
    tenant_session: TenantSession,
    fn: Callable[[AsyncSession], Awaitable[T]],
    *,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> T:
    """Run ``fn`` in one transaction on the tenant-bound session.

    Everything ``fn`` writes commits together or not at all. The
    transaction is bounded by ``timeout_seconds``.

    Raises:
        TenantNotBoundError: If the session is no longer bound to the tenant.
        SequenceConflictError: If a document number was taken concurrently.
        UnavailableError: On timeout or a storage connectivity failure.
    """
    session = tenant_session.session
    if bound_tenant_id(session) != tenant_session.tenant_id:
        raise TenantNotBoundError(
            f"Session is not bound to tenant {tenant_session.tenant_id}"
        )

    try:
        async with asyncio.timeout(timeout_seconds):
            async with session.begin():
                return await fn(session)
    except TimeoutError as e:
        raise UnavailableError("Transaction timed out") from e
    except IntegrityError as e:
        if is_number_conflict(e):
            raise SequenceConflictError() from e
        raise
    except OperationalError as e:
        raise UnavailableError() from e
