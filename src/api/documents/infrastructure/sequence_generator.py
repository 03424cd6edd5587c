"""Sequential document numbers per tenant, document type and period.

Numbers look like ``SI-202410-00042``. Allocation must be linearisable per
series even with many concurrent requests, so three layers cooperate:

* ``SeriesLockRegistry`` serialises callers of the same series inside
  this process for the whole of their transaction.
* On PostgreSQL, ``pg_advisory_xact_lock`` on a stable hash of the series
  serialises callers across processes until their transaction ends.
* The ``(tenant_id, number)`` unique constraint rejects anything that
  still slips through; the caller reports that as a sequence conflict.

Different series (other tenant, type or period) never share a lock.
"""

from __future__ import annotations

import asyncio
import hashlib
import weakref
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date
from typing import Any, AsyncIterator

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from documents.domain.value_objects import DocumentType
from documents.infrastructure.models import (
    PaymentModel,
    PurchaseInvoiceModel,
    PurchaseOrderModel,
    SalesInvoiceModel,
    SalesOrderModel,
)
from documents.infrastructure.observability import DefaultSequenceProbe, SequenceProbe
from infrastructure.settings import get_document_settings
from shared_kernel.middleware.tenant_context import canonical_tenant_id

DEFAULT_PAD_WIDTH = 5

_NUMBERED_MODELS: dict[DocumentType, Any] = {
    DocumentType.SALES_ORDER: SalesOrderModel,
    DocumentType.PURCHASE_ORDER: PurchaseOrderModel,
    DocumentType.SALES_INVOICE: SalesInvoiceModel,
    DocumentType.PURCHASE_INVOICE: PurchaseInvoiceModel,
    DocumentType.PAYMENT: PaymentModel,
}

_ADVISORY_LOCK_SQL = text("SELECT pg_advisory_xact_lock(:key)")


def compute_stable_hash(key: str) -> int:
    """Compute a stable hash for advisory lock keys.

    Uses SHA-256 so the value is identical across processes and Python
    versions, masked into PostgreSQL's non-negative bigint range.

    Args:
        key: Series key, ``tenant:prefix:period``

    Returns:
        Integer suitable for pg_advisory_xact_lock
    """
    hash_hex = hashlib.sha256(key.encode()).hexdigest()[:16]
    return int(hash_hex, 16) & 0x7FFFFFFFFFFFFFFF


@dataclass(frozen=True)
class SeriesKey:
    """Identifies one number series."""

    tenant_id: str
    doc_type: DocumentType
    period: str

    @property
    def prefix(self) -> str:
        return f"{self.doc_type.prefix}-{self.period}-"

    def __str__(self) -> str:
        return f"{self.tenant_id}:{self.doc_type.prefix}:{self.period}"


class SeriesLockRegistry:
    """One asyncio lock per active series.

    Locks are held weakly: a series nobody is waiting on costs nothing.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def lock_for(self, key: SeriesKey) -> asyncio.Lock:
        name = str(key)
        lock = self._locks.get(name)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[name] = lock
        return lock

    @asynccontextmanager
    async def hold(self, key: SeriesKey) -> AsyncIterator[None]:
        lock = self.lock_for(key)
        async with lock:
            yield


def parse_sequence(number: str, prefix: str) -> int | None:
    """Return the numeric suffix of ``number`` or None if it has none."""
    if not number.startswith(prefix):
        return None
    tail = number[len(prefix):]
    if not tail.isdigit():
        return None
    return int(tail)


class SequenceGenerator:
    """Allocates the next number of a series inside the caller's transaction."""

    def __init__(
        self,
        pad_width: int = DEFAULT_PAD_WIDTH,
        locks: SeriesLockRegistry | None = None,
        probe: SequenceProbe | None = None,
    ):
        self._pad_width = pad_width
        self._locks = locks or SeriesLockRegistry()
        self._probe = probe or DefaultSequenceProbe()

    def series(self, tenant_id: str, doc_type: DocumentType, on: date) -> SeriesKey:
        return SeriesKey(
            tenant_id=canonical_tenant_id(tenant_id),
            doc_type=doc_type,
            period=doc_type.period_for(on),
        )

    @asynccontextmanager
    async def reserve(self, key: SeriesKey) -> AsyncIterator[None]:
        """Serialise same-series callers in this process.

        Wrap the whole transaction that calls ``next_number`` so the lock
        is released only after commit or rollback.
        """
        async with self._locks.hold(key):
            yield

    def format(self, key: SeriesKey, sequence: int) -> str:
        return f"{key.prefix}{sequence:0{self._pad_width}d}"

    async def next_number(self, session: AsyncSession, key: SeriesKey) -> str:
        """Return the next unused number of ``key``'s series.

        Must run inside an open transaction on a session bound to
        ``key.tenant_id``; the returned number is only reserved once the
        caller's row is committed.
        """
        connection = await session.connection()
        if connection.dialect.name == "postgresql":
            await session.execute(
                _ADVISORY_LOCK_SQL, {"key": compute_stable_hash(str(key))}
            )

        model = _NUMBERED_MODELS[key.doc_type]
        # Longest first keeps numbers past the pad width ordered correctly.
        stmt = (
            select(model.number)
            .where(model.number.startswith(key.prefix, autoescape=True))
            .order_by(func.length(model.number).desc(), model.number.desc())
            .limit(1)
        )
        latest = (await session.execute(stmt)).scalar_one_or_none()

        last = 0
        if latest is not None:
            parsed = parse_sequence(latest, key.prefix)
            if parsed is None:
                self._probe.unparseable_number(number=latest, series=str(key))
            else:
                last = parsed

        number = self.format(key, last + 1)
        self._probe.number_allocated(
            tenant_id=key.tenant_id,
            document_type=key.doc_type.value,
            number=number,
        )
        return number


_default_generator: SequenceGenerator | None = None


def get_default_generator() -> SequenceGenerator:
    """Process-wide generator, sharing one lock registry between requests."""
    global _default_generator
    if _default_generator is None:
        _default_generator = SequenceGenerator(
            pad_width=get_document_settings().sequence_pad_width
        )
    return _default_generator


async def allocate_document_number(
    session: AsyncSession,
    tenant_id: str,
    doc_type: DocumentType,
    on: date,
    generator: SequenceGenerator | None = None,
) -> str:
    """Allocate the next number for ``doc_type`` dated ``on``.

    Runs inside the caller's transaction. Callers that allocate concurrently
    in one process should hold ``generator.reserve(...)`` around their
    transaction; the orchestrator does.
    """
    generator = generator or get_default_generator()
    return await generator.next_number(session, generator.series(tenant_id, doc_type, on))
