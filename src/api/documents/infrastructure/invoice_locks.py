"""In-process locks on invoices whose balance is being changed.

Applying or reversing a payment reads an invoice's balance, checks it and
writes it back. Callers touching the same invoice are serialised here for
the whole of their transaction. On PostgreSQL the invoice rows are also
read ``FOR UPDATE``, so other processes wait for the commit as well.
"""

from __future__ import annotations

import asyncio
import weakref
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator, Iterable

from shared_kernel.middleware.tenant_context import canonical_tenant_id


class InvoiceLockRegistry:
    """One asyncio lock per invoice currently in use.

    Locks are held weakly, like the series locks of the sequence generator.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def lock_for(self, tenant_id: str, invoice_id: str) -> asyncio.Lock:
        name = f"{canonical_tenant_id(tenant_id)}:{invoice_id}"
        lock = self._locks.get(name)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[name] = lock
        return lock

    @asynccontextmanager
    async def hold(self, tenant_id: str, invoice_ids: Iterable[str]) -> AsyncIterator[None]:
        """Hold the locks of every invoice in ``invoice_ids``.

        Locks are taken in sorted id order so two callers sharing several
        invoices cannot deadlock.
        """
        async with AsyncExitStack() as stack:
            for invoice_id in sorted(set(invoice_ids)):
                await stack.enter_async_context(self.lock_for(tenant_id, invoice_id))
            yield


_default_registry: InvoiceLockRegistry | None = None


def get_default_invoice_locks() -> InvoiceLockRegistry:
    """Process-wide registry shared by every request."""
    global _default_registry
    if _default_registry is None:
        _default_registry = InvoiceLockRegistry()
    return _default_registry
