"""Tenant binding for storage sessions.

A request's ``AsyncSession`` is bound to exactly one tenant before any
business query runs. The binding lives in ``session.info`` and in
transaction-local database settings only, so it can never leak to another
request through the connection pool.

Enforcement happens in three places, all registered as events on
``TenantScopedSession``:

* ``after_begin`` - on PostgreSQL, every transaction starts with
  ``set_config('app.current_tenant_id', :tenant_id, true)`` so the
  row-level security policies created by the migrations apply. An unbound
  session sets the empty string, which matches no rows.
* ``do_orm_execute`` - every ORM SELECT/UPDATE/DELETE gets
  ``tenant_id == <bound tenant>`` criteria for all ``TenantScopedMixin``
  entities. Querying tenant-owned entities on an unbound session raises
  ``TenantNotBoundError``.
* ``before_flush`` - new tenant-owned rows are stamped with the bound
  tenant; rows for any other tenant are rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import event, inspect, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import ORMExecuteState, Session, with_loader_criteria

from infrastructure.database.exceptions import (
    CrossTenantWriteError,
    TenantBindingError,
    TenantNotBoundError,
)
from infrastructure.database.models import TenantScopedMixin
from infrastructure.observability import (
    DefaultTenantSessionProbe,
    TenantSessionProbe,
)
from shared_kernel.middleware.tenant_context import TenantContext, canonical_tenant_id

TENANT_INFO_KEY = "tenant_id"
STATEMENT_TIMEOUT_INFO_KEY = "statement_timeout_ms"

_SET_TENANT_SQL = text("SELECT set_config('app.current_tenant_id', :tenant_id, true)")
_SET_TIMEOUT_SQL = text("SELECT set_config('statement_timeout', :timeout, true)")


class TenantScopedSession(Session):
    """Sync session class used under every request ``AsyncSession``.

    Exists so the tenant events below attach to application sessions only,
    not to every ``Session`` in the process (alembic, ad-hoc scripts).
    """


@dataclass(frozen=True)
class TenantSession:
    """A storage session bound to a resolved tenant.

    Handlers receive this instead of a raw session, which makes "query
    before binding" impossible to express through the dependency graph.
    """

    tenant: TenantContext
    session: AsyncSession

    @property
    def tenant_id(self) -> str:
        return self.tenant.tenant_id


def bound_tenant_id(session: AsyncSession | Session) -> str | None:
    """Return the tenant currently bound to a session, if any."""
    return session.info.get(TENANT_INFO_KEY)


def _is_tenant_scoped(cls: type) -> bool:
    return isinstance(cls, type) and issubclass(cls, TenantScopedMixin)


def _apply_binding(connection: Connection, info: dict[str, Any]) -> None:
    """Push the session's tenant into the current database transaction."""
    if connection.dialect.name != "postgresql":
        return
    connection.execute(_SET_TENANT_SQL, {"tenant_id": info.get(TENANT_INFO_KEY) or ""})
    timeout = info.get(STATEMENT_TIMEOUT_INFO_KEY)
    if timeout:
        connection.execute(_SET_TIMEOUT_SQL, {"timeout": str(int(timeout))})


@event.listens_for(TenantScopedSession, "after_begin")
def _bind_on_begin(session: Session, transaction: Any, connection: Connection) -> None:
    _apply_binding(connection, session.info)


@event.listens_for(TenantScopedSession, "do_orm_execute")
def _filter_by_tenant(execute_state: ORMExecuteState) -> None:
    if not (
        execute_state.is_select
        or execute_state.is_update
        or execute_state.is_delete
    ):
        return
    if execute_state.is_column_load or execute_state.is_relationship_load:
        return

    tenant_id = execute_state.session.info.get(TENANT_INFO_KEY)
    if tenant_id is None:
        scoped = [
            m.class_.__name__
            for m in execute_state.all_mappers
            if _is_tenant_scoped(m.class_)
        ]
        if scoped:
            raise TenantNotBoundError(
                f"Query on {', '.join(scoped)} requires a tenant-bound session"
            )
        return

    execute_state.statement = execute_state.statement.options(
        with_loader_criteria(
            TenantScopedMixin,
            lambda cls: cls.tenant_id == tenant_id,
            include_aliases=True,
        )
    )


@event.listens_for(TenantScopedSession, "before_flush")
def _stamp_tenant(session: Session, flush_context: Any, instances: Any) -> None:
    tenant_id = session.info.get(TENANT_INFO_KEY)

    for obj in session.new:
        if not isinstance(obj, TenantScopedMixin):
            continue
        if tenant_id is None:
            raise TenantNotBoundError(
                f"Cannot insert {type(obj).__name__} without a bound tenant"
            )
        if obj.tenant_id is None:
            obj.tenant_id = tenant_id
        elif obj.tenant_id != tenant_id:
            raise CrossTenantWriteError(type(obj).__name__, tenant_id, obj.tenant_id)

    for obj in [*session.dirty, *session.deleted]:
        if not isinstance(obj, TenantScopedMixin):
            continue
        history = inspect(obj).attrs.tenant_id.history
        if tenant_id is None or history.deleted or obj.tenant_id != tenant_id:
            raise CrossTenantWriteError(
                type(obj).__name__, tenant_id or "", obj.tenant_id
            )


async def bind_tenant(
    session: AsyncSession,
    tenant_id: str,
    *,
    statement_timeout_ms: int | None = None,
    probe: TenantSessionProbe | None = None,
) -> str:
    """Bind a session to a tenant and apply the binding to storage.

    Inside an open transaction the binding is pushed to the current
    connection immediately; otherwise a short transaction is opened so a
    storage failure surfaces here, before the handler runs. Every later
    transaction re-applies it through ``after_begin``.

    Args:
        session: The request's session.
        tenant_id: Raw tenant identifier; validated and canonicalised.
        statement_timeout_ms: Optional transaction-local statement timeout.
        probe: Optional domain probe for observability.

    Returns:
        The canonical tenant id now bound to the session.

    Raises:
        InvalidTenantIdError: If the tenant id is not a valid ULID.
        TenantBindingError: If the binding could not be applied.
    """
    probe = probe or DefaultTenantSessionProbe()
    canonical = canonical_tenant_id(tenant_id)

    session.info[TENANT_INFO_KEY] = canonical
    if statement_timeout_ms:
        session.info[STATEMENT_TIMEOUT_INFO_KEY] = statement_timeout_ms

    try:
        if session.in_transaction():
            connection = await session.connection()
            await connection.run_sync(_apply_binding, session.info)
        else:
            async with session.begin():
                await session.connection()
    except SQLAlchemyError as e:
        session.info.pop(TENANT_INFO_KEY, None)
        probe.tenant_binding_failed(tenant_id=canonical, error=e)
        raise TenantBindingError() from e

    probe.tenant_bound(tenant_id=canonical)
    return canonical


def release_tenant(
    session: AsyncSession, probe: TenantSessionProbe | None = None
) -> None:
    """Clear a session's tenant binding."""
    tenant_id = session.info.pop(TENANT_INFO_KEY, None)
    session.info.pop(STATEMENT_TIMEOUT_INFO_KEY, None)
    if tenant_id is not None:
        (probe or DefaultTenantSessionProbe()).tenant_released(tenant_id=tenant_id)
