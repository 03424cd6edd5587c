"""Domain probes for infrastructure observability.

Domain probes provide a high-level instrumentation API oriented around
domain semantics, keeping infrastructure code clean and testable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class ConnectionProbe(Protocol):
    """Domain probe for database engine lifecycle."""

    def engine_created(self, target: str) -> None:
        """Record that the async engine was created."""
        ...

    def pool_closed(self) -> None:
        """Record that the connection pool was closed."""
        ...

    def with_context(self, context: ObservationContext) -> ConnectionProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultConnectionProbe:
    """Default implementation of ConnectionProbe using structlog.

    Supports observation context for including request-scoped metadata
    with all log events.
    """

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultConnectionProbe:
        """Create a new probe with observation context bound."""
        return DefaultConnectionProbe(logger=self._logger, context=context)

    def engine_created(self, target: str) -> None:
        """Record that the async engine was created."""
        self._logger.info(
            "database_engine_created",
            target=target,
            **self._get_context_kwargs(),
        )

    def pool_closed(self) -> None:
        """Record that the connection pool was closed."""
        self._logger.info(
            "connection_pool_closed",
            **self._get_context_kwargs(),
        )


class TenantSessionProbe(Protocol):
    """Domain probe for binding tenants to storage sessions."""

    def tenant_bound(self, tenant_id: str) -> None:
        """Record that a session was bound to a tenant."""
        ...

    def tenant_binding_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that applying the tenant binding to storage failed."""
        ...

    def tenant_released(self, tenant_id: str) -> None:
        """Record that a session's tenant binding was cleared."""
        ...

    def with_context(self, context: ObservationContext) -> TenantSessionProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantSessionProbe:
    """Default implementation of TenantSessionProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultTenantSessionProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantSessionProbe(logger=self._logger, context=context)

    def tenant_bound(self, tenant_id: str) -> None:
        self._logger.debug(
            "tenant_session_bound",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def tenant_binding_failed(self, tenant_id: str, error: Exception) -> None:
        self._logger.error(
            "tenant_session_binding_failed",
            tenant_id=tenant_id,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def tenant_released(self, tenant_id: str) -> None:
        self._logger.debug(
            "tenant_session_released",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )
