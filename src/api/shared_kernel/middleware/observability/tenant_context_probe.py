"""Domain probe for tenant context resolution.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events related to resolving the request's tenant from
credentials, headers and pre-auth request bodies.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class TenantContextProbe(Protocol):
    """Domain probe for tenant context resolution operations."""

    def tenant_resolved(self, tenant_id: str, source: str, path: str) -> None:
        """Record that tenant context was resolved from a given source."""
        ...

    def tenant_missing(self, path: str) -> None:
        """Record that a protected path carried no resolvable tenant."""
        ...

    def public_path_without_tenant(self, path: str) -> None:
        """Record that a public path proceeded without a tenant."""
        ...

    def invalid_tenant_id_format(self, raw_value: str, source: str) -> None:
        """Record that a tenant source contained an invalid ULID."""
        ...

    def bearer_token_ignored(self, reason: str) -> None:
        """Record that a bearer token could not supply the tenant."""
        ...

    def with_context(self, context: ObservationContext) -> TenantContextProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantContextProbe:
    """Default implementation of TenantContextProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultTenantContextProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantContextProbe(logger=self._logger, context=context)

    def tenant_resolved(self, tenant_id: str, source: str, path: str) -> None:
        """Record that tenant context was resolved from a given source."""
        self._logger.debug(
            f"tenant_context_resolved_from_{source}",
            tenant_id=tenant_id,
            path=path,
            **self._get_context_kwargs(),
        )

    def tenant_missing(self, path: str) -> None:
        """Record that a protected path carried no resolvable tenant."""
        self._logger.warning(
            "tenant_context_missing",
            path=path,
            **self._get_context_kwargs(),
        )

    def public_path_without_tenant(self, path: str) -> None:
        """Record that a public path proceeded without a tenant."""
        self._logger.debug(
            "tenant_context_skipped_public_path",
            path=path,
            **self._get_context_kwargs(),
        )

    def invalid_tenant_id_format(self, raw_value: str, source: str) -> None:
        """Record that a tenant source contained an invalid ULID."""
        self._logger.warning(
            "tenant_context_invalid_tenant_id",
            raw_value=raw_value[:64],
            source=source,
            **self._get_context_kwargs(),
        )

    def bearer_token_ignored(self, reason: str) -> None:
        """Record that a bearer token could not supply the tenant."""
        self._logger.debug(
            "tenant_context_bearer_token_ignored",
            reason=reason,
            **self._get_context_kwargs(),
        )
