"""Protocol for authentication observability.

Defines the interface for domain probes that capture identity resolution
events for the ``get_current_principal`` dependency.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class AuthenticationProbe(Protocol):
    """Domain probe for authentication operations."""

    def user_authenticated(
        self,
        user_id: str,
        tenant_id: str,
    ) -> None:
        """Record that a verified token resolved to an active principal."""
        ...

    def authentication_failed(
        self,
        reason: str,
    ) -> None:
        """Record authentication failure."""
        ...

    def tenant_mismatch(
        self,
        token_tenant_id: str,
        request_tenant_id: str,
    ) -> None:
        """Record that a token was presented for a different tenant."""
        ...

    def with_context(self, context: ObservationContext) -> AuthenticationProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultAuthenticationProbe:
    """Default implementation of AuthenticationProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultAuthenticationProbe:
        """Create a new probe with observation context bound."""
        return DefaultAuthenticationProbe(logger=self._logger, context=context)

    def user_authenticated(
        self,
        user_id: str,
        tenant_id: str,
    ) -> None:
        """Record that a verified token resolved to an active principal."""
        self._logger.info(
            "user_authenticated",
            user_id=user_id,
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def authentication_failed(
        self,
        reason: str,
    ) -> None:
        """Record authentication failure."""
        self._logger.warning(
            "authentication_failed",
            reason=reason,
            **self._get_context_kwargs(),
        )

    def tenant_mismatch(
        self,
        token_tenant_id: str,
        request_tenant_id: str,
    ) -> None:
        """Record that a token was presented for a different tenant."""
        self._logger.warning(
            "authentication_tenant_mismatch",
            token_tenant_id=token_tenant_id,
            request_tenant_id=request_tenant_id,
            **self._get_context_kwargs(),
        )
