"""Domain probe for AuthService operations (signup, register, login, logout)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class AuthServiceProbe(Protocol):
    """Domain probe for account and session lifecycle events."""

    def tenant_signed_up(self, tenant_id: str, code: str, user_id: str) -> None:
        """Record that a new tenant and its first user were created."""
        ...

    def user_registered(self, tenant_id: str, user_id: str) -> None:
        """Record that a user joined an existing tenant."""
        ...

    def user_logged_in(self, tenant_id: str, user_id: str, replaced_sessions: int) -> None:
        """Record a successful login."""
        ...

    def login_failed(self, tenant_id: str, reason: str) -> None:
        """Record a rejected login attempt."""
        ...

    def user_logged_out(self, tenant_id: str, user_id: str) -> None:
        """Record that a session was ended."""
        ...

    def with_context(self, context: ObservationContext) -> AuthServiceProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultAuthServiceProbe:
    """Default implementation of AuthServiceProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultAuthServiceProbe:
        """Create a new probe with observation context bound."""
        return DefaultAuthServiceProbe(logger=self._logger, context=context)

    def tenant_signed_up(self, tenant_id: str, code: str, user_id: str) -> None:
        self._logger.info(
            "tenant_signed_up",
            tenant_id=tenant_id,
            code=code,
            user_id=user_id,
            **self._get_context_kwargs(),
        )

    def user_registered(self, tenant_id: str, user_id: str) -> None:
        self._logger.info(
            "user_registered",
            tenant_id=tenant_id,
            user_id=user_id,
            **self._get_context_kwargs(),
        )

    def user_logged_in(self, tenant_id: str, user_id: str, replaced_sessions: int) -> None:
        self._logger.info(
            "user_logged_in",
            tenant_id=tenant_id,
            user_id=user_id,
            replaced_sessions=replaced_sessions,
            **self._get_context_kwargs(),
        )

    def login_failed(self, tenant_id: str, reason: str) -> None:
        self._logger.warning(
            "login_failed",
            tenant_id=tenant_id,
            reason=reason,
            **self._get_context_kwargs(),
        )

    def user_logged_out(self, tenant_id: str, user_id: str) -> None:
        self._logger.info(
            "user_logged_out",
            tenant_id=tenant_id,
            user_id=user_id,
            **self._get_context_kwargs(),
        )
