"""Domain probes for document infrastructure."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class SequenceProbe(Protocol):
    """Domain probe for document number allocation."""

    def number_allocated(self, tenant_id: str, document_type: str, number: str) -> None:
        """Record that a number was handed out."""
        ...

    def unparseable_number(self, number: str, series: str) -> None:
        """Record that the latest number of a series had no numeric suffix."""
        ...

    def with_context(self, context: ObservationContext) -> SequenceProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultSequenceProbe:
    """Default implementation of SequenceProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultSequenceProbe:
        """Create a new probe with observation context bound."""
        return DefaultSequenceProbe(logger=self._logger, context=context)

    def number_allocated(self, tenant_id: str, document_type: str, number: str) -> None:
        self._logger.debug(
            "document_number_allocated",
            tenant_id=tenant_id,
            document_type=document_type,
            number=number,
            **self._get_context_kwargs(),
        )

    def unparseable_number(self, number: str, series: str) -> None:
        self._logger.warning(
            "document_number_unparseable",
            number=number,
            series=series,
            **self._get_context_kwargs(),
        )
