"""Unit tests for domain probes.

Tests that domain probes correctly capture domain events
following the Domain Oriented Observability pattern.
"""

from unittest.mock import MagicMock

import structlog

from documents.application.observability import DefaultDocumentProbe
from documents.infrastructure.observability import DefaultSequenceProbe
from infrastructure.observability import ObservationContext
from infrastructure.observability.probes import (
    DefaultConnectionProbe,
    DefaultTenantSessionProbe,
)
from infrastructure.observability.startup_probe import DefaultStartupProbe


def _logger() -> MagicMock:
    return MagicMock(spec=structlog.stdlib.BoundLogger)


class TestConnectionProbe:
    """Tests for ConnectionProbe protocol and implementation."""

    def test_default_probe_creates_with_default_logger(self):
        """Default probe should work without explicit logger."""
        probe = DefaultConnectionProbe()
        assert probe._logger is not None

    def test_default_probe_accepts_custom_logger(self):
        """Default probe should accept a custom logger."""
        mock_logger = _logger()
        probe = DefaultConnectionProbe(logger=mock_logger)
        assert probe._logger is mock_logger

    def test_engine_created_logs_info(self):
        mock_logger = _logger()
        probe = DefaultConnectionProbe(logger=mock_logger)

        probe.engine_created(target="db:5432/bizops")

        mock_logger.info.assert_called_once_with(
            "database_engine_created", target="db:5432/bizops"
        )

    def test_pool_closed_logs_info(self):
        mock_logger = _logger()
        probe = DefaultConnectionProbe(logger=mock_logger)

        probe.pool_closed()

        mock_logger.info.assert_called_once_with("connection_pool_closed")


class TestTenantSessionProbe:
    """Tests for DefaultTenantSessionProbe."""

    def test_binding_failure_logs_error_type(self):
        mock_logger = _logger()
        probe = DefaultTenantSessionProbe(logger=mock_logger)

        probe.tenant_binding_failed(tenant_id="T1", error=RuntimeError("gone"))

        mock_logger.error.assert_called_once_with(
            "tenant_session_binding_failed",
            tenant_id="T1",
            error="gone",
            error_type="RuntimeError",
        )

    def test_bind_and_release_log_at_debug(self):
        mock_logger = _logger()
        probe = DefaultTenantSessionProbe(logger=mock_logger)

        probe.tenant_bound(tenant_id="T1")
        probe.tenant_released(tenant_id="T1")

        assert [c.args[0] for c in mock_logger.debug.call_args_list] == [
            "tenant_session_bound",
            "tenant_session_released",
        ]


class TestStartupProbe:
    """Tests for DefaultStartupProbe."""

    def test_application_started(self):
        mock_logger = _logger()
        probe = DefaultStartupProbe(logger=mock_logger)

        probe.application_started(version="0.1.0", database="localhost:5432/bizops")

        mock_logger.info.assert_called_once_with(
            "application_started", version="0.1.0", database="localhost:5432/bizops"
        )


class TestDocumentProbes:
    """Tests for the document and numbering probes."""

    def test_rejected_operation_logs_warning(self):
        mock_logger = _logger()
        probe = DefaultDocumentProbe(logger=mock_logger)

        probe.operation_rejected(
            tenant_id="T1",
            document_type="SALES_ORDER",
            operation="create",
            error_code="CROSS_TENANT_REFERENCE",
        )

        mock_logger.warning.assert_called_once_with(
            "document_operation_rejected",
            tenant_id="T1",
            document_type="SALES_ORDER",
            operation="create",
            error_code="CROSS_TENANT_REFERENCE",
        )

    def test_unparseable_number_logs_warning(self):
        mock_logger = _logger()
        probe = DefaultSequenceProbe(logger=mock_logger)

        probe.unparseable_number(number="SO-202410-X", series="SO-202410-")

        mock_logger.warning.assert_called_once_with(
            "document_number_unparseable", number="SO-202410-X", series="SO-202410-"
        )


class TestObservationContext:
    """Probes bound to a context add its metadata to every event."""

    def test_with_context_adds_metadata(self):
        mock_logger = _logger()
        context = ObservationContext(request_id="req-1")
        probe = DefaultSequenceProbe(logger=mock_logger).with_context(context)

        probe.number_allocated(tenant_id="T1", document_type="PAYMENT", number="PAY-1")

        mock_logger.debug.assert_called_once_with(
            "document_number_allocated",
            tenant_id="T1",
            document_type="PAYMENT",
            number="PAY-1",
            request_id="req-1",
        )

    def test_as_dict_skips_unset_values(self):
        context = ObservationContext(request_id="req-1").with_extra(source="header")

        assert context.as_dict() == {"request_id": "req-1", "source": "header"}

    def test_with_tenant_keeps_other_fields(self):
        context = ObservationContext(request_id="req-1", user_id="U1").with_tenant("T1")

        assert context.as_dict() == {"request_id": "req-1", "user_id": "U1", "tenant_id": "T1"}
