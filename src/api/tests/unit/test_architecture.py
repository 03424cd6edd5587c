"""Architecture tests using pytest-archon.

These tests enforce DDD architectural boundaries between the bounded
contexts (IAM, Documents) and between the layers inside them.
"""

from pytest_archon import archrule


class TestBoundedContextIsolation:
    """Tests that contexts only meet through the shared kernel."""

    def test_iam_does_not_import_documents(self):
        """IAM resolves tenants and principals without knowing documents."""
        (
            archrule("iam_no_documents")
            .match("iam*")
            .should_not_import("documents*")
            .check("iam")
        )

    def test_shared_kernel_does_not_import_contexts(self):
        """The shared kernel sits below every bounded context."""
        (
            archrule("shared_kernel_no_contexts")
            .match("shared_kernel*")
            .should_not_import("iam*", "documents*", "infrastructure*")
            .check("shared_kernel")
        )

    def test_infrastructure_does_not_import_contexts(self):
        """Cross-cutting infrastructure never reaches into a context."""
        (
            archrule("infrastructure_no_contexts")
            .match("infrastructure*")
            .should_not_import("iam*", "documents*")
            .check("infrastructure")
        )


class TestDocumentsLayerBoundaries:
    """Tests that the documents layers depend inwards only."""

    def test_domain_is_pure(self):
        """Totals, transitions and value objects need no framework."""
        (
            archrule("documents_domain_pure")
            .match("documents.domain*")
            .should_not_import(
                "documents.application*",
                "documents.infrastructure*",
                "documents.presentation*",
                "sqlalchemy*",
                "fastapi*",
            )
            .check("documents")
        )

    def test_application_does_not_import_presentation(self):
        (
            archrule("documents_application_no_presentation")
            .match("documents.application*")
            .should_not_import("documents.presentation*", "fastapi*")
            .check("documents")
        )


class TestIAMLayerBoundaries:
    """Tests for the IAM application layer."""

    def test_application_does_not_import_fastapi(self):
        """Auth use cases are callable without an HTTP request."""
        (
            archrule("iam_application_no_fastapi")
            .match("iam.application*")
            .should_not_import("fastapi*", "iam.presentation*", "iam.dependencies*")
            .check("iam")
        )
