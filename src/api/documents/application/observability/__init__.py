"""Domain-Oriented Observability for the documents application layer."""

from documents.application.observability.document_probe import (
    DefaultDocumentProbe,
    DocumentProbe,
)

__all__ = [
    "DefaultDocumentProbe",
    "DocumentProbe",
]
