"""Exceptions raised by the documents bounded context."""

from __future__ import annotations

from shared_kernel.exceptions import InvalidTransitionError, NotFoundError


class DocumentNotFoundError(NotFoundError):
    """Document not found."""

    code = "DOCUMENT_NOT_FOUND"

    def __init__(self, document: str, document_id: str) -> None:
        self.document = document
        self.document_id = document_id
        super().__init__(f"{document} {document_id} not found")


class DocumentNotEditableError(InvalidTransitionError):
    """Document can no longer be edited."""

    code = "DOCUMENT_NOT_EDITABLE"

    def __init__(self, document: str, status: str) -> None:
        super().__init__(document, status, status)
        self.message = f"{document} in status {status} can no longer be edited"
        self.args = (self.message,)
