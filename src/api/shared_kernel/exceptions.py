"""Error taxonomy shared by every bounded context.

Each error carries a stable machine-readable ``code`` and the HTTP status
the presentation layer answers with. Application code raises these; the
exception handlers registered in ``main`` translate them into
``{"error": code, "message": ...}`` responses.
"""

from __future__ import annotations


class CoreError(Exception):
    """Base class for expected, classified failures.

    Attributes:
        code: Stable error code exposed to clients.
        status_code: HTTP status used by the presentation layer.
        retryable: Whether the whole operation may safely be retried.
    """

    code: str = "INTERNAL_ERROR"
    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.__class__.default_message()
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return (cls.__doc__ or cls.__name__).strip().splitlines()[0]


class UnauthenticatedError(CoreError):
    """Authentication required."""

    code = "UNAUTHENTICATED"
    status_code = 401


class TenantRequiredError(CoreError):
    """Tenant context required."""

    code = "TENANT_REQUIRED"
    status_code = 400


class InvalidTenantIdError(TenantRequiredError):
    """Tenant identifier is not a valid ULID."""

    code = "TENANT_ID_INVALID"


class TenantMismatchError(CoreError):
    """Token tenant does not match request tenant."""

    code = "TENANT_MISMATCH"
    status_code = 403


class TenantSuspendedError(CoreError):
    """Tenant is not active."""

    code = "TENANT_INACTIVE"
    status_code = 403


class NotFoundError(CoreError):
    """Requested entity not found."""

    code = "NOT_FOUND"
    status_code = 404


class PrincipalNotFoundError(NotFoundError):
    """User not found or inactive."""

    code = "PRINCIPAL_NOT_FOUND"
    status_code = 401


class CrossTenantReferenceError(CoreError):
    """Referenced entity not found or belongs to another tenant."""

    code = "CROSS_TENANT_REFERENCE"
    status_code = 422

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found or belongs to another tenant")


class InvalidTransitionError(CoreError):
    """Status change not allowed."""

    code = "INVALID_TRANSITION"
    status_code = 409

    def __init__(self, document: str, current: str, target: str) -> None:
        self.document = document
        self.current = current
        self.target = target
        super().__init__(f"Cannot change {document} from {current} to {target}")


class DocumentValidationError(CoreError):
    """Document payload is invalid."""

    code = "VALIDATION_ERROR"
    status_code = 400


class AllocationExceedsBalanceError(DocumentValidationError):
    """Allocated amount exceeds the invoice balance due."""

    code = "ALLOCATION_EXCEEDS_BALANCE"


class DuplicateError(CoreError):
    """Entity already exists."""

    code = "DUPLICATE"
    status_code = 409


class SequenceConflictError(CoreError):
    """Could not allocate a document number; retry the request."""

    code = "SEQUENCE_CONFLICT"
    status_code = 409
    retryable = True


class UnavailableError(CoreError):
    """Storage temporarily unavailable."""

    code = "UNAVAILABLE"
    status_code = 503
    retryable = True
