"""Database-specific exceptions shared by all bounded contexts."""

from shared_kernel.exceptions import UnavailableError


class DatabaseError(Exception):
    """Base exception for database operations."""

    pass


class TenantBindingError(DatabaseError, UnavailableError):
    """Tenant binding failed."""

    code = "TENANT_BINDING_FAILED"
    status_code = 500


class TenantNotBoundError(DatabaseError):
    """Raised when tenant-owned data is queried on a session with no tenant bound.

    Indicates a wiring bug: a handler reached storage without passing
    through the tenant session dependency.
    """

    pass


class CrossTenantWriteError(DatabaseError):
    """Raised when a flush would write a row for a tenant other than the bound one."""

    def __init__(self, model: str, bound_tenant: str, row_tenant: str | None):
        super().__init__(
            f"{model} row for tenant {row_tenant!r} cannot be written "
            f"by a session bound to {bound_tenant!r}"
        )
        self.model = model
        self.bound_tenant = bound_tenant
        self.row_tenant = row_tenant
