"""Database infrastructure - shared connection primitives."""

from infrastructure.database.exceptions import (
    CrossTenantWriteError,
    DatabaseError,
    TenantBindingError,
    TenantNotBoundError,
)

__all__ = [
    "CrossTenantWriteError",
    "DatabaseError",
    "TenantBindingError",
    "TenantNotBoundError",
]
