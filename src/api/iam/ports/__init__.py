"""Ports (interfaces) for IAM bounded context.

Ports define the contracts for repositories without specifying
implementation details. This allows for dependency inversion and keeps
the application services independent of the ORM.
"""

from iam.ports.exceptions import (
    DuplicateEmailError,
    DuplicateTenantDomainError,
    DuplicateUsernameError,
    InactiveAccountError,
    InvalidCredentialsError,
)
from iam.ports.repositories import (
    IRoleRepository,
    ISessionRepository,
    ITenantRepository,
    IUserRepository,
)

__all__ = [
    "IRoleRepository",
    "ISessionRepository",
    "ITenantRepository",
    "IUserRepository",
    "DuplicateEmailError",
    "DuplicateTenantDomainError",
    "DuplicateUsernameError",
    "InactiveAccountError",
    "InvalidCredentialsError",
]
