"""Domain exceptions for IAM bounded context.

These refine the shared error taxonomy with IAM-specific cases so the
application layer can raise precise errors while the presentation layer
keeps mapping them through their shared base classes.
"""

from shared_kernel.exceptions import DuplicateError, UnauthenticatedError


class DuplicateEmailError(DuplicateError):
    """Email already registered in this tenant."""

    code = "DUPLICATE_EMAIL"


class DuplicateUsernameError(DuplicateError):
    """Username already taken in this tenant."""

    code = "DUPLICATE_USERNAME"


class DuplicateTenantDomainError(DuplicateError):
    """Domain already registered to another tenant."""

    code = "DUPLICATE_DOMAIN"


class InvalidCredentialsError(UnauthenticatedError):
    """Invalid email or password."""

    code = "INVALID_CREDENTIALS"


class InactiveAccountError(UnauthenticatedError):
    """Account is not active."""

    code = "ACCOUNT_INACTIVE"
