"""Application services for IAM bounded context.

Application services orchestrate repositories and other infrastructure to
fulfill use cases. They are the "front door" to the IAM context.
"""

from iam.application.services.auth_service import AuthService
from iam.application.services.identity_resolver import IdentityResolver

__all__ = [
    "AuthService",
    "IdentityResolver",
]
