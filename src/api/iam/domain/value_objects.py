"""Value objects for IAM domain.

Value objects are immutable descriptors that provide type safety and
domain semantics for identifiers and domain concepts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

from ulid import ULID

TENANT_CODE_MAX_LENGTH = 50


@dataclass(frozen=True)
class TenantId:
    """Identifier for a Tenant.

    Uses ULID for sortability and distribution-friendly generation.
    """

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> TenantId:
        """Generate a new TenantId using ULID."""
        return cls(value=str(ULID()))


@dataclass(frozen=True)
class UserId:
    """Identifier for a User."""

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> UserId:
        """Generate a new UserId using ULID."""
        return cls(value=str(ULID()))


@dataclass(frozen=True)
class RoleId:
    """Identifier for a tenant-owned Role."""

    value: str

    def __str__(self) -> str:
        return self.value

    @classmethod
    def generate(cls) -> RoleId:
        """Generate a new RoleId using ULID."""
        return cls(value=str(ULID()))


class TenantStatus(StrEnum):
    """Lifecycle of a tenant. Tenants are never hard-deleted."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    TRIAL = "TRIAL"

    @property
    def allows_access(self) -> bool:
        return self in (TenantStatus.ACTIVE, TenantStatus.TRIAL)


class SubscriptionTier(StrEnum):
    """Commercial tier of a tenant."""

    FREE = "FREE"
    STANDARD = "STANDARD"
    PREMIUM = "PREMIUM"
    ENTERPRISE = "ENTERPRISE"


class UserStatus(StrEnum):
    """Lifecycle of a user. Users are deactivated, never deleted."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    LOCKED = "LOCKED"


@dataclass(frozen=True)
class TenantCode:
    """Human-friendly unique code of a tenant (used as "company code").

    Derived from the company name: upper-cased, every run of characters
    other than A-Z and 0-9 collapsed into a single underscore, trimmed of
    leading/trailing underscores and cut to 50 characters.
    """

    value: str

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_name(cls, name: str) -> TenantCode:
        """Derive a code from a company name.

        Raises:
            ValueError: If the name contains no letters or digits.
        """
        code = re.sub(r"[^A-Z0-9]+", "_", name.upper()).strip("_")
        code = code[:TENANT_CODE_MAX_LENGTH].rstrip("_")
        if not code:
            raise ValueError(f"Cannot derive a tenant code from {name!r}")
        return cls(value=code)

    def with_suffix(self, counter: int) -> TenantCode:
        """Return ``<code>_<counter>``, trimming the base to stay within length."""
        suffix = f"_{counter}"
        base = self.value[: TENANT_CODE_MAX_LENGTH - len(suffix)].rstrip("_")
        return TenantCode(value=f"{base}{suffix}")
