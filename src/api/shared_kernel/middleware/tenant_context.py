"""Tenant context value object for resolved tenant identification.

This module contains the pure value object that represents a resolved
tenant context plus the canonical tenant-id parser. It is framework-agnostic,
making it safe for the shared kernel.

The resolution logic (credential, header and body sources) lives in the
IAM bounded context's dependency layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from ulid import ULID

from shared_kernel.exceptions import InvalidTenantIdError

TenantSource = Literal["credential", "token", "header", "body"]


def canonical_tenant_id(raw_value: object) -> str:
    """Validate a raw tenant identifier and return its canonical form.

    Accepts case-insensitive input (per Crockford's Base32 spec) and
    returns the uppercase ULID string used as the storage key. Anything
    else, including values carrying quotes or SQL, is rejected.

    Raises:
        InvalidTenantIdError: If the value is not a valid ULID.
    """
    if not isinstance(raw_value, str):
        raise InvalidTenantIdError("Tenant identifier must be a string")
    value = raw_value.strip()
    try:
        return str(ULID.from_str(value.upper()))
    except (ValueError, TypeError) as e:
        raise InvalidTenantIdError(
            f"Tenant identifier must be a valid ULID, got: {raw_value!r}"
        ) from e


@dataclass(frozen=True)
class TenantContext:
    """Resolved tenant context for the current request.

    Attributes:
        tenant_id: The validated, canonical tenant identifier.
        source: Where the tenant came from - 'credential' for the verified
            principal, 'token' for a bearer token verified by the resolver,
            'header' for X-Tenant-ID, 'body' for a pre-auth request body.
    """

    tenant_id: str
    source: TenantSource
