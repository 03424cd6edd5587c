"""IAM presentation layer.

Only the authentication surface is exposed over HTTP; tenant and user
administration are handled outside this API.
"""

from __future__ import annotations

from iam.presentation.auth.routes import router

__all__ = ["router"]
