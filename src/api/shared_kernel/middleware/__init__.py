"""Shared middleware for cross-cutting concerns.

Holds the framework-agnostic tenant context value object and the request
correlation middleware. Tenant resolution itself lives in the IAM bounded
context's dependency layer.
"""
