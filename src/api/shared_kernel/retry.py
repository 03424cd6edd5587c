"""Bounded retry for storage operations that can lose a concurrency race.

Only failures classified as retryable (``CoreError.retryable``) are retried;
validation-shaped errors surface on the first attempt. The operation is
re-run from the top, so it must open and close its own transaction.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import structlog

from shared_kernel.exceptions import CoreError

T = TypeVar("T")

logger = structlog.get_logger()


async def run_with_retry(
    func: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    backoff_base: float = 0.05,
    operation: str = "operation",
) -> T:
    """Execute an async operation with retry on retryable failures.

    Args:
        func: Zero-argument coroutine factory; called once per attempt.
        attempts: Maximum number of attempts (>= 1).
        backoff_base: Base delay in seconds, doubled after each attempt.
        operation: Name used in log events.

    Returns:
        Whatever ``func`` returns on the first successful attempt.

    Raises:
        CoreError: The last retryable error once attempts are exhausted, or
            any non-retryable error immediately.
    """
    attempts = max(1, attempts)
    for attempt in range(1, attempts + 1):
        try:
            return await func()
        except CoreError as exc:
            if not exc.retryable or attempt >= attempts:
                raise
            logger.warning(
                "operation_retrying",
                operation=operation,
                attempt=attempt,
                max_attempts=attempts,
                error_code=exc.code,
            )
            await asyncio.sleep(backoff_base * (2 ** (attempt - 1)))
    raise AssertionError("unreachable")
