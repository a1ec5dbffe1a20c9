"""
Deadline enforcement for upstream calls.

``with_timeout`` races an awaitable against a deadline. Unlike a plain race,
the losing upstream call is cancelled through ``asyncio.wait_for`` so no
request keeps running in the background once its caller has given up.
"""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class OperationTimeoutError(TimeoutError):
    """Raised when an operation misses its deadline."""

    def __init__(self, operation: str, timeout_ms: float):
        super().__init__(f"Operation '{operation}' exceeded timeout of {int(timeout_ms)}ms")
        self.operation = operation
        self.timeout_ms = timeout_ms


async def with_timeout(
    awaitable: Awaitable[T],
    timeout_ms: Optional[float],
    operation: str = "operation"
) -> T:
    """
    Await ``awaitable`` with a deadline.

    Args:
        awaitable: Coroutine or future to wait on
        timeout_ms: Deadline in milliseconds; None disables the deadline
        operation: Name used in the timeout message

    Returns:
        The awaitable's result

    Raises:
        OperationTimeoutError: If the deadline passes first
        Whatever the awaitable raises, unchanged
    """
    if timeout_ms is None:
        return await awaitable

    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_ms / 1000.0)
    except asyncio.TimeoutError:
        logger.debug(
            f"{operation} timed out",
            extra={"operation": operation, "timeout_ms": timeout_ms}
        )
        raise OperationTimeoutError(operation, timeout_ms)
