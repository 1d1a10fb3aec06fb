"""
Timeout and cancellation support for generation calls.

Document generation and format optimization accept a timeout and a
CancellationToken. Builders check the token between sections.
"""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GenerationTimeoutError(TimeoutError):
    """Raised when a generation call exceeds its timeout."""

    def __init__(self, operation: str, timeout: float):
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"{operation} timed out after {timeout} seconds")


class GenerationCancelledError(Exception):
    """Raised when a generation call is cancelled through its token."""

    def __init__(self, operation: str, reason: str = ""):
        self.operation = operation
        self.reason = reason
        message = f"{operation} was cancelled"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class CancellationToken:
    """
    Cooperative cancellation flag shared between a caller and a generator.

    Once cancelled, a token stays cancelled.
    """

    def __init__(self):
        self._cancelled = False
        self.reason = ""

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: str = "") -> None:
        """Request cancellation."""
        self._cancelled = True
        self.reason = reason

    def raise_if_cancelled(self, operation: str) -> None:
        """
        Raise if cancellation was requested.

        Raises:
            GenerationCancelledError: If the token is cancelled
        """
        if self._cancelled:
            logger.info("%s cancelled: %s", operation, self.reason or "no reason given")
            raise GenerationCancelledError(operation, self.reason)


async def run_with_deadline(
    awaitable: Awaitable[T],
    timeout: Optional[float],
    operation: str,
) -> T:
    """
    Await with an optional deadline.

    Args:
        awaitable: Work to run
        timeout: Seconds before giving up (None waits indefinitely)
        operation: Name used in logs and errors

    Raises:
        GenerationTimeoutError: If the deadline passes first
    """
    if timeout is None:
        return await awaitable

    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        logger.error("%s timed out after %s seconds", operation, timeout)
        raise GenerationTimeoutError(operation, timeout) from None
