"""Retry logic with exponential backoff for Notion API rate limits.

This module provides retry functionality for transient overload responses
(429 rate limited, 503 service unavailable) from the Notion API. It implements
exponential backoff (1s, 2s, 4s, ...) and fails fast for every other error.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from .errors import APIAccessError, RemoteOverloadedError

logger = logging.getLogger(__name__)

T = TypeVar('T')

MAX_RETRY_ATTEMPTS = 3
INITIAL_RETRY_DELAY = 1.0

TRANSIENT_STATUS_CODES = (429, 503)
TRANSIENT_ERROR_CODES = ('rate_limited', 'service_unavailable')


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = MAX_RETRY_ATTEMPTS,
    initial_delay: float = INITIAL_RETRY_DELAY,
    is_retryable: Optional[Callable[[BaseException], bool]] = None,
    description: Optional[str] = None,
) -> T:
    """Run an async operation, retrying transient failures with exponential backoff.

    The operation is a zero-argument callable returning an awaitable, so a
    fresh request is built for every attempt. After attempt ``n`` fails with a
    retryable error the call waits ``initial_delay * 2 ** (n - 1)`` seconds.

    Args:
        operation: Zero-argument callable producing the awaitable to run
        max_attempts: Total number of attempts (at least 1)
        initial_delay: Delay in seconds before the second attempt
        is_retryable: Predicate classifying retryable failures
                      (default: is_transient_error)
        description: Operation name used in log lines and the final error

    Returns:
        The result of the first successful attempt

    Raises:
        APIAccessError: If every attempt failed with a retryable error
        Other exceptions: Passed through immediately without retry

    Example:
        >>> page = await retry_with_backoff(
        ...     lambda: api.retrieve_page(page_id), max_attempts=3
        ... )
    """
    if is_retryable is None:
        is_retryable = is_transient_error
    attempts = max(1, max_attempts)
    name = description or getattr(operation, '__name__', 'operation')

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if not is_retryable(e):
                raise

            if attempt >= attempts:
                logger.error(
                    f"Rate limit persisted for {name} after {attempts} attempt(s), giving up"
                )
                raise APIAccessError(
                    f"Notion API failure during {name} (after {attempts} attempts)"
                ) from e

            delay = initial_delay * 2 ** (attempt - 1)
            logger.info(
                f"Rate limited, retrying {name} in {delay:g}s "
                f"(attempt {attempt}/{attempts})"
            )
            await asyncio.sleep(delay)

    # Unreachable: the loop either returns or raises
    raise APIAccessError(f"Notion API failure during {name}")


def is_transient_error(exception: BaseException) -> bool:
    """Check if an exception represents a transient overload (429/503) error.

    This checks for our own RemoteOverloadedError as well as the attribute
    patterns used by notion-client (``status``, ``code``) and by generic HTTP
    libraries (``status_code``, ``response.status_code``).

    Args:
        exception: The exception to check

    Returns:
        True if retrying the call may succeed, False otherwise
    """
    if isinstance(exception, RemoteOverloadedError):
        return True

    # notion-client APIResponseError carries the HTTP status and an error code
    status = getattr(exception, 'status', None)
    if isinstance(status, int) and status in TRANSIENT_STATUS_CODES:
        return True

    code = getattr(exception, 'code', None)
    if code is not None and str(getattr(code, 'value', code)) in TRANSIENT_ERROR_CODES:
        return True

    status_code = getattr(exception, 'status_code', None)
    if isinstance(status_code, int) and status_code in TRANSIENT_STATUS_CODES:
        return True

    response = getattr(exception, 'response', None)
    if response is not None:
        response_status = getattr(response, 'status_code', None)
        if isinstance(response_status, int) and response_status in TRANSIENT_STATUS_CODES:
            return True

    return False
