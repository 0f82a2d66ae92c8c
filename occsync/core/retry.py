"""Exponential backoff with jitter for any fallible async operation.

Used by the datastore client for transient database failures and by the sync
orchestrator for upstream API calls. Jitter keeps concurrent workers that failed
together from retrying in lockstep.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

from occsync.core.exceptions import RetryableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

JITTER_RATIO = 0.1


def backoff_delay(attempt: int, base_delay: float, max_delay: Optional[float] = None) -> float:
    """
    Delay before the retry that follows a failed attempt.

    Args:
        attempt: Zero-based index of the attempt that just failed
        base_delay: Delay after the first failure (seconds)
        max_delay: Upper bound for the delay, jitter included

    Returns:
        base_delay * 2**attempt plus up to 10% jitter
    """
    delay = base_delay * (2**attempt)
    delay += random.uniform(0, JITTER_RATIO * delay)
    if max_delay is not None:
        delay = min(delay, max_delay)
    return delay


def _next_delay(
    error: BaseException,
    attempt: int,
    base_delay: float,
    max_delay: Optional[float],
) -> Optional[float]:
    if isinstance(error, RetryableError) and error.retry_after is not None:
        if max_delay is not None and error.retry_after > max_delay:
            return None
        return max(error.retry_after, 0.0)
    return backoff_delay(attempt, base_delay, max_delay)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 1.0,
    *,
    max_delay: Optional[float] = None,
    retry_if: Optional[Callable[[BaseException], bool]] = None,
    operation_name: Optional[str] = None,
) -> T:
    """
    Run an async operation, retrying failures with exponential backoff.

    The operation is attempted up to max_retries + 1 times. A RetryableError with
    retry_after set is retried after exactly that delay instead of the computed
    backoff; if that suggested delay is longer than max_delay, the error is raised
    straight away.

    Args:
        operation: Zero-argument callable returning an awaitable
        max_retries: Retries after the first attempt
        base_delay: Initial backoff delay (seconds)
        max_delay: Cap for computed delays, and the longest suggested delay honoured
        retry_if: Predicate selecting which errors are retried (default: all)
        operation_name: Name used in log messages

    Returns:
        The operation's result

    Raises:
        The last error raised by the operation, unchanged
    """
    name = operation_name or getattr(operation, "__name__", "operation")
    attempt = 0

    while True:
        try:
            return await operation()
        except Exception as e:
            if attempt >= max_retries:
                raise
            if retry_if is not None and not retry_if(e):
                raise

            delay = _next_delay(e, attempt, base_delay, max_delay)
            if delay is None:
                logger.warning(
                    f"[Retry] {name} suggested a {e.retry_after:.0f}s wait "  # type: ignore[attr-defined]
                    f"(limit {max_delay:.0f}s), giving up"
                )
                raise

            logger.warning(
                f"[Retry] {name} failed (attempt {attempt + 1}/{max_retries + 1}): {e}. "
                f"Retrying in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)
            attempt += 1
