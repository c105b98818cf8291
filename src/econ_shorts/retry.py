"""Retry policy for outbound Gemini calls."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from .errors import ErrorKind, QuotaExceededError, classify_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _is_transient(exc: BaseException) -> bool:
    return classify_error(exc) is ErrorKind.TRANSIENT


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    *,
    base_delay: float = 1.0,
    max_jitter: float = 0.5,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await ``operation``, retrying only on generic rate limits.

    Attempt ``i`` (0-based) that hits a rate limit waits
    ``base_delay * 2**i`` seconds plus up to ``max_jitter`` seconds of jitter.
    Quota exhaustion raises :class:`QuotaExceededError` at once, any other
    error is raised unchanged, and once attempts run out the last error is
    re-raised as is.

    Args:
        operation: Zero-argument coroutine function performing one call.
        max_attempts: Total number of invocations allowed.
        base_delay: Delay before the first retry, in seconds.
        max_jitter: Upper bound of the random jitter, in seconds.
        sleep: Coroutine used to wait between attempts.

    Returns:
        The result of the first successful invocation.

    """

    async def _attempt() -> T:
        try:
            return await operation()
        except QuotaExceededError:
            raise
        except Exception as e:
            if classify_error(e) is ErrorKind.QUOTA_EXCEEDED:
                logger.warning("API quota exhausted: %s", e)
                raise QuotaExceededError() from e
            raise

    # reraise=True so the underlying exception is raised after retries
    retryer = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, exp_base=2)
        + wait_random(0, max_jitter),
        retry=retry_if_exception(_is_transient),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )
    return await retryer(_attempt)
