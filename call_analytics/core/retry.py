import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from call_analytics.core.errors import TransientStorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient_storage_error(error: BaseException) -> bool:
    return isinstance(error, TransientStorageError)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    should_retry: Callable[[BaseException], bool] = is_transient_storage_error,
    max_attempts: int = 3,
    base_delay: float = 0.5,
    factor: float = 2.0,
    max_delay: float = 10.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await ``operation`` until it succeeds, backing off exponentially between attempts.

    Errors rejected by ``should_retry`` and the error of the final attempt
    propagate unchanged.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    attempt = 0
    delay = base_delay
    while True:
        attempt += 1
        try:
            return await operation()
        except Exception as exc:
            if attempt >= max_attempts or not should_retry(exc):
                raise
            logger.warning(
                "Attempt %s/%s failed (%s). Retrying in %.1fs.",
                attempt,
                max_attempts,
                type(exc).__name__,
                delay,
            )
            await sleep(delay)
            delay = min(delay * factor, max_delay)
