"""
Retry with a fixed delay between attempts.
"""

import asyncio
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from .errors import A2AClientError
from .metrics import A2A_STREAM_ATTEMPTS

import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


async def retry_with_fixed_delay(
    operation: Callable[[int], Awaitable[T]],
    attempts: int,
    delay: float,
    sleep: Optional[SleepFunc] = None,
    retry_on: Tuple[Type[BaseException], ...] = (A2AClientError,)
) -> T:
    """
    Run ``operation`` until it succeeds or ``attempts`` are used up.

    ``operation`` receives the 1-based attempt number. Only exceptions in
    ``retry_on`` trigger another attempt; anything else propagates at once.
    There is no delay after the final attempt. When every attempt fails the
    last error is raised.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    sleep = sleep or asyncio.sleep
    last_error: Optional[BaseException] = None

    for attempt in range(1, attempts + 1):
        try:
            logger.debug(f"Stream request attempt {attempt}/{attempts}")
            result = await operation(attempt)
            A2A_STREAM_ATTEMPTS.labels(outcome="success").inc()
            if attempt > 1:
                logger.info(f"Stream request successful on attempt {attempt}")
            return result

        except retry_on as e:
            last_error = e
            A2A_STREAM_ATTEMPTS.labels(outcome="failure").inc()
            logger.error(f"Stream request attempt {attempt} failed: {str(e)}")

            if attempt < attempts:
                logger.warning(f"Waiting {delay} seconds before retry")
                await sleep(delay)

    logger.error(f"All {attempts} stream request attempts failed")
    if last_error is not None:
        raise last_error
    raise A2AClientError("Stream request failed after all retries")
