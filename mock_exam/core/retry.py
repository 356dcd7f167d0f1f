# mock_exam/core/retry.py
import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

from .config import config
from .errors import ServiceBusyError, is_rate_limited

logger = logging.getLogger(__name__)

T = TypeVar("T")

async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: Optional[int] = None,
    initial_delay: Optional[float] = None,
    max_jitter: Optional[float] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run `operation`, retrying with exponential backoff on rate limits only.

    Any other error propagates after a single attempt. When the rate-limit
    attempts are used up a ServiceBusyError is raised instead of the cause.
    """
    if max_retries is None:
        max_retries = config.RETRY_MAX_ATTEMPTS
    if initial_delay is None:
        initial_delay = config.RETRY_INITIAL_DELAY
    if max_jitter is None:
        max_jitter = config.RETRY_MAX_JITTER

    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if not is_rate_limited(e):
                raise

            attempt += 1
            if attempt >= max_retries:
                logger.error(f"❌ API call failed after {max_retries} attempts: {e}")
                raise ServiceBusyError() from e

            delay = initial_delay * (2 ** (attempt - 1)) + random.uniform(0, max_jitter)
            logger.warning(f"Rate limit hit. Retrying in {delay:.1f}s... (Attempt {attempt}/{max_retries})")
            await sleep(delay)
