"""
Bounded retry with exponential backoff for grading server calls.
"""

import logging
import time
from typing import Callable, TypeVar

from .config import RETRY_BASE_DELAY_MS, RETRY_FINAL_DELAY_FLOOR_MS, RETRY_MAX_ATTEMPTS
from .errors import NonRetriableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay_ms(attempt: int, max_attempts: int, base_delay_ms: int) -> int:
    """
    Delay to wait after a failed attempt.

    Doubles with every attempt; the wait before the final attempt is at
    least RETRY_FINAL_DELAY_FLOOR_MS.
    """
    delay = base_delay_ms * 2 ** (attempt - 1)
    if attempt == max_attempts - 1:
        delay = max(delay, RETRY_FINAL_DELAY_FLOOR_MS)
    return delay


def retry_with_exponential_backoff(
    operation: Callable[[], T],
    max_attempts: int = RETRY_MAX_ATTEMPTS,
    base_delay_ms: int = RETRY_BASE_DELAY_MS,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call ``operation`` until it succeeds or ``max_attempts`` is exhausted.

    Args:
        operation: Zero-argument callable to invoke.
        max_attempts: Total number of attempts.
        base_delay_ms: Delay after the first failure, in milliseconds.
        sleep: Sleep function taking seconds (injectable for tests).

    Returns:
        The first successful return value of ``operation``.

    Raises:
        NonRetriableError: Immediately, if ``operation`` raises one.
        Exception: The last error, once all attempts have failed.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except NonRetriableError:
            raise
        except Exception as e:
            if attempt == max_attempts:
                raise
            delay = backoff_delay_ms(attempt, max_attempts, base_delay_ms)
            logger.warning(
                "Attempt %d failed: %s. Retrying in %dms...", attempt, e, delay
            )
            sleep(delay / 1000)

    raise AssertionError("unreachable")
