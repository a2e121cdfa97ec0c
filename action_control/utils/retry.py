"""
Retry support for calls to the GitHub API.

Failed calls are retried with exponential backoff and jitter. When the raised
exception carries a ``retry_after`` attribute (seconds announced by the
server through ``Retry-After`` or ``X-RateLimit-Reset``), that wait replaces
the computed backoff. An announced wait longer than ``max_retry_after`` is not
worth stalling a scan for, so the error is raised straight away.
"""
import asyncio
import logging
import random
from functools import wraps
from typing import Any, Callable, Coroutine, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay(
    attempt: int,
    delay: float = 1.0,
    backoff: float = 2.0,
    max_delay: float = 10.0,
    jitter: float = 0.1,
) -> float:
    """Delay before retry number `attempt` (0-based), capped and jittered."""
    base = min(delay * backoff ** attempt, max_delay)
    return max(0.0, base + base * jitter * random.uniform(-1, 1))


def announced_wait(error: BaseException) -> Optional[float]:
    """Seconds the server asked us to wait, if the error carries it."""
    value = getattr(error, "retry_after", None)
    if value is None:
        return None
    return max(0.0, float(value))


def async_retry(
    retries: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    max_delay: float = 10.0,
    jitter: float = 0.1,
    max_retry_after: float = 60.0,
    catch_exceptions: type[Exception] | tuple[type[Exception], ...] = Exception,
) -> Callable[[Callable[..., Coroutine[Any, Any, T]]], Callable[..., Coroutine[Any, Any, T]]]:
    """
    Retry an async call on `catch_exceptions`.

    Args:
        retries: Retries after the first attempt.
        delay: Backoff before the first retry, in seconds.
        backoff: Multiplier applied to the backoff per retry.
        max_delay: Upper bound of the computed backoff.
        jitter: Relative random spread applied to the computed backoff.
        max_retry_after: Longest server-announced wait that is honoured.
        catch_exceptions: Exception type(s) that trigger a retry.
    """

    def decorator(func: Callable[..., Coroutine[Any, Any, T]]) -> Callable[..., Coroutine[Any, Any, T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except catch_exceptions as e:
                    if attempt >= retries:
                        logger.error("%s failed after %d attempts: %s", func.__qualname__, attempt + 1, e)
                        raise

                    wait = announced_wait(e)
                    if wait is not None and wait > max_retry_after:
                        logger.error(
                            "%s asked to wait %.0fs (limit %.0fs), giving up: %s",
                            func.__qualname__, wait, max_retry_after, e,
                        )
                        raise
                    if wait is None:
                        wait = backoff_delay(attempt, delay, backoff, max_delay, jitter)

                    logger.warning(
                        "Attempt %d/%d for %s failed: %s; retrying in %.2fs",
                        attempt + 1, retries + 1, func.__qualname__, e, wait,
                    )
                    await asyncio.sleep(wait)
                    attempt += 1

        return wrapper

    return decorator
