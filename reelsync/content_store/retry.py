"""Lock-contention retry for content store SQLite operations."""

import functools
import logging
import sqlite3
import time
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Operational errors that will not go away by waiting
_NON_RECOVERABLE = ("no such table", "no such column", "syntax error")


def _is_retryable(error: Exception, retry_on: tuple[type[Exception], ...]) -> bool:
    """Decide whether a failed store call should be attempted again.

    Args:
        error: The exception raised by the store call
        retry_on: Exception types that are retryable in principle

    Returns:
        True if the call should be retried
    """
    if not isinstance(error, retry_on) or isinstance(error, sqlite3.IntegrityError):
        return False
    if isinstance(error, sqlite3.OperationalError):
        message = str(error).lower()
        if any(marker in message for marker in _NON_RECOVERABLE):
            return False
    return True


def with_db_retry(
    max_retries: int = 5,
    base_delay: float = 0.1,
    max_delay: float = 2.0,
    backoff_factor: float = 2.0,
    retry_on: tuple[type[Exception], ...] = (sqlite3.OperationalError,),
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator that retries store operations with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts
        base_delay: Initial delay between retries in seconds
        max_delay: Maximum delay between retries in seconds
        backoff_factor: Multiplier for exponential backoff
        retry_on: Tuple of exception types to retry on

    Returns:
        Decorated function with retry logic
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not _is_retryable(e, retry_on) or attempt >= max_retries:
                        raise

                    delay = min(base_delay * (backoff_factor**attempt), max_delay)
                    logger.debug(
                        "Store operation %s failed (attempt %d/%d): %s. "
                        "Retrying in %.2fs...",
                        func.__name__,
                        attempt + 1,
                        max_retries + 1,
                        e,
                        delay,
                    )
                    time.sleep(delay)
                    attempt += 1

        return wrapper

    return decorator


def with_transaction_retry(func: Callable[..., T]) -> Callable[..., T]:
    """Decorator for write transactions, which are the likeliest to hit locks."""
    return with_db_retry(
        max_retries=8,
        base_delay=0.05,
        max_delay=1.0,
        backoff_factor=1.5,
        retry_on=(sqlite3.OperationalError, sqlite3.DatabaseError),
    )(func)
