"""
Retry decorator with exponential backoff for opening database connections.
"""
import logging
from functools import wraps
from typing import Tuple, Type, Union

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .exceptions import DatabaseConnectionError
from .logger import get_logger


def with_retry(
    retries: int = 3,
    delay: float = 1,
    exceptions: Union[Type[Exception], Tuple[Type[Exception], ...]] = (
        DatabaseConnectionError,
    ),
    logger_name: str = "tally.retry",
    reraise: bool = False,
):
    """
    Retry decorator with exponential backoff.

    Retries failed operations with exponential backoff between attempts.
    Only transient errors should be listed in ``exceptions``: journal
    statements are never wrapped with this, retrying them is the caller's
    decision.

    Args:
        retries: Maximum number of attempts (default: 3)
        delay: Initial delay between retries in seconds (default: 1)
        exceptions: Exception types to retry on (default: connection errors)
        logger_name: Name for logging retry attempts (default: tally.retry)
        reraise: Raise the last error itself instead of RetryError once
            attempts are exhausted.

    Example:
        @with_retry(retries=3, delay=2)
        def connect(self):
            ...

    Raises:
        tenacity.RetryError: If all attempts fail (unless reraise is set)
    """
    logger = get_logger(logger_name)
    # tenacity's before_sleep_log needs the underlying standard logger
    standard_logger = logger.logger if hasattr(logger, "logger") else logger

    def decorator(func):
        @retry(
            stop=stop_after_attempt(retries),
            wait=wait_exponential(multiplier=delay, min=delay, max=delay * 8),
            retry=retry_if_exception_type(exceptions),
            before_sleep=before_sleep_log(standard_logger, logging.WARNING),
            reraise=reraise,
        )
        @wraps(func)
        def wrapper(*args, **kwargs):
            return func(*args, **kwargs)

        return wrapper

    return decorator
