"""Retry decorator utility for external service calls."""
import time
import functools
import socket

import requests

from .exceptions import RetryableError
from .logger import get_logger

logger = get_logger()

# Define exceptions that are safe to retry
RETRYABLE_ERRORS = (
    ConnectionError,
    TimeoutError,
    socket.timeout,
    requests.ConnectionError,
    requests.Timeout,
    requests.HTTPError,
    RetryableError
)


def retry_with_backoff(max_retries=3, initial_delay=2, backoff_factor=2, retryable_exceptions=RETRYABLE_ERRORS):
    """Decorator for exponential backoff retries."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            last_exception = None

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except retryable_exceptions as e:
                    last_exception = e

                    # Don't retry 4xx HTTP errors (except 429)
                    if isinstance(e, requests.HTTPError) and e.response is not None:
                        status = e.response.status_code
                        if status < 500 and status != 429:
                            raise

                    if attempt == max_retries:
                        break

                    wait_time = initial_delay * (backoff_factor ** attempt)
                    logger.warning(
                        f"Network glitch in {func.__name__} (Attempt {attempt + 1}): {e}. "
                        f"Retrying in {wait_time}s..."
                    )
                    time.sleep(wait_time)

            logger.error(f"Permanently failed {func.__name__} after {max_retries} retries.")
            raise last_exception
        return wrapper
    return decorator
