"""
Retry Logic Utilities for Gmail API Calls
Provides exponential backoff for rate limits and server errors
"""
import logging
from functools import wraps
from typing import Callable

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
    before_sleep_log,
)
from googleapiclient.errors import HttpError

from .logger import setup_logger

logger = setup_logger(__name__)

# tenacity's logging hooks need a stdlib logger
_std_logger = logging.getLogger(__name__)


# ============================================
# RETRY CONFIGURATIONS
# ============================================

class RetryConfig:
    """Retry configuration constants"""

    # Outbound calls (send, batch modify)
    GMAIL_MAX_ATTEMPTS = 5
    GMAIL_MIN_WAIT = 1  # seconds
    GMAIL_MAX_WAIT = 30  # seconds
    GMAIL_MULTIPLIER = 2  # exponential backoff multiplier

    # Poll-path calls (list, get, modify); the poll loop retries on its own
    POLL_MAX_ATTEMPTS = 2
    POLL_MIN_WAIT = 0.5
    POLL_MAX_WAIT = 2

    RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


# ============================================
# RETRY CONDITION FUNCTIONS
# ============================================

def is_retryable_http_error(exception: BaseException) -> bool:
    """
    Check if an HttpError is retryable

    Retryable: 429 and 500/502/503/504.
    Everything else (400, 401, 403, 404, non-HTTP errors) fails immediately.
    """
    if not isinstance(exception, HttpError):
        return False

    status_code = exception.resp.status

    if status_code in RetryConfig.RETRYABLE_STATUS_CODES:
        logger.warning(f"Retryable HTTP error {status_code}: {exception}")
        return True

    return False


def is_rate_limit_error(exception: BaseException) -> bool:
    """Check if exception is a rate limit error (429)"""
    if isinstance(exception, HttpError):
        return exception.resp.status == 429
    return False


# ============================================
# RETRY DECORATORS
# ============================================

def retry_gmail_api(
    max_attempts: int = RetryConfig.GMAIL_MAX_ATTEMPTS,
    min_wait: float = RetryConfig.GMAIL_MIN_WAIT,
    max_wait: float = RetryConfig.GMAIL_MAX_WAIT
) -> Callable:
    """
    Decorator for Gmail API calls with retry logic

    Args:
        max_attempts: Maximum attempts, including the first call
        min_wait: Minimum wait time in seconds
        max_wait: Maximum wait time in seconds

    Returns:
        Decorated function with retry logic

    Example:
        @retry_gmail_api(max_attempts=3)
        def list_messages(self):
            return self.service.users().messages().list(...).execute()
    """
    def decorator(func: Callable) -> Callable:
        @retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(
                multiplier=RetryConfig.GMAIL_MULTIPLIER,
                min=min_wait,
                max=max_wait
            ),
            retry=retry_if_exception(is_retryable_http_error),
            before_sleep=before_sleep_log(_std_logger, logging.INFO),
            reraise=True
        )
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except HttpError as e:
                if e.resp.status not in RetryConfig.RETRYABLE_STATUS_CODES:
                    logger.error(f"Non-retryable Gmail API error in {func.__name__}: {e}")
                raise

        return wrapper
    return decorator


def retry_poll_api() -> Callable:
    """Short retry budget for calls made inside the poll loop"""
    return retry_gmail_api(
        max_attempts=RetryConfig.POLL_MAX_ATTEMPTS,
        min_wait=RetryConfig.POLL_MIN_WAIT,
        max_wait=RetryConfig.POLL_MAX_WAIT
    )
