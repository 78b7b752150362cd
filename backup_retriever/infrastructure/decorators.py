"""
Infrastructure-specific decorators, providing cross-cutting concerns like
bounded waiting for external services to come up.
"""

import logging

from tenacity import (
    retry,
    stop_after_delay,
    wait_exponential,
    retry_if_exception_type,
)

logger = logging.getLogger(__name__)

# --- Constants for Retry Logic ---
_RETRY_MIN_WAIT_SECONDS = 1
_RETRY_MAX_WAIT_SECONDS = 10


def _log_before_retry(retry_state):
    """Log the retry attempt with details about the exception and wait time."""
    exception = retry_state.outcome.exception()
    next_attempt_in = retry_state.next_action.sleep
    logger.warning(
        f"Retrying {retry_state.fn.__name__} in {next_attempt_in:.2f}s due to "
        f"{type(exception).__name__} (attempt {retry_state.attempt_number})..."
    )


def retry_until_deadline(seconds: float, exceptions):
    """
    Build a decorator that retries a call raising one of `exceptions` with
    exponential backoff until `seconds` have elapsed, then re-raises the
    last exception.
    """
    return retry(
        stop=stop_after_delay(seconds),
        wait=wait_exponential(
            multiplier=1,
            min=_RETRY_MIN_WAIT_SECONDS,
            max=_RETRY_MAX_WAIT_SECONDS,
        ),
        retry=retry_if_exception_type(exceptions),
        before_sleep=_log_before_retry,
        reraise=True,
    )
