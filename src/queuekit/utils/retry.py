"""
Module: retry.py
Description: Opt-in retry for callers of the queue client.

The client never retries on its own. Callers that want retries wrap
their own calls with transport_retry(), which retries only failures
that produced no service response, with exponential backoff and jitter.
Per-item batch failures are left to the caller: select them with
queuekit.models.failed_items() and resend what makes sense.

Dependencies: tenacity, logging
"""

import logging

from tenacity import (
    after_log,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from queuekit.sqs_queue.errors import TransportError
from queuekit.utils.logger import get_logger

logger = get_logger(__name__)


def transport_retry(attempts: int = 3, initial_wait: float = 0.5, max_wait: float = 10.0):
    """
    Decorator retrying a coroutine function on TransportError.

    Args:
        attempts: Total attempts including the first
        initial_wait: First backoff in seconds
        max_wait: Backoff ceiling in seconds

    Example:
        >>> @transport_retry(attempts=5)
        ... async def poll():
        ...     return await client.receive_messages("jobs", wait_time=20)
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    return retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=initial_wait, max=max_wait) + wait_random(0, initial_wait),
        retry=retry_if_exception_type(TransportError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        after=after_log(logger, logging.DEBUG),
        reraise=True,
    )
