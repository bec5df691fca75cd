"""
Module: errors.py
Description: Error taxonomy for queue operations.

Whole-call failures are raised as exceptions. Batch operations never
raise these for individual entries; they report them per item through
BatchItem instead.

Key Components:
- QueueError: Base class for everything raised by the client
- TransportError: No service-level response (network, signing, credentials)
- ServiceError: Structured failure returned by the service
- QueueNotFoundError: ServiceError for a queue that does not exist
- RequestValidationError: Rejected client-side before any remote call
"""

from typing import Optional

# Error codes the service uses for a missing queue, across wire protocols
QUEUE_NOT_FOUND_CODES = frozenset({
    "AWS.SimpleQueueService.NonExistentQueue",
    "QueueDoesNotExist",
})


class QueueError(Exception):
    """Base class for queue client errors."""


class TransportError(QueueError):
    """The request did not produce a service response."""


class ServiceError(QueueError):
    """
    The service answered with a structured failure.

    Attributes:
        code: Service error code (e.g. 'ReceiptHandleIsInvalid')
        message: Human readable message from the service
        http_status: HTTP status of the response, if known
    """

    def __init__(self, code: str, message: str = "", http_status: Optional[int] = None):
        super().__init__(f"{code}: {message}" if message else code)
        self.code = code
        self.message = message
        self.http_status = http_status

    @classmethod
    def from_code(cls, code: str, message: str = "", http_status: Optional[int] = None) -> "ServiceError":
        """Build the most specific ServiceError subclass for a code."""
        if code in QUEUE_NOT_FOUND_CODES:
            return QueueNotFoundError(code, message, http_status)
        return cls(code, message, http_status)


class QueueNotFoundError(ServiceError):
    """The named queue does not exist."""


class RequestValidationError(QueueError, ValueError):
    """Arguments rejected before any remote call was made."""
