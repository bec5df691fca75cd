"""
Package: queuekit
Description: Client for a remote message-queue service.

Resolves queue names to endpoints, runs the message lifecycle (send,
receive, visibility changes, delete, purge) with per-item batch
outcomes, and manages queues, all through a pluggable request executor.
"""

from queuekit.auth.credentials import CredentialsProvider
from queuekit.models.batch import BatchError, BatchItem, failed_items
from queuekit.models.message import Message, MessageAttribute, QueueRef
from queuekit.models.request import SendEntry
from queuekit.sqs_queue.client import QueueClient
from queuekit.sqs_queue.errors import (
    QueueError,
    QueueNotFoundError,
    RequestValidationError,
    ServiceError,
    TransportError,
)
from queuekit.sqs_queue.executor import BotoRequestExecutor, RequestExecutor

__version__ = "0.1.0"

__all__ = [
    "BatchError",
    "BatchItem",
    "BotoRequestExecutor",
    "CredentialsProvider",
    "Message",
    "MessageAttribute",
    "QueueClient",
    "QueueError",
    "QueueNotFoundError",
    "QueueRef",
    "RequestExecutor",
    "RequestValidationError",
    "SendEntry",
    "ServiceError",
    "TransportError",
    "failed_items",
]
