"""
Module: models
Description: Package initialization for queue client data models.

This package contains the models shared by all queue operations:
- QueueRef, Message, MessageAttribute: queue and message views
- BatchItem, BatchError: per-item batch outcomes
- ReceiveOptions, SendEntry, VisibilityChange, DeleteEntry,
  CreateQueueOptions, PermissionGrant: typed operation options
"""

from .batch import BatchError, BatchItem, failed_items
from .message import Message, MessageAttribute, QueueRef
from .request import (
    CreateQueueOptions,
    DeleteEntry,
    PermissionGrant,
    ReceiveOptions,
    SendEntry,
    VisibilityChange,
)

__all__ = [
    "BatchError",
    "BatchItem",
    "CreateQueueOptions",
    "DeleteEntry",
    "Message",
    "MessageAttribute",
    "PermissionGrant",
    "QueueRef",
    "ReceiveOptions",
    "SendEntry",
    "VisibilityChange",
    "failed_items",
]
