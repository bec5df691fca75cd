"""
Module: client.py
Description: QueueClient, the caller-facing surface of the package.

Wires one request executor into the endpoint resolver, the batch
coordinator, the visibility manager and the queue lifecycle operations,
and exposes every queue operation as a coroutine.

Dependencies: typing
"""

from typing import Dict, List, Optional, Sequence

from queuekit.auth.credentials import CredentialsProvider
from queuekit.config.settings import QueueSettings
from queuekit.models.batch import BatchItem
from queuekit.models.message import Message, MessageAttribute
from queuekit.models.request import AttributeValue
from queuekit.sqs_queue.batch import BatchCoordinator
from queuekit.sqs_queue.executor import RequestExecutor, executor_from_settings
from queuekit.sqs_queue.lifecycle import QueueAttributes, QueueLifecycle
from queuekit.sqs_queue.resolver import EndpointCache, EndpointResolver
from queuekit.sqs_queue.visibility import SendItem, TimeoutDeltas, VisibilityManager
from queuekit.utils.logger import get_logger

logger = get_logger(__name__)


class QueueClient:
    """
    Client for a remote message-queue service.

    Every `queue` argument accepts either a queue name or a fully qualified
    queue endpoint. Batch-capable operations take and return ordered
    sequences; the singular forms wrap them and raise ServiceError when
    their one item fails.

    The client keeps no state apart from the endpoint cache. Calls on
    different queues are independent and may be awaited concurrently.

    Example:
        >>> async with QueueClient.from_settings(settings) as client:
        ...     await client.send_messages("jobs", ["a", "b", "c"])
        ...     messages = await client.receive_messages("jobs", max_messages=3, wait_time=5)
        ...     await client.delete_message_batch("jobs", [m.receipt_handle for m in messages])
    """

    def __init__(
        self,
        executor: RequestExecutor,
        *,
        max_batch_size: int = 10,
        max_concurrent_batches: int = 4,
        cache: Optional[EndpointCache] = None,
    ):
        """
        Initialize queue client.

        Args:
            executor: Request executor for every remote call
            max_batch_size: Entries per batch call (1-10)
            max_concurrent_batches: Batch chunks in flight at once
            cache: Endpoint cache (the process-wide one unless given)
        """
        self.executor = executor
        self.resolver = EndpointResolver(executor, cache)
        self.coordinator = BatchCoordinator(executor, max_batch_size, max_concurrent_batches)
        self.messages = VisibilityManager(self.resolver, self.coordinator)
        self.queues = QueueLifecycle(self.resolver)

    @classmethod
    def from_settings(
        cls,
        settings: QueueSettings,
        credentials: Optional[CredentialsProvider] = None,
    ) -> "QueueClient":
        """Build a client with the default executor from settings."""
        if credentials is None:
            credentials = CredentialsProvider(profile=settings.aws_profile)
        executor = executor_from_settings(settings, credentials)
        return cls(
            executor,
            max_batch_size=settings.sqs_max_batch_size,
            max_concurrent_batches=settings.sqs_max_concurrent_batches,
        )

    async def close(self) -> None:
        close = getattr(self.executor, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "QueueClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # Queue lifecycle

    async def create_queue(
        self,
        name: str,
        attributes: Optional[Dict[str, AttributeValue]] = None,
        tags: Optional[Dict[str, str]] = None,
    ) -> str:
        return await self.queues.create_queue(name, attributes, tags)

    async def delete_queue(self, queue: str) -> None:
        await self.queues.delete_queue(queue)

    async def list_queues(self, name_prefix: Optional[str] = None) -> List[str]:
        return await self.queues.list_queues(name_prefix)

    async def get_queue_endpoint(self, name: str) -> str:
        return await self.queues.get_queue_endpoint(name)

    async def get_attributes(self, queue: str, attribute_names: Optional[Sequence[str]] = None) -> QueueAttributes:
        return await self.queues.get_attributes(queue, attribute_names)

    async def set_attributes(self, queue: str, updates: Dict[str, AttributeValue]) -> None:
        await self.queues.set_attributes(queue, updates)

    async def add_permission(self, queue: str, label: str, account_ids: Sequence[str], actions: Sequence[str]) -> None:
        await self.queues.add_permission(queue, label, account_ids, actions)

    async def remove_permission(self, queue: str, label: str) -> None:
        await self.queues.remove_permission(queue, label)

    async def list_dead_letter_source_queues(self, queue: str) -> List[str]:
        return await self.queues.list_dead_letter_source_queues(queue)

    async def purge_queue(self, queue: str) -> None:
        """Request a purge; removal completes asynchronously on the service."""
        await self.messages.purge(queue)

    # Messages

    async def send_messages(self, queue: str, messages: Sequence[SendItem]) -> List[BatchItem]:
        return await self.messages.send(queue, messages)

    async def send_message(
        self,
        queue: str,
        body: str,
        *,
        delay_seconds: Optional[int] = None,
        message_attributes: Optional[Dict[str, MessageAttribute]] = None,
        message_group_id: Optional[str] = None,
        message_deduplication_id: Optional[str] = None,
    ) -> str:
        return await self.messages.send_one(
            queue,
            body,
            delay_seconds=delay_seconds,
            message_attributes=message_attributes,
            message_group_id=message_group_id,
            message_deduplication_id=message_deduplication_id,
        )

    async def receive_messages(
        self,
        queue: str,
        max_messages: int = 1,
        visibility_timeout: Optional[int] = None,
        wait_time: Optional[int] = None,
        **options,
    ) -> List[Message]:
        """See VisibilityManager.receive; cancelling does not cancel the server-side wait."""
        return await self.messages.receive(queue, max_messages, visibility_timeout, wait_time, **options)

    async def change_message_visibility(self, queue: str, receipt_handle: str, visibility_timeout: int) -> None:
        await self.messages.change_visibility(queue, receipt_handle, visibility_timeout)

    async def change_message_visibility_batch(
        self,
        queue: str,
        receipt_handles: Sequence[str],
        timeout_deltas: TimeoutDeltas,
    ) -> List[BatchItem]:
        return await self.messages.extend_visibility(queue, receipt_handles, timeout_deltas)

    extend_visibility = change_message_visibility_batch

    async def delete_message(self, queue: str, receipt_handle: str) -> None:
        await self.messages.delete_one(queue, receipt_handle)

    async def delete_message_batch(self, queue: str, receipt_handles: Sequence[str]) -> List[BatchItem]:
        return await self.messages.delete(queue, receipt_handles)
