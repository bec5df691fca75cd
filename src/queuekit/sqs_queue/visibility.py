"""
Module: visibility.py
Description: Message lifecycle operations: send, receive, visibility, delete.

Message states as the client observes them:

    Sent -> Visible -> InFlight -> Deleted
                          |
                          +-> Visible again once the visibility window
                              expires (redelivered with a new receipt handle)

The client never moves a message between states itself. It issues
requests that make the service do so, and reports what the service
answered. It keeps no clock for visibility windows: the service is the
only source of truth for how long a message stays in flight.

Key Components:
- VisibilityManager: receive, send, extend visibility, delete, purge

Dependencies: typing
"""

from typing import Any, Dict, List, Optional, Sequence, Union

from queuekit.models.batch import BatchItem
from queuekit.models.message import Message, MessageAttribute
from queuekit.models.request import (
    DeleteEntry,
    ReceiveOptions,
    SendEntry,
    VisibilityChange,
    validated,
)
from queuekit.sqs_queue.batch import BatchCoordinator
from queuekit.sqs_queue.errors import RequestValidationError
from queuekit.sqs_queue.resolver import EndpointResolver
from queuekit.utils.logger import get_logger

logger = get_logger(__name__)

TimeoutDeltas = Union[int, Sequence[int]]
SendItem = Union[str, SendEntry]


class VisibilityManager:
    """
    Message lifecycle operations against a resolved queue.

    Every operation accepts a queue name or endpoint. Multi-message
    operations go through the BatchCoordinator and return one BatchItem per
    input, in input order; a bad receipt handle fails only its own item.
    """

    def __init__(self, resolver: EndpointResolver, coordinator: BatchCoordinator):
        self.resolver = resolver
        self.coordinator = coordinator
        self.executor = resolver.executor

    async def receive(
        self,
        queue: str,
        max_messages: int = 1,
        visibility_timeout: Optional[int] = None,
        wait_time: Optional[int] = None,
        *,
        attribute_names: Optional[List[str]] = None,
        message_attribute_names: Optional[List[str]] = None,
        receive_request_attempt_id: Optional[str] = None,
    ) -> List[Message]:
        """
        Receive up to max_messages messages.

        With wait_time > 0 the service holds the request open for up to
        wait_time seconds until at least one message is available, so this
        coroutine can stay suspended for that long plus network latency. It
        returns an empty list when nothing arrived in time.

        When visibility_timeout is None the queue's own default applies.
        Returned receipt handles are valid until that window expires.

        Cancelling this coroutine does not cancel the wait on the service
        side. The service may still deliver a message to the abandoned
        request and keep it in flight until its visibility timeout expires,
        after which it is redelivered.

        Args:
            queue: Queue name or endpoint
            max_messages: Messages to return at most (1-10)
            visibility_timeout: Visibility window override in seconds
            wait_time: Long-poll wait in seconds (0-20)
            attribute_names: System attributes to return (default All)
            message_attribute_names: User attributes to return (default All)
            receive_request_attempt_id: FIFO receive deduplication token

        Returns:
            Received messages, possibly empty

        Raises:
            RequestValidationError: If an option is out of range
            ServiceError: If the service rejected the receive
            TransportError: If the call failed without a response
        """
        options: Dict[str, Any] = {
            "max_messages": max_messages,
            "visibility_timeout": visibility_timeout,
            "wait_time": wait_time,
            "receive_request_attempt_id": receive_request_attempt_id,
        }
        if attribute_names is not None:
            options["attribute_names"] = attribute_names
        if message_attribute_names is not None:
            options["message_attribute_names"] = message_attribute_names
        params = validated(ReceiveOptions, **options).to_params()

        endpoint = await self.resolver.resolve(queue)
        response = await self.executor.invoke("ReceiveMessage", endpoint, params)
        messages = [Message.from_response(raw) for raw in response.get("Messages") or []]

        logger.info(
            "Messages received",
            queue_url=endpoint,
            requested=max_messages,
            received=len(messages),
            wait_time=wait_time
        )
        return messages

    async def send(self, queue: str, messages: Sequence[SendItem]) -> List[BatchItem]:
        """
        Send messages in batches.

        Args:
            queue: Queue name or endpoint
            messages: Bodies or SendEntry models, in order

        Returns:
            One BatchItem per message; successful items carry MessageId and
            MD5OfMessageBody in their result
        """
        _require_sequence("messages", messages)
        entries = [self._send_entry(message) for message in messages]
        endpoint = await self.resolver.resolve(queue)
        return await self.coordinator.execute(
            "SendMessageBatch",
            endpoint,
            [entry.to_entry() for entry in entries],
        )

    async def send_one(
        self,
        queue: str,
        body: str,
        *,
        delay_seconds: Optional[int] = None,
        message_attributes: Optional[Dict[str, MessageAttribute]] = None,
        message_group_id: Optional[str] = None,
        message_deduplication_id: Optional[str] = None,
    ) -> str:
        """
        Send a single message.

        Returns:
            Service-assigned message id

        Raises:
            ServiceError: If the service rejected the message
        """
        entry = validated(
            SendEntry,
            body=body,
            delay_seconds=delay_seconds,
            message_attributes=message_attributes or {},
            message_group_id=message_group_id,
            message_deduplication_id=message_deduplication_id,
        )
        results = await self.send(queue, [entry])
        return results[0].raise_for_error().result["MessageId"]

    async def extend_visibility(
        self,
        queue: str,
        receipt_handles: Sequence[str],
        timeout_deltas: TimeoutDeltas,
    ) -> List[BatchItem]:
        """
        Change the visibility timeout of in-flight messages.

        Each delta is the new timeout in seconds, counted from now. A single
        int applies to every handle; a sequence must match receipt_handles
        in length.

        The service caps the total time a message may stay in flight
        (12 hours from its first receive). Repeated extensions can run into
        that cap. The client cannot see how much of the window is left, so it
        does not check the cap; the service rejects the offending entry and
        that rejection is reported in its BatchItem while the other entries
        proceed.

        Raises:
            RequestValidationError: Mismatched lengths, empty handles or
                negative deltas
        """
        _require_sequence("receipt_handles", receipt_handles)
        if isinstance(timeout_deltas, bool) or not isinstance(timeout_deltas, (int, list, tuple)):
            raise RequestValidationError("timeout_deltas must be an int or a list of ints")
        if isinstance(timeout_deltas, int):
            deltas = [timeout_deltas] * len(receipt_handles)
        else:
            deltas = list(timeout_deltas)
            if len(deltas) != len(receipt_handles):
                raise RequestValidationError(
                    f"got {len(receipt_handles)} receipt handles but {len(deltas)} timeout deltas"
                )

        changes = [
            validated(VisibilityChange, receipt_handle=handle, visibility_timeout=delta)
            for handle, delta in zip(receipt_handles, deltas)
        ]
        endpoint = await self.resolver.resolve(queue)
        return await self.coordinator.execute(
            "ChangeMessageVisibilityBatch",
            endpoint,
            [change.to_entry() for change in changes],
        )

    async def change_visibility(self, queue: str, receipt_handle: str, visibility_timeout: int) -> None:
        """
        Change the visibility timeout of one in-flight message.

        Raises:
            ServiceError: If the service rejected the change
        """
        results = await self.extend_visibility(queue, [receipt_handle], [visibility_timeout])
        results[0].raise_for_error()

    async def delete(self, queue: str, receipt_handles: Sequence[str]) -> List[BatchItem]:
        """
        Delete messages by receipt handle.

        A handle that no longer identifies an in-flight message (the
        message was already deleted, or its window expired and it was
        redelivered under a new handle) fails only its own item, if the
        service rejects it.

        Raises:
            RequestValidationError: If any handle is empty or receipt_handles
                is a single string
        """
        _require_sequence("receipt_handles", receipt_handles)
        entries = [validated(DeleteEntry, receipt_handle=handle) for handle in receipt_handles]
        endpoint = await self.resolver.resolve(queue)
        return await self.coordinator.execute(
            "DeleteMessageBatch",
            endpoint,
            [entry.to_entry() for entry in entries],
        )

    async def delete_one(self, queue: str, receipt_handle: str) -> None:
        """
        Delete one message.

        Raises:
            ServiceError: If the service rejected the handle
        """
        results = await self.delete(queue, [receipt_handle])
        results[0].raise_for_error()

    async def purge(self, queue: str) -> None:
        """
        Request removal of every message in the queue.

        The service accepts the request and removes messages asynchronously;
        messages may still be received for a short time after this returns.
        """
        endpoint = await self.resolver.resolve(queue)
        await self.executor.invoke("PurgeQueue", endpoint, {})
        logger.info("Queue purge requested", queue_url=endpoint)

    @staticmethod
    def _send_entry(message: SendItem) -> SendEntry:
        if isinstance(message, SendEntry):
            return message
        if isinstance(message, str):
            return validated(SendEntry, body=message)
        raise RequestValidationError("messages must be strings or SendEntry instances")


def _require_sequence(name: str, value: Any) -> None:
    """A bare string is iterable but is one item, never a batch of characters."""
    if isinstance(value, (str, bytes)):
        raise RequestValidationError(f"{name} must be a sequence, not a single {type(value).__name__}")
