"""
Module: lifecycle.py
Description: Queue lifecycle operations.

Create, delete and list queues, read and write queue attributes, and
manage queue permissions. Each operation is one resolve followed by one
remote call (list operations follow pagination). Queue attributes are
always read fresh because they can change outside this process.

Dependencies: typing
"""

from typing import Any, Dict, List, Optional, Sequence

from queuekit.models.request import (
    AttributeValue,
    CreateQueueOptions,
    PermissionGrant,
    normalize_queue_attributes,
    validated,
)
from queuekit.sqs_queue.errors import RequestValidationError
from queuekit.sqs_queue.resolver import EndpointResolver
from queuekit.utils.logger import get_logger

logger = get_logger(__name__)

QueueAttributes = Dict[str, str]

# Largest page the list actions accept
LIST_PAGE_SIZE = 1000


class QueueLifecycle:
    """Queue-level operations sharing the client's resolver and executor."""

    def __init__(self, resolver: EndpointResolver):
        self.resolver = resolver
        self.executor = resolver.executor

    async def create_queue(
        self,
        name: str,
        attributes: Optional[Dict[str, AttributeValue]] = None,
        tags: Optional[Dict[str, str]] = None,
    ) -> str:
        """
        Create a queue (or return the existing one with identical attributes).

        Args:
            name: Queue name; a .fifo suffix creates a FIFO queue
            attributes: Queue attributes such as VisibilityTimeout
            tags: Cost allocation tags

        Returns:
            Queue endpoint, which is also cached for `name`
        """
        options = validated(CreateQueueOptions, name=name, attributes=attributes or {}, tags=tags or {})
        response = await self.executor.invoke("CreateQueue", None, options.to_params())
        endpoint = response["QueueUrl"]
        self.resolver.remember(name, endpoint)

        logger.info("Queue created", queue_name=name, queue_url=endpoint)
        return endpoint

    async def delete_queue(self, queue: str) -> None:
        """
        Delete a queue and evict its cached endpoint.

        The cache entry is evicted even if the delete call fails, so the
        next resolve of this name asks the service again.
        """
        endpoint = await self.resolver.resolve(queue)
        try:
            await self.executor.invoke("DeleteQueue", endpoint, {})
        finally:
            self.resolver.forget(endpoint)

        logger.info("Queue deleted", queue_url=endpoint)

    async def list_queues(self, name_prefix: Optional[str] = None) -> List[str]:
        """
        List queue endpoints, optionally filtered by name prefix.

        Follows NextToken pagination until every page is read. The service
        only paginates when MaxResults is sent; without it the listing is
        silently cut at 1000 endpoints.
        """
        params: Dict[str, Any] = {"MaxResults": LIST_PAGE_SIZE}
        if name_prefix:
            params["QueueNamePrefix"] = name_prefix

        endpoints: List[str] = []
        while True:
            response = await self.executor.invoke("ListQueues", None, params)
            endpoints.extend(response.get("QueueUrls") or [])
            next_token = response.get("NextToken")
            if not next_token:
                break
            params = dict(params, NextToken=next_token)

        logger.info("Queues listed", prefix=name_prefix, count=len(endpoints))
        return endpoints

    async def get_queue_endpoint(self, name: str) -> str:
        """Endpoint for a queue name (served from cache after the first call)."""
        return await self.resolver.resolve(name)

    async def get_attributes(
        self,
        queue: str,
        attribute_names: Optional[Sequence[str]] = None,
    ) -> QueueAttributes:
        """
        Read queue attributes.

        Args:
            queue: Queue name or endpoint
            attribute_names: Attributes to read (default All)

        Returns:
            Attribute name -> string value
        """
        endpoint = await self.resolver.resolve(queue)
        response = await self.executor.invoke(
            "GetQueueAttributes",
            endpoint,
            {"AttributeNames": list(attribute_names or ["All"])},
        )
        return dict(response.get("Attributes") or {})

    async def set_attributes(self, queue: str, updates: Dict[str, AttributeValue]) -> None:
        """
        Update queue attributes.

        Raises:
            RequestValidationError: If updates is empty or names an attribute
                that cannot be set
        """
        if not updates:
            raise RequestValidationError("updates must name at least one attribute")
        try:
            attributes = normalize_queue_attributes(updates)
        except ValueError as e:
            raise RequestValidationError(str(e)) from e

        endpoint = await self.resolver.resolve(queue)
        await self.executor.invoke("SetQueueAttributes", endpoint, {"Attributes": attributes})
        logger.info("Queue attributes updated", queue_url=endpoint, attributes=sorted(attributes))

    async def add_permission(
        self,
        queue: str,
        label: str,
        account_ids: Sequence[str],
        actions: Sequence[str],
    ) -> None:
        """Grant `actions` on the queue to the given accounts under `label`."""
        grant = validated(PermissionGrant, label=label, account_ids=list(account_ids), actions=list(actions))
        endpoint = await self.resolver.resolve(queue)
        await self.executor.invoke("AddPermission", endpoint, grant.to_params())
        logger.info("Queue permission added", queue_url=endpoint, label=label)

    async def remove_permission(self, queue: str, label: str) -> None:
        """Revoke the permission statement named `label`."""
        if not label:
            raise RequestValidationError("label must be a non-empty string")
        endpoint = await self.resolver.resolve(queue)
        await self.executor.invoke("RemovePermission", endpoint, {"Label": label})
        logger.info("Queue permission removed", queue_url=endpoint, label=label)

    async def list_dead_letter_source_queues(self, queue: str) -> List[str]:
        """Endpoints of queues whose redrive policy targets this queue."""
        endpoint = await self.resolver.resolve(queue)
        params: Dict[str, Any] = {"MaxResults": LIST_PAGE_SIZE}
        sources: List[str] = []
        while True:
            response = await self.executor.invoke("ListDeadLetterSourceQueues", endpoint, params)
            sources.extend(response.get("queueUrls") or [])
            next_token = response.get("NextToken")
            if not next_token:
                break
            params = dict(params, NextToken=next_token)
        return sources
