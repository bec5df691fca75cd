"""
Module: batch.py
Description: Batch coordinator for vectorized queue operations.

Splits a sequence of per-message entries into service-sized chunks,
sends each chunk as one batch call, and reassembles one outcome per
entry in the caller's order. A failed chunk only fails its own entries.

Key Components:
- BatchCoordinator: partition, dispatch and reassemble
- BATCH_ACTIONS: batch actions the coordinator accepts

Dependencies: asyncio, typing
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence

from queuekit.config.settings import MAX_BATCH_ENTRIES
from queuekit.models.batch import NO_RESPONSE_CODE, TRANSPORT_FAILURE_CODE, BatchItem
from queuekit.sqs_queue.errors import RequestValidationError, ServiceError, TransportError
from queuekit.sqs_queue.executor import RequestExecutor
from queuekit.utils.batch_helpers import (
    correlation_id,
    index_from_correlation_id,
    indexed_chunks,
    validate_batch_size,
)
from queuekit.utils.logger import get_logger

logger = get_logger(__name__)

BATCH_ACTIONS = frozenset({
    "SendMessageBatch",
    "DeleteMessageBatch",
    "ChangeMessageVisibilityBatch",
})


class BatchCoordinator:
    """
    Runs batch actions over arbitrarily long entry sequences.

    Chunks are dispatched concurrently, at most `max_concurrency` at a time.
    The returned list always has one BatchItem per input entry and
    result[i] always describes items[i], whatever the chunking and whatever
    order the service lists its results in.

    Example:
        >>> coordinator = BatchCoordinator(executor)
        >>> results = await coordinator.execute(
        ...     "DeleteMessageBatch", queue_url,
        ...     [{"ReceiptHandle": h} for h in handles],
        ... )
        >>> [r.ok for r in results]
        [True, False, True]
    """

    def __init__(
        self,
        executor: RequestExecutor,
        max_batch_size: int = MAX_BATCH_ENTRIES,
        max_concurrency: int = 4,
    ):
        """
        Initialize batch coordinator.

        Args:
            executor: Request executor for the batch calls
            max_batch_size: Default entries per call (1-10)
            max_concurrency: Chunks in flight at once

        Raises:
            RequestValidationError: If either limit is out of range
        """
        self._check_batch_size(max_batch_size)
        if max_concurrency < 1:
            raise RequestValidationError("max_concurrency must be at least 1")

        self.executor = executor
        self.max_batch_size = max_batch_size
        self.max_concurrency = max_concurrency

    @staticmethod
    def _check_batch_size(batch_size: int) -> None:
        try:
            validate_batch_size(batch_size, MAX_BATCH_ENTRIES)
        except ValueError as e:
            raise RequestValidationError(str(e)) from e

    async def execute(
        self,
        action: str,
        endpoint: str,
        items: Sequence[Dict[str, Any]],
        max_batch_size: Optional[int] = None,
    ) -> List[BatchItem]:
        """
        Run a batch action over every entry.

        Args:
            action: Batch action name (e.g. 'DeleteMessageBatch')
            endpoint: Queue endpoint
            items: Entry parameters without ids, in caller order
            max_batch_size: Entries per call, overriding the default

        Returns:
            One BatchItem per entry, in input order

        Raises:
            RequestValidationError: Unknown action or out-of-range batch size
        """
        if action not in BATCH_ACTIONS:
            raise RequestValidationError(f"{action} is not a batch action")
        batch_size = self.max_batch_size if max_batch_size is None else max_batch_size
        self._check_batch_size(batch_size)

        if not items:
            return []

        chunks = indexed_chunks(list(items), batch_size)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(start: int, chunk: List[Dict[str, Any]]) -> List[BatchItem]:
            async with semaphore:
                return await self._dispatch_chunk(action, endpoint, start, chunk)

        chunk_results = await asyncio.gather(*(run(start, chunk) for start, chunk in chunks))

        results: List[Optional[BatchItem]] = [None] * len(items)
        for chunk_items in chunk_results:
            for item in chunk_items:
                results[item.index] = item

        failed = sum(1 for item in results if not item.ok)
        logger.info(
            "Batch operation completed",
            action=action,
            queue_url=endpoint,
            total=len(results),
            chunks=len(chunks),
            failed=failed
        )
        return results

    async def _dispatch_chunk(
        self,
        action: str,
        endpoint: str,
        start: int,
        chunk: List[Dict[str, Any]],
    ) -> List[BatchItem]:
        """Send one chunk and map its response back to input positions."""
        indices = range(start, start + len(chunk))
        entries = [
            dict(params, Id=correlation_id(index))
            for index, params in zip(indices, chunk)
        ]

        try:
            response = await self.executor.invoke(action, endpoint, {"Entries": entries})
        except (TransportError, ServiceError) as e:
            code = e.code if isinstance(e, ServiceError) else TRANSPORT_FAILURE_CODE
            message = e.message if isinstance(e, ServiceError) else str(e)
            logger.warning(
                "Batch chunk failed",
                action=action,
                queue_url=endpoint,
                first_index=start,
                size=len(chunk),
                error_code=code,
                error_message=message
            )
            return [
                BatchItem.failure(index, correlation_id(index), params, code, message)
                for index, params in zip(indices, chunk)
            ]

        outcomes: Dict[int, BatchItem] = {}
        for record in response.get("Successful") or []:
            index = self._index_in_chunk(record.get("Id"), indices)
            if index is None:
                continue
            result = {k: v for k, v in record.items() if k != "Id"}
            outcomes[index] = BatchItem.success(index, record["Id"], chunk[index - start], result)

        for record in response.get("Failed") or []:
            index = self._index_in_chunk(record.get("Id"), indices)
            if index is None:
                continue
            outcomes[index] = BatchItem.failure(
                index,
                record["Id"],
                chunk[index - start],
                record.get("Code", "Unknown"),
                record.get("Message", ""),
                record.get("SenderFault"),
            )

        items = []
        for index, params in zip(indices, chunk):
            item = outcomes.get(index)
            if item is None:
                item = BatchItem.failure(
                    index,
                    correlation_id(index),
                    params,
                    NO_RESPONSE_CODE,
                    "service response did not mention this entry",
                )
            items.append(item)
        return items

    @staticmethod
    def _index_in_chunk(entry_id: Optional[str], indices: range) -> Optional[int]:
        """Input position for an id in this chunk's response, None for stray ids."""
        try:
            index = index_from_correlation_id(entry_id or "")
        except ValueError:
            logger.warning("Ignoring unrecognized batch entry id", entry_id=entry_id)
            return None
        if index not in indices:
            logger.warning("Ignoring batch entry id from another chunk", entry_id=entry_id)
            return None
        return index
