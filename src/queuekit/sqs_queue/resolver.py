"""
Module: resolver.py
Description: Queue name to endpoint resolution with a process-wide cache.

Endpoints are stable for the lifetime of a queue, so a name is resolved
remotely at most once and then served from memory until the queue is
deleted through this client.

Key Components:
- EndpointCache: Copy-on-write name -> endpoint mapping
- endpoint_cache: The process-wide cache instance
- EndpointResolver: resolve(identifier) -> endpoint

Dependencies: threading, types, typing
"""

import threading
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from queuekit.models.message import QueueRef
from queuekit.sqs_queue.errors import RequestValidationError
from queuekit.sqs_queue.executor import RequestExecutor
from queuekit.utils.logger import get_logger

logger = get_logger(__name__)

CacheKey = Tuple[str, str]
Generation = Tuple[int, int]


class EndpointCache:
    """
    Name -> endpoint cache safe for concurrent readers and writers.

    Readers look up the current snapshot without taking a lock; a snapshot
    is never mutated once published. Writers serialize on a lock, copy the
    snapshot, apply their change and publish the copy.

    Keys are (scope, name) so that executors pointed at different regions
    or endpoints never share entries. Every eviction bumps the key's
    generation; a writer that read the generation before a remote lookup
    passes it to put() so a lookup that raced a delete does not restore
    the entry the delete removed.
    """

    def __init__(self):
        self._snapshot: Mapping[CacheKey, str] = MappingProxyType({})
        self._generations: Dict[CacheKey, int] = {}
        self._epoch = 0
        self._write_lock = threading.Lock()

    def get(self, scope: str, name: str) -> Optional[str]:
        return self._snapshot.get((scope, name))

    def generation(self, scope: str, name: str) -> Generation:
        """Token that changes whenever the entry is evicted or the cache cleared."""
        with self._write_lock:
            return self._epoch, self._generations.get((scope, name), 0)

    def put(self, scope: str, name: str, endpoint: str, generation: Optional[Generation] = None) -> bool:
        """
        Store an endpoint.

        With `generation`, the entry is stored only if no eviction happened
        since that generation was read. Returns True if stored.
        """
        key = (scope, name)
        with self._write_lock:
            if generation is not None and generation != (self._epoch, self._generations.get(key, 0)):
                return False
            updated = dict(self._snapshot)
            updated[key] = endpoint
            self._snapshot = MappingProxyType(updated)
            return True

    def evict(self, scope: str, name: str) -> bool:
        """Remove an entry. Returns True if one was present."""
        key = (scope, name)
        with self._write_lock:
            self._generations[key] = self._generations.get(key, 0) + 1
            if key not in self._snapshot:
                return False
            updated = dict(self._snapshot)
            del updated[key]
            self._snapshot = MappingProxyType(updated)
            return True

    def clear(self) -> None:
        with self._write_lock:
            self._snapshot = MappingProxyType({})
            self._generations = {}
            self._epoch += 1

    def snapshot(self) -> Mapping[CacheKey, str]:
        """Current immutable view of every entry."""
        return self._snapshot

    def __len__(self) -> int:
        return len(self._snapshot)


endpoint_cache = EndpointCache()


class EndpointResolver:
    """
    Resolves queue identifiers to endpoints.

    A fully qualified endpoint is returned unchanged without any remote
    call. A short name is looked up in the cache, and on a miss resolved
    with a single GetQueueUrl call whose result is cached.

    Attributes:
        executor: Request executor for GetQueueUrl calls
        cache: Endpoint cache (the process-wide one unless given)
    """

    def __init__(self, executor: RequestExecutor, cache: Optional[EndpointCache] = None):
        self.executor = executor
        self.cache = cache if cache is not None else endpoint_cache

    async def resolve(self, identifier: str) -> str:
        """
        Resolve a queue name or endpoint to an endpoint.

        Args:
            identifier: Queue name or fully qualified queue endpoint

        Returns:
            Queue endpoint

        Raises:
            RequestValidationError: If identifier is empty or not a valid queue name
            QueueNotFoundError: If the service has no queue with this name
            TransportError: If the lookup call failed without a response
        """
        ref = await self.resolve_ref(identifier)
        return ref.endpoint

    async def resolve_ref(self, identifier: str) -> QueueRef:
        """Like resolve() but returns the full QueueRef."""
        ref = self._parse(identifier)
        if ref.is_resolved:
            return ref

        scope = self.executor.scope
        cached = self.cache.get(scope, ref.name)
        if cached is not None:
            return ref.resolved(cached)

        generation = self.cache.generation(scope, ref.name)
        response = await self.executor.invoke("GetQueueUrl", None, {"QueueName": ref.name})
        endpoint = response["QueueUrl"]
        # Not cached if the queue was deleted while the lookup was in flight
        self.cache.put(scope, ref.name, endpoint, generation)

        logger.info(
            "Queue endpoint resolved",
            queue_name=ref.name,
            queue_url=endpoint
        )
        return ref.resolved(endpoint)

    def remember(self, name: str, endpoint: str) -> None:
        """Record an endpoint learned from another call (e.g. CreateQueue)."""
        self.cache.put(self.executor.scope, name, endpoint)

    def forget(self, identifier: str) -> bool:
        """
        Evict the cache entry for a queue name or endpoint.

        Returns:
            True if an entry was evicted
        """
        ref = self._parse(identifier)
        evicted = self.cache.evict(self.executor.scope, ref.name)
        if evicted:
            logger.info("Queue endpoint evicted from cache", queue_name=ref.name)
        return evicted

    @staticmethod
    def _parse(identifier: str) -> QueueRef:
        try:
            return QueueRef.parse(identifier)
        except ValueError as e:
            raise RequestValidationError(str(e)) from e
