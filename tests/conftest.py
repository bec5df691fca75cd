"""
Module: conftest.py
Description: Shared pytest fixtures for queue client tests.

Provides an in-memory queue service that speaks the request executor
protocol, clients wired to it, and moto-backed clients for end-to-end
scenarios against the botocore stack.
"""

import asyncio
import hashlib
import json
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
from botocore import xform_name
from moto import mock_aws
from pydantic_settings import SettingsConfigDict

from queuekit.config.settings import QueueSettings
from queuekit.sqs_queue.client import QueueClient
from queuekit.sqs_queue.errors import ServiceError
from queuekit.sqs_queue.executor import BotoRequestExecutor
from queuekit.sqs_queue.resolver import EndpointCache, endpoint_cache

REGION = "us-east-1"
ACCOUNT = "123456789012"
MAX_VISIBILITY = 43_200


class TestQueueSettings(QueueSettings):
    """Settings that ignore .env files."""

    model_config = SettingsConfigDict(
        env_file=None,
        case_sensitive=False,
        extra="ignore"
    )


@dataclass
class FakeMessage:
    message_id: str
    body: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    receipt_handle: Optional[str] = None
    visible_at: float = 0.0
    receive_count: int = 0
    deleted: bool = False


@dataclass
class FakeQueue:
    name: str
    url: str
    attributes: Dict[str, str] = field(default_factory=dict)
    messages: List[FakeMessage] = field(default_factory=list)
    permissions: Dict[str, Dict[str, Any]] = field(default_factory=dict)


class FakeQueueService:
    """
    In-memory queue service implementing the request executor protocol.

    Receipt handles are single use per delivery: deleting a message, or a
    message becoming visible again, invalidates its handle. Visibility
    changes beyond 12 hours are rejected per entry. Batches larger than
    ten entries are rejected as a whole, like the real service.

    Attributes:
        calls: Every (action, endpoint, params) received, in order
        failures: (predicate, error) pairs checked before each call
        wait_scale: Multiplier applied to long-poll waits
        page_size: Page size cap for list actions (None uses MaxResults)
        unpaged_limit: Results returned by list actions sent without MaxResults
    """

    scope = "fake|"

    def __init__(self):
        self.queues: Dict[str, FakeQueue] = {}
        self.calls: List[Tuple[str, Optional[str], Dict[str, Any]]] = []
        self.failures: List[Tuple[Callable[[str, Optional[str], Dict[str, Any]], bool], Exception]] = []
        self.wait_scale = 0.0
        self.page_size: Optional[int] = None
        self.unpaged_limit = 1000

    # Test helpers

    def url_for(self, name: str) -> str:
        return f"https://sqs.{REGION}.amazonaws.com/{ACCOUNT}/{name}"

    def fail_when(self, predicate, error: Exception) -> None:
        self.failures.append((predicate, error))

    def calls_for(self, action: str) -> List[Tuple[str, Optional[str], Dict[str, Any]]]:
        return [call for call in self.calls if call[0] == action]

    def queue_at(self, endpoint: str) -> FakeQueue:
        for queue in self.queues.values():
            if queue.url == endpoint:
                return queue
        raise ServiceError.from_code(
            "AWS.SimpleQueueService.NonExistentQueue",
            "The specified queue does not exist.",
            400,
        )

    def expire_visibility(self, endpoint: str) -> None:
        """Make every in-flight message visible again, invalidating its handle."""
        for message in self.queue_at(endpoint).messages:
            message.visible_at = 0.0

    # Executor protocol

    async def invoke(self, action: str, endpoint: Optional[str], params: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append((action, endpoint, json.loads(json.dumps(params, default=str))))
        for predicate, error in self.failures:
            if predicate(action, endpoint, params):
                raise error
        handler = getattr(self, "_" + xform_name(action))
        return await handler(endpoint, params)

    # Actions

    async def _get_queue_url(self, endpoint, params):
        queue = self.queues.get(params["QueueName"])
        if queue is None:
            raise ServiceError.from_code(
                "AWS.SimpleQueueService.NonExistentQueue",
                "The specified queue does not exist.",
                400,
            )
        return {"QueueUrl": queue.url}

    async def _create_queue(self, endpoint, params):
        return {"QueueUrl": self.add_queue(params["QueueName"], params.get("Attributes"))}

    def add_queue(self, name: str, attributes: Optional[Dict[str, str]] = None) -> str:
        """Create a queue without recording a call; returns its URL."""
        if name not in self.queues:
            merged = {"VisibilityTimeout": "30", "ReceiveMessageWaitTimeSeconds": "0"}
            merged.update(attributes or {})
            merged["QueueArn"] = f"arn:aws:sqs:{REGION}:{ACCOUNT}:{name}"
            self.queues[name] = FakeQueue(name=name, url=self.url_for(name), attributes=merged)
        return self.queues[name].url

    async def _delete_queue(self, endpoint, params):
        queue = self.queue_at(endpoint)
        del self.queues[queue.name]
        return {}

    async def _list_queues(self, endpoint, params):
        prefix = params.get("QueueNamePrefix", "")
        urls = sorted(q.url for q in self.queues.values() if q.name.startswith(prefix))
        return self._page(urls, "QueueUrls", params)

    def _page(self, urls: List[str], key: str, params) -> Dict[str, Any]:
        """Paginate like the service: NextToken only when MaxResults was sent."""
        if "MaxResults" not in params:
            return {key: urls[:self.unpaged_limit]}
        size = params["MaxResults"]
        if self.page_size is not None:
            size = min(size, self.page_size)
        start = int(params.get("NextToken", 0))
        response: Dict[str, Any] = {key: urls[start:start + size]}
        if start + size < len(urls):
            response["NextToken"] = str(start + size)
        return response

    async def _get_queue_attributes(self, endpoint, params):
        queue = self.queue_at(endpoint)
        now = time.monotonic()
        live = [m for m in queue.messages if not m.deleted]
        attributes = dict(queue.attributes)
        attributes["ApproximateNumberOfMessages"] = str(sum(1 for m in live if m.visible_at <= now))
        attributes["ApproximateNumberOfMessagesNotVisible"] = str(sum(1 for m in live if m.visible_at > now))
        names = params.get("AttributeNames") or ["All"]
        if "All" not in names:
            attributes = {k: v for k, v in attributes.items() if k in names}
        return {"Attributes": attributes}

    async def _set_queue_attributes(self, endpoint, params):
        self.queue_at(endpoint).attributes.update(params["Attributes"])
        return {}

    async def _purge_queue(self, endpoint, params):
        self.queue_at(endpoint).messages.clear()
        return {}

    async def _add_permission(self, endpoint, params):
        queue = self.queue_at(endpoint)
        queue.permissions[params["Label"]] = {
            "accounts": params["AWSAccountIds"],
            "actions": params["Actions"],
        }
        return {}

    async def _remove_permission(self, endpoint, params):
        queue = self.queue_at(endpoint)
        if params["Label"] not in queue.permissions:
            raise ServiceError.from_code("InvalidParameterValue", "Value label for parameter Label is invalid.", 400)
        del queue.permissions[params["Label"]]
        return {}

    async def _list_dead_letter_source_queues(self, endpoint, params):
        target = self.queue_at(endpoint).attributes["QueueArn"]
        sources = []
        for queue in self.queues.values():
            policy = queue.attributes.get("RedrivePolicy")
            if policy and json.loads(policy).get("deadLetterTargetArn") == target:
                sources.append(queue.url)
        return self._page(sorted(sources), "queueUrls", params)

    def _check_batch(self, params):
        entries = params["Entries"]
        if len(entries) > 10:
            raise ServiceError.from_code(
                "AWS.SimpleQueueService.TooManyEntriesInBatchRequest",
                "Maximum number of entries per request are 10.",
                400,
            )
        return entries

    async def _send_message_batch(self, endpoint, params):
        queue = self.queue_at(endpoint)
        successful, failed = [], []
        for entry in self._check_batch(params):
            message = FakeMessage(
                message_id=str(uuid.uuid4()),
                body=entry["MessageBody"],
                attributes=entry.get("MessageAttributes") or {},
                visible_at=time.monotonic() + entry.get("DelaySeconds", 0),
            )
            queue.messages.append(message)
            successful.append({
                "Id": entry["Id"],
                "MessageId": message.message_id,
                "MD5OfMessageBody": hashlib.md5(message.body.encode()).hexdigest(),
            })
        return {"Successful": successful, "Failed": failed}

    async def _receive_message(self, endpoint, params):
        queue = self.queue_at(endpoint)
        wait = params.get("WaitTimeSeconds", int(queue.attributes["ReceiveMessageWaitTimeSeconds"]))
        batch = self._take_visible(queue, params)
        if not batch and wait:
            await asyncio.sleep(wait * self.wait_scale)
            batch = self._take_visible(queue, params)

        return {
            "Messages": [
                {
                    "MessageId": m.message_id,
                    "ReceiptHandle": m.receipt_handle,
                    "MD5OfBody": hashlib.md5(m.body.encode()).hexdigest(),
                    "Body": m.body,
                    "Attributes": {"ApproximateReceiveCount": str(m.receive_count)},
                    "MessageAttributes": m.attributes,
                }
                for m in batch
            ]
        }

    def _take_visible(self, queue: FakeQueue, params) -> List[FakeMessage]:
        now = time.monotonic()
        timeout = params.get("VisibilityTimeout", int(queue.attributes["VisibilityTimeout"]))
        batch = []
        for message in queue.messages:
            if len(batch) >= params.get("MaxNumberOfMessages", 1):
                break
            if message.deleted or message.visible_at > now:
                continue
            message.receipt_handle = f"rh-{uuid.uuid4().hex}"
            message.visible_at = now + timeout
            message.receive_count += 1
            batch.append(message)
        return batch

    def _in_flight(self, queue: FakeQueue, handle: str) -> Optional[FakeMessage]:
        now = time.monotonic()
        for message in queue.messages:
            if message.receipt_handle == handle and not message.deleted and message.visible_at > now:
                return message
        return None

    async def _delete_message_batch(self, endpoint, params):
        queue = self.queue_at(endpoint)
        successful, failed = [], []
        for entry in self._check_batch(params):
            message = self._in_flight(queue, entry["ReceiptHandle"])
            if message is None:
                failed.append({
                    "Id": entry["Id"],
                    "SenderFault": True,
                    "Code": "ReceiptHandleIsInvalid",
                    "Message": "The input receipt handle is invalid.",
                })
                continue
            message.deleted = True
            successful.append({"Id": entry["Id"]})
        return {"Successful": successful, "Failed": failed}

    async def _change_message_visibility_batch(self, endpoint, params):
        queue = self.queue_at(endpoint)
        successful, failed = [], []
        for entry in self._check_batch(params):
            if entry["VisibilityTimeout"] > MAX_VISIBILITY:
                failed.append({
                    "Id": entry["Id"],
                    "SenderFault": True,
                    "Code": "InvalidParameterValue",
                    "Message": "Total VisibilityTimeout for the message is beyond the limit [43200 seconds]",
                })
                continue
            message = self._in_flight(queue, entry["ReceiptHandle"])
            if message is None:
                failed.append({
                    "Id": entry["Id"],
                    "SenderFault": True,
                    "Code": "ReceiptHandleIsInvalid",
                    "Message": "The input receipt handle is invalid.",
                })
                continue
            message.visible_at = time.monotonic() + entry["VisibilityTimeout"]
            successful.append({"Id": entry["Id"]})
        return {"Successful": successful, "Failed": failed}


@pytest.fixture(autouse=True)
def reset_endpoint_cache():
    """Start and finish every test with an empty process-wide endpoint cache."""
    endpoint_cache.clear()
    yield
    endpoint_cache.clear()


@pytest.fixture
def test_settings():
    """Settings independent of the environment."""
    return TestQueueSettings()


@pytest.fixture
def fake_service():
    """In-memory queue service."""
    return FakeQueueService()


@pytest.fixture
def cache():
    """Endpoint cache private to one test."""
    return EndpointCache()


@pytest.fixture
def fake_client(fake_service, cache):
    """QueueClient backed by the in-memory service."""
    return QueueClient(fake_service, cache=cache)


@pytest.fixture
def fake_queue(fake_service):
    """A queue named 'jobs' created directly in the fake service; returns its URL."""
    return fake_service.add_queue("jobs")


@pytest.fixture
def aws_credentials(monkeypatch):
    """Set fake AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)


@pytest.fixture
def moto_aws(aws_credentials):
    """Enable moto mock for SQS."""
    with mock_aws():
        yield


@pytest.fixture
def moto_executor(moto_aws):
    """boto3-backed executor talking to moto."""
    return BotoRequestExecutor(REGION)


@pytest.fixture
def moto_client(moto_executor, cache):
    """QueueClient talking to moto."""
    return QueueClient(moto_executor, cache=cache)
