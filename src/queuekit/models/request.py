"""
Module: request.py
Description: Typed option models for queue operations.

Each remote operation takes one of these models instead of a loose
parameter dictionary. Models validate ranges up front and render the
wire-level parameter set with to_params() / to_entry().

Key Components:
- ReceiveOptions: receive limits, long-poll wait, visibility override
- SendEntry: one message to send (body, delay, attributes, FIFO ids)
- VisibilityChange: receipt handle plus new visibility timeout
- DeleteEntry: receipt handle to delete
- CreateQueueOptions: queue name, attributes and tags
- PermissionGrant: label, principals and actions for add_permission
- validated(): build a model, mapping pydantic errors to RequestValidationError

Dependencies: pydantic, typing
"""

from typing import Annotated, Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError, field_validator

from queuekit.config.settings import MAX_BATCH_ENTRIES, MAX_WAIT_TIME_SECONDS
from queuekit.models.message import MessageAttribute, QUEUE_NAME_PATTERN
from queuekit.sqs_queue.errors import RequestValidationError

# Absolute visibility ceiling enforced by the service (12 hours)
MAX_VISIBILITY_TIMEOUT = 43_200
MAX_DELAY_SECONDS = 900
MAX_MESSAGE_BYTES = 1_048_576

# Attributes accepted by CreateQueue / SetQueueAttributes
SETTABLE_QUEUE_ATTRIBUTES = frozenset({
    "DelaySeconds",
    "MaximumMessageSize",
    "MessageRetentionPeriod",
    "Policy",
    "ReceiveMessageWaitTimeSeconds",
    "VisibilityTimeout",
    "RedrivePolicy",
    "RedriveAllowPolicy",
    "KmsMasterKeyId",
    "KmsDataKeyReusePeriodSeconds",
    "SqsManagedSseEnabled",
    "FifoQueue",
    "ContentBasedDeduplication",
    "DeduplicationScope",
    "FifoThroughputLimit",
})

M = TypeVar('M', bound=BaseModel)

AttributeValue = Union[str, int, bool]


def validated(model: Type[M], **kwargs: Any) -> M:
    """
    Build `model` from kwargs, raising RequestValidationError on bad input.

    Raises:
        RequestValidationError: If pydantic rejects any field
    """
    try:
        return model(**kwargs)
    except ValidationError as e:
        raise RequestValidationError(str(e)) from e


def _non_empty_handle(v: str) -> str:
    if not isinstance(v, str) or not v.strip():
        raise ValueError("receipt_handle must be a non-empty string")
    return v


ReceiptHandle = Annotated[str, AfterValidator(_non_empty_handle)]


def normalize_queue_attributes(attributes: Dict[str, AttributeValue]) -> Dict[str, str]:
    """
    Stringify queue attribute values for the wire.

    Booleans become 'true'/'false'; integers become decimal strings.

    Raises:
        ValueError: If an attribute name is not settable
    """
    unknown = sorted(set(attributes) - SETTABLE_QUEUE_ATTRIBUTES)
    if unknown:
        raise ValueError(f"unknown queue attributes: {', '.join(unknown)}")

    wire: Dict[str, str] = {}
    for name, value in attributes.items():
        if isinstance(value, bool):
            wire[name] = "true" if value else "false"
        else:
            wire[name] = str(value)
    return wire


class ReceiveOptions(BaseModel):
    """
    Options for a receive call.

    Attributes:
        max_messages: Messages to return at most (1-10)
        visibility_timeout: Override for the queue's default, in seconds;
            None leaves the queue's configured default in effect
        wait_time: Long-poll wait in seconds (0-20); None uses the queue's
            ReceiveMessageWaitTimeSeconds
        attribute_names: System attributes to return
        message_attribute_names: User attributes to return
        receive_request_attempt_id: FIFO receive deduplication token
    """

    model_config = ConfigDict(frozen=True)

    max_messages: int = Field(default=1, ge=1, le=MAX_BATCH_ENTRIES)
    visibility_timeout: Optional[int] = Field(default=None, ge=0, le=MAX_VISIBILITY_TIMEOUT)
    wait_time: Optional[int] = Field(default=None, ge=0, le=MAX_WAIT_TIME_SECONDS)
    attribute_names: List[str] = Field(default_factory=lambda: ["All"])
    message_attribute_names: List[str] = Field(default_factory=lambda: ["All"])
    receive_request_attempt_id: Optional[str] = Field(default=None, max_length=128)

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "MaxNumberOfMessages": self.max_messages,
            "AttributeNames": list(self.attribute_names),
            "MessageAttributeNames": list(self.message_attribute_names),
        }
        if self.visibility_timeout is not None:
            params["VisibilityTimeout"] = self.visibility_timeout
        if self.wait_time is not None:
            params["WaitTimeSeconds"] = self.wait_time
        if self.receive_request_attempt_id:
            params["ReceiveRequestAttemptId"] = self.receive_request_attempt_id
        return params


class SendEntry(BaseModel):
    """
    One message to send.

    Attributes:
        body: Message body (non-empty, at most 1 MiB encoded)
        delay_seconds: Per-message delay (0-900)
        message_attributes: User attributes
        message_group_id: FIFO group (required by FIFO queues)
        message_deduplication_id: FIFO deduplication id
    """

    model_config = ConfigDict(frozen=True)

    body: str = Field(..., min_length=1)
    delay_seconds: Optional[int] = Field(default=None, ge=0, le=MAX_DELAY_SECONDS)
    message_attributes: Dict[str, MessageAttribute] = Field(default_factory=dict)
    message_group_id: Optional[str] = Field(default=None, min_length=1, max_length=128)
    message_deduplication_id: Optional[str] = Field(default=None, min_length=1, max_length=128)

    @field_validator('body')
    @classmethod
    def validate_body_size(cls, v: str) -> str:
        if len(v.encode("utf-8")) > MAX_MESSAGE_BYTES:
            raise ValueError(f"message body exceeds {MAX_MESSAGE_BYTES} bytes")
        return v

    def to_entry(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {"MessageBody": self.body}
        if self.delay_seconds is not None:
            entry["DelaySeconds"] = self.delay_seconds
        if self.message_attributes:
            entry["MessageAttributes"] = {
                name: attr.to_wire() for name, attr in self.message_attributes.items()
            }
        if self.message_group_id:
            entry["MessageGroupId"] = self.message_group_id
        if self.message_deduplication_id:
            entry["MessageDeduplicationId"] = self.message_deduplication_id
        return entry


class VisibilityChange(BaseModel):
    """
    New visibility timeout for one in-flight message.

    The timeout counts from now. The service caps the total time a message
    can stay in flight; requests beyond that cap are rejected per item.
    """

    model_config = ConfigDict(frozen=True)

    receipt_handle: ReceiptHandle
    visibility_timeout: int = Field(..., ge=0)

    def to_entry(self) -> Dict[str, Any]:
        return {"ReceiptHandle": self.receipt_handle, "VisibilityTimeout": self.visibility_timeout}


class DeleteEntry(BaseModel):
    """Receipt handle of a message to delete."""

    model_config = ConfigDict(frozen=True)

    receipt_handle: ReceiptHandle

    def to_entry(self) -> Dict[str, Any]:
        return {"ReceiptHandle": self.receipt_handle}


class CreateQueueOptions(BaseModel):
    """Name, attributes and tags for a new queue."""

    model_config = ConfigDict(frozen=True)

    name: str
    attributes: Dict[str, AttributeValue] = Field(default_factory=dict)
    tags: Dict[str, str] = Field(default_factory=dict)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not QUEUE_NAME_PATTERN.match(v or ""):
            raise ValueError(
                "queue name must be 1-80 letters, numbers, hyphens or underscores"
                " with an optional .fifo suffix"
            )
        return v

    @field_validator('attributes')
    @classmethod
    def validate_attributes(cls, v: Dict[str, AttributeValue]) -> Dict[str, AttributeValue]:
        normalize_queue_attributes(v)
        return v

    def to_params(self) -> Dict[str, Any]:
        attributes = normalize_queue_attributes(self.attributes)
        if self.name.endswith(".fifo"):
            attributes.setdefault("FifoQueue", "true")
        params: Dict[str, Any] = {"QueueName": self.name}
        if attributes:
            params["Attributes"] = attributes
        if self.tags:
            params["tags"] = dict(self.tags)
        return params


class PermissionGrant(BaseModel):
    """Permission statement added to a queue policy."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(..., min_length=1, max_length=80, pattern=r'^[A-Za-z0-9_-]+$')
    account_ids: List[str] = Field(..., min_length=1)
    actions: List[str] = Field(..., min_length=1)

    @field_validator('account_ids')
    @classmethod
    def validate_account_ids(cls, v: List[str]) -> List[str]:
        for account in v:
            if not account.isdigit() or len(account) != 12:
                raise ValueError(f"invalid account id: {account!r}")
        return v

    def to_params(self) -> Dict[str, Any]:
        return {"Label": self.label, "AWSAccountIds": list(self.account_ids), "Actions": list(self.actions)}
