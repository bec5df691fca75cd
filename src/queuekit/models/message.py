"""
Module: message.py
Description: Queue and message data models.

Defines the client-side view of a queue reference and of a received
message. Neither model carries visibility state: how long a message
stays in flight is known only to the service.

Key Components:
- QueueRef: Queue name plus its resolved endpoint
- MessageAttribute: Typed user attribute value (String, Number, Binary)
- Message: A delivered message with its receipt handle

Dependencies: pydantic, typing
"""

import re
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ENDPOINT_PATTERN = re.compile(r'^https?://', re.IGNORECASE)
QUEUE_NAME_PATTERN = re.compile(r'^[A-Za-z0-9_-]{1,80}(\.fifo)?$')


def is_endpoint(identifier: str) -> bool:
    """True if the identifier is already a fully qualified queue endpoint."""
    return bool(ENDPOINT_PATTERN.match(identifier or ""))


def name_from_endpoint(endpoint: str) -> str:
    """Queue name is the last path segment of its endpoint."""
    return urlparse(endpoint).path.rstrip("/").rsplit("/", 1)[-1]


class QueueRef(BaseModel):
    """
    A queue identified by name, with its endpoint once resolved.

    Instances are frozen: resolving a reference produces a new one, so an
    endpoint never changes under a holder of the reference.

    Attributes:
        name: Short queue name
        endpoint: Canonical queue endpoint (None until resolved)
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Queue name")
    endpoint: Optional[str] = Field(default=None, description="Resolved queue endpoint")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate the queue naming rules."""
        if not QUEUE_NAME_PATTERN.match(v):
            raise ValueError(
                "queue name must be 1-80 letters, numbers, hyphens or underscores"
                " with an optional .fifo suffix"
            )
        return v

    @field_validator('endpoint')
    @classmethod
    def validate_endpoint(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not is_endpoint(v):
            raise ValueError("endpoint must be an HTTP/HTTPS URL")
        return v

    @classmethod
    def parse(cls, identifier: str) -> "QueueRef":
        """Build a reference from either a queue name or a queue endpoint."""
        if not identifier or not isinstance(identifier, str):
            raise ValueError("queue identifier must be a non-empty string")
        if is_endpoint(identifier):
            return cls(name=name_from_endpoint(identifier), endpoint=identifier)
        return cls(name=identifier)

    @property
    def is_resolved(self) -> bool:
        return self.endpoint is not None

    @property
    def is_fifo(self) -> bool:
        return self.name.endswith(".fifo")

    def resolved(self, endpoint: str) -> "QueueRef":
        """Return a resolved copy; resolving twice to a different endpoint is an error."""
        if self.endpoint is not None and self.endpoint != endpoint:
            raise ValueError(f"queue {self.name} is already resolved to {self.endpoint}")
        return QueueRef(name=self.name, endpoint=endpoint)


class MessageAttribute(BaseModel):
    """
    User-defined message attribute.

    Number values travel as strings on the wire, exactly as given.
    """

    model_config = ConfigDict(frozen=True)

    data_type: str = Field(default="String", description="String, Number or Binary, optionally with a .suffix")
    string_value: Optional[str] = Field(default=None)
    binary_value: Optional[bytes] = Field(default=None)

    @field_validator('data_type')
    @classmethod
    def validate_data_type(cls, v: str) -> str:
        if v.split(".", 1)[0] not in ("String", "Number", "Binary"):
            raise ValueError("data_type must start with String, Number or Binary")
        return v

    @model_validator(mode='after')
    def check_value(self) -> "MessageAttribute":
        if self.data_type.startswith("Binary"):
            if self.binary_value is None:
                raise ValueError("Binary attributes require binary_value")
        elif self.string_value is None:
            raise ValueError(f"{self.data_type} attributes require string_value")
        return self

    def to_wire(self) -> Dict[str, Any]:
        wire: Dict[str, Any] = {"DataType": self.data_type}
        if self.binary_value is not None:
            wire["BinaryValue"] = self.binary_value
        else:
            wire["StringValue"] = self.string_value
        return wire

    @classmethod
    def from_wire(cls, raw: Dict[str, Any]) -> "MessageAttribute":
        return cls(
            data_type=raw.get("DataType", "String"),
            string_value=raw.get("StringValue"),
            binary_value=raw.get("BinaryValue"),
        )


class Message(BaseModel):
    """
    A message delivered by a receive call.

    The receipt handle identifies this particular delivery. It is valid for
    visibility changes and deletion only until the visibility window it was
    issued under expires; after redelivery the service issues a new handle
    and rejects the old one.

    Attributes:
        message_id: Service-assigned message id
        receipt_handle: Opaque handle for this delivery
        body: Message body
        body_digest: MD5 digest of the body as reported by the service
        attributes: System attributes (SentTimestamp, ApproximateReceiveCount, ...)
        message_attributes: User-defined attributes
    """

    model_config = ConfigDict(frozen=True)

    message_id: str = Field(..., min_length=1)
    receipt_handle: str = Field(..., min_length=1)
    body: str = Field(default="")
    body_digest: Optional[str] = Field(default=None)
    attributes: Dict[str, str] = Field(default_factory=dict)
    message_attributes: Dict[str, MessageAttribute] = Field(default_factory=dict)

    @classmethod
    def from_response(cls, raw: Dict[str, Any]) -> "Message":
        """Build a Message from one entry of a ReceiveMessage response."""
        return cls(
            message_id=raw["MessageId"],
            receipt_handle=raw["ReceiptHandle"],
            body=raw.get("Body", ""),
            body_digest=raw.get("MD5OfBody"),
            attributes={k: str(v) for k, v in (raw.get("Attributes") or {}).items()},
            message_attributes={
                k: MessageAttribute.from_wire(v)
                for k, v in (raw.get("MessageAttributes") or {}).items()
            },
        )

    @property
    def receive_count(self) -> int:
        """Approximate number of deliveries, 0 if the attribute was not requested."""
        return int(self.attributes.get("ApproximateReceiveCount", 0))
