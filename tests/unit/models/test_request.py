"""
Module: test_request.py
Description: Unit tests for operation option models.

Each model is checked for its validation ranges and for the parameter
set it renders for the wire.
"""

import pytest

from queuekit.models.message import MessageAttribute
from queuekit.models.request import (
    MAX_MESSAGE_BYTES,
    CreateQueueOptions,
    DeleteEntry,
    PermissionGrant,
    ReceiveOptions,
    SendEntry,
    VisibilityChange,
    normalize_queue_attributes,
    validated,
)
from queuekit.sqs_queue.errors import QueueError, RequestValidationError


class TestValidated:
    """Test cases for validated()."""

    def test_returns_model(self):
        options = validated(ReceiveOptions, max_messages=5)

        assert options.max_messages == 5

    def test_maps_validation_error(self):
        with pytest.raises(RequestValidationError) as exc_info:
            validated(ReceiveOptions, max_messages=0)

        assert isinstance(exc_info.value, QueueError)
        assert isinstance(exc_info.value, ValueError)


class TestReceiveOptions:
    """Test cases for ReceiveOptions."""

    def test_default_params(self):
        assert ReceiveOptions().to_params() == {
            "MaxNumberOfMessages": 1,
            "AttributeNames": ["All"],
            "MessageAttributeNames": ["All"],
        }

    def test_full_params(self):
        params = ReceiveOptions(
            max_messages=10,
            visibility_timeout=120,
            wait_time=20,
            attribute_names=["ApproximateReceiveCount"],
            message_attribute_names=["color"],
            receive_request_attempt_id="attempt-1",
        ).to_params()

        assert params == {
            "MaxNumberOfMessages": 10,
            "VisibilityTimeout": 120,
            "WaitTimeSeconds": 20,
            "AttributeNames": ["ApproximateReceiveCount"],
            "MessageAttributeNames": ["color"],
            "ReceiveRequestAttemptId": "attempt-1",
        }

    def test_zero_wait_is_sent(self):
        """wait_time=0 forces a short poll even on a long-poll queue."""
        assert ReceiveOptions(wait_time=0).to_params()["WaitTimeSeconds"] == 0

    @pytest.mark.parametrize("field, value", [
        ("max_messages", 0),
        ("max_messages", 11),
        ("wait_time", 21),
        ("wait_time", -1),
        ("visibility_timeout", -1),
        ("visibility_timeout", 43_201),
    ])
    def test_out_of_range(self, field, value):
        with pytest.raises(RequestValidationError):
            validated(ReceiveOptions, **{field: value})


class TestSendEntry:
    """Test cases for SendEntry."""

    def test_body_only(self):
        assert SendEntry(body="hello").to_entry() == {"MessageBody": "hello"}

    def test_full_entry(self):
        entry = SendEntry(
            body="hello",
            delay_seconds=30,
            message_attributes={"color": MessageAttribute(string_value="red")},
            message_group_id="g1",
            message_deduplication_id="d1",
        ).to_entry()

        assert entry == {
            "MessageBody": "hello",
            "DelaySeconds": 30,
            "MessageAttributes": {"color": {"DataType": "String", "StringValue": "red"}},
            "MessageGroupId": "g1",
            "MessageDeduplicationId": "d1",
        }

    def test_empty_body(self):
        with pytest.raises(RequestValidationError):
            validated(SendEntry, body="")

    def test_oversized_body(self):
        with pytest.raises(RequestValidationError, match="exceeds"):
            validated(SendEntry, body="x" * (MAX_MESSAGE_BYTES + 1))

    def test_delay_range(self):
        with pytest.raises(RequestValidationError):
            validated(SendEntry, body="x", delay_seconds=901)


class TestHandleEntries:
    """Test cases for VisibilityChange and DeleteEntry."""

    def test_visibility_entry(self):
        change = VisibilityChange(receipt_handle="rh-1", visibility_timeout=60)

        assert change.to_entry() == {"ReceiptHandle": "rh-1", "VisibilityTimeout": 60}

    def test_visibility_beyond_cap_is_left_to_the_service(self):
        """Only the remaining in-flight window matters, which only the service knows."""
        change = VisibilityChange(receipt_handle="rh-1", visibility_timeout=50_000)

        assert change.visibility_timeout == 50_000

    def test_negative_visibility(self):
        with pytest.raises(RequestValidationError):
            validated(VisibilityChange, receipt_handle="rh-1", visibility_timeout=-5)

    def test_delete_entry(self):
        assert DeleteEntry(receipt_handle="rh-1").to_entry() == {"ReceiptHandle": "rh-1"}

    @pytest.mark.parametrize("handle", ["", "   "])
    def test_blank_handles(self, handle):
        with pytest.raises(RequestValidationError, match="receipt_handle must be a non-empty string"):
            validated(DeleteEntry, receipt_handle=handle)

        with pytest.raises(RequestValidationError, match="receipt_handle must be a non-empty string"):
            validated(VisibilityChange, receipt_handle=handle, visibility_timeout=10)


class TestQueueAttributes:
    """Test cases for queue attribute normalization and CreateQueueOptions."""

    def test_normalize(self):
        assert normalize_queue_attributes({
            "VisibilityTimeout": 45,
            "ContentBasedDeduplication": True,
            "Policy": "{}",
        }) == {
            "VisibilityTimeout": "45",
            "ContentBasedDeduplication": "true",
            "Policy": "{}",
        }

    def test_normalize_rejects_unknown(self):
        with pytest.raises(ValueError, match="unknown queue attributes: Colour"):
            normalize_queue_attributes({"Colour": "blue"})

    def test_create_params(self):
        params = CreateQueueOptions(
            name="jobs",
            attributes={"VisibilityTimeout": 60},
            tags={"team": "core"},
        ).to_params()

        assert params == {
            "QueueName": "jobs",
            "Attributes": {"VisibilityTimeout": "60"},
            "tags": {"team": "core"},
        }

    def test_create_name_only(self):
        assert CreateQueueOptions(name="jobs").to_params() == {"QueueName": "jobs"}

    def test_fifo_queue_flag(self):
        params = CreateQueueOptions(name="orders.fifo").to_params()

        assert params["Attributes"] == {"FifoQueue": "true"}

    def test_create_invalid_name(self):
        with pytest.raises(RequestValidationError, match="queue name"):
            validated(CreateQueueOptions, name="no spaces allowed")

    def test_create_unknown_attribute(self):
        with pytest.raises(RequestValidationError, match="unknown queue attributes"):
            validated(CreateQueueOptions, name="jobs", attributes={"Bogus": 1})


class TestPermissionGrant:
    """Test cases for PermissionGrant."""

    def test_params(self):
        grant = PermissionGrant(label="consumers", account_ids=["111122223333"], actions=["ReceiveMessage"])

        assert grant.to_params() == {
            "Label": "consumers",
            "AWSAccountIds": ["111122223333"],
            "Actions": ["ReceiveMessage"],
        }

    @pytest.mark.parametrize("accounts", [[], ["1234"], ["abcdefghijkl"]])
    def test_invalid_accounts(self, accounts):
        with pytest.raises(RequestValidationError):
            validated(PermissionGrant, label="x", account_ids=accounts, actions=["SendMessage"])

    def test_invalid_label(self):
        with pytest.raises(RequestValidationError):
            validated(PermissionGrant, label="has space", account_ids=["111122223333"], actions=["*"])
