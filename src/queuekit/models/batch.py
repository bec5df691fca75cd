"""
Module: batch.py
Description: Per-item outcome of a batch operation.

A batch call returns exactly one BatchItem per input entry, in input
order. Some items may have succeeded while others failed; callers inspect
each item rather than a single status for the whole call.

Dependencies: pydantic, typing
"""

from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from queuekit.sqs_queue.errors import ServiceError

# Synthetic codes for failures the service did not report itself
NO_RESPONSE_CODE = "NoResponseForItem"
TRANSPORT_FAILURE_CODE = "TransportError"


class BatchError(BaseModel):
    """Failure details for one batch entry."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str = ""
    sender_fault: Optional[bool] = None


class BatchItem(BaseModel):
    """
    Outcome for the entry at `index` in the caller's input.

    Exactly one of `result` and `error` is set.

    Attributes:
        index: Position of the entry in the caller's input
        entry_id: Correlation id sent with the entry
        params: Entry parameters as sent
        result: Success record returned by the service
        error: Failure details
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0)
    entry_id: str
    params: Dict[str, Any] = Field(default_factory=dict)
    result: Optional[Dict[str, Any]] = None
    error: Optional[BatchError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, index: int, entry_id: str, params: Dict[str, Any], result: Dict[str, Any]) -> "BatchItem":
        return cls(index=index, entry_id=entry_id, params=params, result=result)

    @classmethod
    def failure(
        cls,
        index: int,
        entry_id: str,
        params: Dict[str, Any],
        code: str,
        message: str = "",
        sender_fault: Optional[bool] = None,
    ) -> "BatchItem":
        return cls(
            index=index,
            entry_id=entry_id,
            params=params,
            error=BatchError(code=code, message=message, sender_fault=sender_fault),
        )

    def raise_for_error(self) -> "BatchItem":
        """Raise ServiceError if this item failed, otherwise return it."""
        if self.error is not None:
            raise ServiceError.from_code(self.error.code, self.error.message)
        return self


def failed_items(items: Sequence[BatchItem]) -> List[BatchItem]:
    """Items that failed, in input order."""
    return [item for item in items if not item.ok]
