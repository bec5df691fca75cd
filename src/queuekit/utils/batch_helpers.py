"""
Module: batch_helpers.py
Description: Utility functions for batch operations.

Provides helpers for splitting per-message entries into service-sized
chunks while remembering where each chunk started in the caller's input,
so batch results can be put back in input order.

Key Components:
- chunk_list(): Split sequences into contiguous chunks
- indexed_chunks(): Chunks paired with their starting offset
- validate_batch_size(): Validate a configured batch ceiling
- correlation_id(): Per-entry id derived from the input position

Dependencies: typing
"""

from typing import List, Sequence, Tuple, TypeVar

T = TypeVar('T')

CORRELATION_PREFIX = "msg-"


def chunk_list(items: Sequence[T], chunk_size: int) -> List[List[T]]:
    """
    Split a sequence into contiguous chunks of at most chunk_size items.

    Args:
        items: Sequence to split into chunks
        chunk_size: Maximum size of each chunk

    Returns:
        List of chunks, where each chunk is a list of items

    Raises:
        ValueError: If chunk_size is not positive

    Example:
        >>> chunk_list([1, 2, 3, 4, 5], 2)
        [[1, 2], [3, 4], [5]]
    """
    if isinstance(items, (str, bytes)) or not isinstance(items, Sequence):
        raise ValueError("items must be a sequence")
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    return [list(items[i:i + chunk_size]) for i in range(0, len(items), chunk_size)]


def indexed_chunks(items: Sequence[T], chunk_size: int) -> List[Tuple[int, List[T]]]:
    """
    Split items like chunk_list() and pair each chunk with its start offset.

    Example:
        >>> indexed_chunks(["a", "b", "c"], 2)
        [(0, ["a", "b"]), (2, ["c"])]
    """
    chunks = chunk_list(items, chunk_size)
    return [(n * chunk_size, chunk) for n, chunk in enumerate(chunks)]


def validate_batch_size(batch_size: int, max_size: int) -> None:
    """
    Validate a batch ceiling against the service maximum.

    Args:
        batch_size: Requested entries per batch call
        max_size: Maximum allowed batch size

    Raises:
        ValueError: If batch size is not within 1..max_size
    """
    if isinstance(batch_size, bool) or not isinstance(batch_size, int):
        raise ValueError("batch size must be an integer")
    if batch_size < 1:
        raise ValueError("batch size must be at least 1")
    if batch_size > max_size:
        raise ValueError(f"batch size cannot exceed {max_size} items")


def correlation_id(index: int) -> str:
    """Entry id for the item at the given input position."""
    return f"{CORRELATION_PREFIX}{index}"


def index_from_correlation_id(entry_id: str) -> int:
    """
    Recover the input position from an entry id.

    Raises:
        ValueError: If the id was not produced by correlation_id()
    """
    if not entry_id or not entry_id.startswith(CORRELATION_PREFIX):
        raise ValueError(f"unrecognized entry id: {entry_id!r}")
    return int(entry_id[len(CORRELATION_PREFIX):])
