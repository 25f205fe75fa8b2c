"""
tokenledger - Core Protocol Interfaces

The contract logic only depends on these two narrow interfaces. The host
runtime supplies implementations; tests supply in-memory ones.
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Protocol, Sequence, Tuple, runtime_checkable


@runtime_checkable
class IStateStore(Protocol):
    """
    Key-value world state as seen by one invocation.
    """

    def get(self, key: str) -> Optional[bytes]:
        """
        Read a value.

        Returns:
            Stored bytes, or None if the key is absent

        Raises:
            StoreError: If the backend read fails
        """
        ...

    def put(self, key: str, value: bytes) -> None:
        """
        Write a value.

        Raises:
            ValidationError: If the key is empty or reserved
            StoreError: If the backend write fails
        """
        ...

    def make_composite_key(self, namespace: str, parts: Sequence[str]) -> str:
        ...

    def split_composite_key(self, key: str) -> Tuple[str, List[str]]:
        ...

    def scan_by_partial_composite_key(
        self, namespace: str, partial_parts: Sequence[str]
    ) -> Iterator[Tuple[str, bytes]]:
        """
        Lazily yield ``(key, value)`` pairs whose composite key starts with
        ``namespace`` + ``partial_parts``, in ascending key order.

        Each call starts a fresh scan.
        """
        ...


@runtime_checkable
class IEventSink(Protocol):
    """Side channel for notifications published after a successful operation."""

    def emit(self, name: str, payload: bytes) -> None:
        """
        Record an event for delivery.

        Raises:
            EventError: If the event cannot be recorded
        """
        ...


@runtime_checkable
class IStateBackend(Protocol):
    """
    Committed storage underneath a transaction context.

    ``apply`` must make the whole write set visible at once or not at all.
    """

    def get(self, key: str) -> Optional[bytes]:
        ...

    def range(self, start: str, end: str) -> Iterator[Tuple[str, bytes]]:
        """Yield ``(key, value)`` with ``start <= key < end`` in key order."""
        ...

    def apply(self, writes: Sequence[Tuple[str, bytes]]) -> None:
        ...
