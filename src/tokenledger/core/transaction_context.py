"""
Per-invocation view of the world state.

A ``TransactionContext`` is what an operation receives as its state store and
event sink. Reads go to the committed backend; writes are collected in a
write set and only reach the backend when the runtime commits. At most one
chaincode event is recorded per transaction; a later ``emit`` replaces an
earlier one.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from tokenledger.core import composite_key
from tokenledger.core.ledger_exceptions import (
    DecodeError,
    EventError,
    StoreError,
    TokenLedgerError,
    ValidationError,
)
from tokenledger.core.protocols import IStateBackend

logger = logging.getLogger(__name__)


def _validate_key(key: str) -> None:
    # Composite keys must decode; everything else is a simple key.
    if isinstance(key, str) and composite_key.is_composite_key(key):
        try:
            composite_key.split_composite_key(key)
        except DecodeError as e:
            raise ValidationError(
                f"key {key!r} starts with U+0000 but is not a composite key",
                details={"field": "key"},
            ) from e
    else:
        composite_key.validate_simple_key(key)


@dataclass(frozen=True)
class ChaincodeEvent:
    """An event recorded by a transaction, published after commit."""

    tx_id: str
    event_name: str
    payload: bytes


class TransactionContext:
    """
    State store and event sink scoped to a single invocation.

    Implements ``IStateStore`` and ``IEventSink``.
    """

    def __init__(self, backend: IStateBackend, tx_id: Optional[str] = None) -> None:
        self.backend = backend
        self.tx_id = tx_id or uuid.uuid4().hex
        self._writes: Dict[str, bytes] = {}
        self._event: Optional[ChaincodeEvent] = None
        self._closed = False

    # ==================== State Store ====================

    def get(self, key: str) -> Optional[bytes]:
        _validate_key(key)
        return self._read(key)

    def put(self, key: str, value: bytes) -> None:
        _validate_key(key)
        self._write(key, value)

    def make_composite_key(self, namespace: str, parts: Sequence[str]) -> str:
        return composite_key.make_composite_key(namespace, parts)

    def split_composite_key(self, key: str) -> Tuple[str, List[str]]:
        return composite_key.split_composite_key(key)

    def scan_by_partial_composite_key(
        self, namespace: str, partial_parts: Sequence[str]
    ) -> Iterator[Tuple[str, bytes]]:
        start, end = composite_key.partial_key_range(namespace, partial_parts)
        try:
            yield from self.backend.range(start, end)
        except TokenLedgerError:
            raise
        except Exception as e:
            raise StoreError(f"range scan over {namespace!r} failed: {e}") from e

    # ==================== Event Sink ====================

    def emit(self, name: str, payload: bytes) -> None:
        if not name:
            raise EventError("event name can not be empty")
        if not isinstance(payload, (bytes, bytearray)):
            raise EventError(f"event payload must be bytes, got {type(payload).__name__}")
        self._event = ChaincodeEvent(tx_id=self.tx_id, event_name=name, payload=bytes(payload))

    # ==================== Lifecycle ====================

    @property
    def write_set(self) -> Dict[str, bytes]:
        return dict(self._writes)

    @property
    def event(self) -> Optional[ChaincodeEvent]:
        return self._event

    def commit(self) -> Optional[ChaincodeEvent]:
        """
        Apply the write set to the backend in one step.

        Returns:
            The event recorded by this transaction, if any

        Raises:
            StoreError: If the backend rejects the write set
        """
        self._ensure_open()
        writes = list(self._writes.items())
        try:
            self.backend.apply(writes)
        except TokenLedgerError:
            raise
        except Exception as e:
            raise StoreError(f"commit of transaction {self.tx_id} failed: {e}") from e
        finally:
            self._closed = True
        logger.debug(
            "Transaction committed",
            extra={"event": "tx.committed", "tx_id": self.tx_id, "writes": len(writes)},
        )
        return self._event

    def rollback(self) -> None:
        """Discard the write set and any recorded event."""
        self._ensure_open()
        discarded = len(self._writes)
        self._writes.clear()
        self._event = None
        self._closed = True
        logger.debug(
            "Transaction discarded",
            extra={"event": "tx.discarded", "tx_id": self.tx_id, "writes": discarded},
        )

    # ==================== Helpers ====================

    def _read(self, key: str) -> Optional[bytes]:
        try:
            return self.backend.get(key)
        except TokenLedgerError:
            raise
        except Exception as e:
            raise StoreError(f"failed to read key {key!r}: {e}") from e

    def _write(self, key: str, value: bytes) -> None:
        self._ensure_open()
        if not isinstance(value, (bytes, bytearray)):
            raise ValidationError(f"state value for {key!r} must be bytes, got {type(value).__name__}")
        self._writes[key] = bytes(value)

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreError(f"transaction {self.tx_id} is already closed")
