"""
Chaincode events.

``TransferEvent`` is the payload external subscribers decode. ``EventHub``
fans committed events out to in-process listeners; delivery is
best-effort and never changes the outcome of the invocation that produced
the event.
"""

from __future__ import annotations

import itertools
import json
import logging
import threading
from dataclasses import asdict, dataclass
from typing import Callable, Dict, List, Optional, Tuple

from tokenledger.core.config import TRANSFER_EVENT_NAME
from tokenledger.core.ledger_exceptions import DecodeError
from tokenledger.core.transaction_context import ChaincodeEvent

logger = logging.getLogger(__name__)

EventListener = Callable[[ChaincodeEvent], None]


@dataclass(frozen=True)
class TransferEvent:
    """Notification published after a successful transfer."""

    sender: str
    recipient: str
    amount: int

    EVENT_NAME = TRANSFER_EVENT_NAME

    def to_payload(self) -> bytes:
        return json.dumps(asdict(self), separators=(",", ":")).encode("utf-8")

    @classmethod
    def from_payload(cls, payload: bytes) -> "TransferEvent":
        try:
            data = json.loads(payload)
            event = cls(sender=data["sender"], recipient=data["recipient"], amount=data["amount"])
        except (ValueError, KeyError, TypeError) as e:
            raise DecodeError(f"malformed transfer event payload: {e}") from e
        if not isinstance(event.amount, int) or isinstance(event.amount, bool):
            raise DecodeError("transfer event amount must be an integer")
        return event


class EventHub:
    """
    In-process subscription point for committed chaincode events.

    Listeners register for one event name, or for every event with ``"*"``.
    """

    WILDCARD = "*"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: Dict[int, Tuple[str, EventListener]] = {}
        self._ids = itertools.count(1)

    def subscribe(self, event_name: str, listener: EventListener) -> int:
        """
        Register ``listener`` for ``event_name``.

        Returns:
            Handle to pass to :meth:`unsubscribe`
        """
        if not event_name:
            raise ValueError("event_name cannot be empty")
        with self._lock:
            handle = next(self._ids)
            self._listeners[handle] = (event_name, listener)
        logger.debug(
            "Event listener registered",
            extra={"event": "events.subscribed", "event_name": event_name, "handle": handle},
        )
        return handle

    def unsubscribe(self, handle: int) -> bool:
        with self._lock:
            return self._listeners.pop(handle, None) is not None

    def publish(self, event: ChaincodeEvent) -> int:
        """
        Deliver ``event`` to every matching listener.

        A listener that raises is logged and skipped.

        Returns:
            Number of listeners that handled the event without error
        """
        with self._lock:
            targets: List[EventListener] = [
                listener
                for name, listener in self._listeners.values()
                if name in (event.event_name, self.WILDCARD)
            ]

        delivered = 0
        for listener in targets:
            try:
                listener(event)
                delivered += 1
            except Exception as e:
                logger.warning(
                    "Event listener failed",
                    exc_info=True,
                    extra={
                        "event": "events.listener_failed",
                        "event_name": event.event_name,
                        "tx_id": event.tx_id,
                        "error_type": type(e).__name__,
                    },
                )
        return delivered

    def listener_count(self, event_name: Optional[str] = None) -> int:
        with self._lock:
            if event_name is None:
                return len(self._listeners)
            return sum(1 for name, _ in self._listeners.values() if name == event_name)
