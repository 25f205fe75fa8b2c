"""
In-process chaincode host.

Gives every call its own ``TransactionContext``, decides from the response
whether the write set is committed, and publishes the transaction's event
once the writes are durable. A failed operation leaves no trace in the
world state, except that a transfer whose event could not be recorded keeps
its balance updates.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional, Sequence

from tokenledger.chaincode.dispatch import TokenChaincode
from tokenledger.chaincode.response import ChaincodeResponse, error_response
from tokenledger.core import config
from tokenledger.core.events import EventHub, TransferEvent
from tokenledger.core.ledger_exceptions import ErrorCode, StoreError, TokenLedgerError
from tokenledger.core.metrics import ChaincodeMetrics, get_chaincode_metrics
from tokenledger.core.protocols import IStateBackend
from tokenledger.core.transaction_context import ChaincodeEvent, TransactionContext

logger = logging.getLogger(__name__)

INIT_FUNCTION = "init"


class ChaincodeRuntime:
    """
    Runs chaincode calls against a state backend one transaction at a time.

    Invocations are serialized, so each one reads the state committed by the
    previous one.
    """

    def __init__(
        self,
        chaincode: TokenChaincode,
        backend: IStateBackend,
        event_hub: Optional[EventHub] = None,
        metrics: Optional[ChaincodeMetrics] = None,
    ) -> None:
        self.chaincode = chaincode
        self.backend = backend
        self.event_hub = event_hub or EventHub()
        if metrics is None and config.METRICS_ENABLED:
            metrics = get_chaincode_metrics()
        self.metrics = metrics
        self._lock = threading.Lock()
        self.last_event: Optional[ChaincodeEvent] = None

    def instantiate(self, args: Sequence[str], tx_id: Optional[str] = None) -> ChaincodeResponse:
        """Run the chaincode's init with ``tokenName, symbol, owner, amount``."""
        return self._execute(INIT_FUNCTION, args, tx_id, lambda ctx: self.chaincode.init(ctx, list(args)))

    def invoke(self, function: str, args: Sequence[str], tx_id: Optional[str] = None) -> ChaincodeResponse:
        """Run ``function`` with positional string ``args``."""
        return self._execute(
            function, args, tx_id, lambda ctx: self.chaincode.invoke(ctx, function, list(args))
        )

    def _execute(
        self,
        function: str,
        args: Sequence[str],
        tx_id: Optional[str],
        call: Callable[[TransactionContext], ChaincodeResponse],
    ) -> ChaincodeResponse:
        started = time.perf_counter()
        with self._lock:
            ctx = TransactionContext(self.backend, tx_id=tx_id)
            logger.debug(
                "Invocation started",
                extra={
                    "event": "runtime.invoke",
                    "function": function,
                    "tx_id": ctx.tx_id,
                    "arg_count": len(args),
                },
            )
            try:
                response = call(ctx)
            except Exception:
                ctx.rollback()
                logger.error(
                    "Chaincode raised an unexpected error",
                    exc_info=True,
                    extra={"event": "runtime.crashed", "function": function, "tx_id": ctx.tx_id},
                )
                raise

            event: Optional[ChaincodeEvent] = None
            if self._should_commit(response):
                try:
                    event = ctx.commit()
                except StoreError as e:
                    logger.error(
                        "Commit failed",
                        extra={"event": "runtime.commit_failed", "function": function, "tx_id": ctx.tx_id},
                    )
                    response = error_response(e.code, e.message, details=e.details)
            else:
                ctx.rollback()

        if event is not None:
            self.last_event = event
            self._publish(event)

        self._record(function, response, event, time.perf_counter() - started)
        return response

    @staticmethod
    def _should_commit(response: ChaincodeResponse) -> bool:
        # A transfer whose event failed has already moved the balances.
        return response.ok or response.error_code is ErrorCode.EVENT_ERROR

    def _publish(self, event: ChaincodeEvent) -> None:
        delivered = self.event_hub.publish(event)
        logger.debug(
            "Event published",
            extra={
                "event": "runtime.event_published",
                "event_name": event.event_name,
                "tx_id": event.tx_id,
                "listeners": delivered,
            },
        )

    def _record(
        self,
        function: str,
        response: ChaincodeResponse,
        event: Optional[ChaincodeEvent],
        duration: float,
    ) -> None:
        if self.metrics is None:
            return
        self.metrics.record_invocation(function, response.status, duration)
        if event is None:
            return
        self.metrics.record_event(event.event_name)
        if event.event_name == TransferEvent.EVENT_NAME:
            try:
                self.metrics.record_transfer(TransferEvent.from_payload(event.payload).amount)
            except TokenLedgerError:
                logger.warning(
                    "Could not read transfer amount from event",
                    extra={"event": "runtime.metrics_skipped", "tx_id": event.tx_id},
                )
