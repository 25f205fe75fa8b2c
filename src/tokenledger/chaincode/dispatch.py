"""
Token chaincode entry points.

``init`` handles the one-time instantiation call; ``invoke`` routes every
other call by operation name. Both take the transaction context of the
current invocation as their only state handle and turn ledger exceptions
into responses.
"""

from __future__ import annotations

import json
import logging
from typing import Sequence

from tokenledger.chaincode import requests
from tokenledger.chaincode.requests import (
    BalanceOfRequest,
    ListAllowancesRequest,
    PlaceholderRequest,
    Request,
    SetAllowanceRequest,
    TotalSupplyRequest,
    TransferRequest,
)
from tokenledger.chaincode.response import ChaincodeResponse, from_exception, success
from tokenledger.contracts.allowance_registry import AllowanceRegistry
from tokenledger.contracts.token_ledger import TokenLedger
from tokenledger.core.ledger_exceptions import TokenLedgerError
from tokenledger.core.protocols import IEventSink, IStateStore

logger = logging.getLogger(__name__)

TRANSFER_SUCCESS = b"transfer Success"


class TokenChaincode:
    """Maps operation names and string arguments onto the token contracts."""

    def init(self, stub: IStateStore, args: Sequence[str]) -> ChaincodeResponse:
        """
        Instantiate the token: ``tokenName, symbol, owner, amount``.
        """
        logger.debug("Init called", extra={"event": "chaincode.init", "arg_count": len(args)})
        try:
            request = requests.parse_initialize(args)
            TokenLedger(stub, self._event_sink(stub)).initialize(
                request.token_name, request.symbol, request.owner, request.amount
            )
        except TokenLedgerError as e:
            return self._failure("init", e)
        return success()

    def invoke(self, stub: IStateStore, function: str, args: Sequence[str]) -> ChaincodeResponse:
        """Run ``function`` with ``args`` against ``stub``."""
        try:
            request = requests.parse_request(function, args)
            return self._handle(stub, request)
        except TokenLedgerError as e:
            return self._failure(function, e)

    def _handle(self, stub: IStateStore, request: Request) -> ChaincodeResponse:
        if isinstance(request, TotalSupplyRequest):
            supply = TokenLedger(stub, self._event_sink(stub)).total_supply(request.token_name)
            return success(json.dumps(supply).encode("utf-8"))

        if isinstance(request, BalanceOfRequest):
            balance = TokenLedger(stub, self._event_sink(stub)).balance_of(request.address)
            return success(str(balance).encode("ascii"))

        if isinstance(request, TransferRequest):
            TokenLedger(stub, self._event_sink(stub)).transfer(
                request.caller, request.recipient, request.amount
            )
            return success(TRANSFER_SUCCESS)

        if isinstance(request, SetAllowanceRequest):
            AllowanceRegistry(stub).set_allowance(
                request.granter_id, request.grantee_name, request.amount
            )
            return success()

        if isinstance(request, ListAllowancesRequest):
            entries = AllowanceRegistry(stub).list_allowances(request.granter_id)
            body = json.dumps([entry.to_dict() for entry in entries], separators=(",", ":"))
            return success(body.encode("utf-8"))

        if isinstance(request, PlaceholderRequest):
            # No-op: any arguments accepted, nothing written or emitted.
            logger.info(
                "Placeholder operation called",
                extra={"event": "chaincode.placeholder", "function": request.function},
            )
            return success()

        raise TypeError(f"unhandled request type {type(request).__name__}")

    @staticmethod
    def _event_sink(stub: IStateStore) -> IEventSink:
        if not isinstance(stub, IEventSink):
            raise TypeError(f"{type(stub).__name__} does not provide emit()")
        return stub

    @staticmethod
    def _failure(function: str, exc: TokenLedgerError) -> ChaincodeResponse:
        logger.warning(
            "Chaincode call rejected",
            extra={
                "event": "chaincode.rejected",
                "function": function,
                "error_code": exc.code.value,
                "error": exc.message,
            },
        )
        return from_exception(exc)
