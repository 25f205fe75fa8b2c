"""
Chaincode response.

Every invocation returns a status, a message and a byte payload:

- 200 OK with the operation's payload
- 404 for an operation name the chaincode does not expose
- 500 for any other failure, with the error code identifying its kind
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from tokenledger.core.ledger_exceptions import ErrorCode, TokenLedgerError

OK = 200
NOT_FOUND = 404
ERROR = 500

# Status for each error code. Only an unsupported operation is a 404, so
# callers can tell "no such operation" apart from "operation failed".
ERROR_STATUS_MAP: Dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: ERROR,
    ErrorCode.NOT_FOUND: ERROR,
    ErrorCode.DECODE_ERROR: ERROR,
    ErrorCode.STORE_ERROR: ERROR,
    ErrorCode.INSUFFICIENT_FUNDS: ERROR,
    ErrorCode.EVENT_ERROR: ERROR,
    ErrorCode.UNSUPPORTED_OPERATION: NOT_FOUND,
}


@dataclass(frozen=True)
class ChaincodeResponse:
    """
    Result of one invocation.

    Format of ``to_dict``:
    {
        "status": 200,
        "message": "",
        "payload": "...",          // UTF-8 text of the payload
        "error": {"code": ..., "details": {...}}   // failures only
    }
    """

    status: int
    message: str = ""
    payload: bytes = b""
    error_code: Optional[ErrorCode] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == OK

    @property
    def not_found(self) -> bool:
        return self.status == NOT_FOUND

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "status": self.status,
            "message": self.message,
            "payload": self.payload.decode("utf-8", errors="replace"),
        }
        if self.error_code is not None:
            error_body: Dict[str, Any] = {"code": self.error_code.value}
            if self.details:
                error_body["details"] = self.details
            body["error"] = error_body
        return body


def success(payload: Optional[bytes] = None, message: str = "") -> ChaincodeResponse:
    return ChaincodeResponse(status=OK, message=message, payload=payload or b"")


def error_response(
    code: ErrorCode,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    status: Optional[int] = None,
) -> ChaincodeResponse:
    """
    Build a failure response.

    Args:
        code: Error code
        message: Human-readable error message
        details: Additional error context
        status: Override status (defaults to ERROR_STATUS_MAP)
    """
    response_status = status if status is not None else ERROR_STATUS_MAP.get(code, ERROR)
    return ChaincodeResponse(
        status=response_status,
        message=message,
        error_code=code,
        details=dict(details or {}),
    )


def from_exception(exc: TokenLedgerError) -> ChaincodeResponse:
    if exc.code is ErrorCode.UNSUPPORTED_OPERATION:
        return error_response(exc.code, "404 Not Found", details=exc.details)
    return error_response(exc.code, exc.message, details=exc.details)
