"""
Token ledger exception hierarchy.

Every failure an operation can report maps to one typed exception, and each
exception carries the ``ErrorCode`` the dispatch layer puts on the wire.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Error codes returned in chaincode responses."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    DECODE_ERROR = "DECODE_ERROR"
    STORE_ERROR = "STORE_ERROR"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    EVENT_ERROR = "EVENT_ERROR"
    UNSUPPORTED_OPERATION = "UNSUPPORTED_OPERATION"


class TokenLedgerError(Exception):
    """Base exception for all token ledger errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the caller may retry the operation unchanged
    """

    code: ErrorCode = ErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable


class ValidationError(TokenLedgerError):
    """Raised for wrong argument counts, empty fields and bad amounts."""

    code = ErrorCode.VALIDATION_ERROR


class NotFoundError(TokenLedgerError):
    """Raised when required state (e.g. token metadata) is absent."""

    code = ErrorCode.NOT_FOUND


class DecodeError(TokenLedgerError):
    """Raised when stored bytes do not parse as the expected record."""

    code = ErrorCode.DECODE_ERROR


class StoreError(TokenLedgerError):
    """Raised when the underlying state store fails a read or write."""

    code = ErrorCode.STORE_ERROR

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)


class InsufficientFundsError(TokenLedgerError):
    """Raised when a transfer would drive a balance negative."""

    code = ErrorCode.INSUFFICIENT_FUNDS

    def __init__(
        self,
        message: str,
        balance: Optional[int] = None,
        requested: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.balance = balance
        self.requested = requested


class EventError(TokenLedgerError):
    """Raised when the post-commit notification could not be recorded.

    The balance mutation that preceded it stays in effect.
    """

    code = ErrorCode.EVENT_ERROR


class UnsupportedOperationError(TokenLedgerError):
    """Raised for operation names the chaincode does not expose."""

    code = ErrorCode.UNSUPPORTED_OPERATION
