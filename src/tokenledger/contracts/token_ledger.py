"""
Fungible token ledger.

Token metadata lives under the key equal to the token name; each balance is
a decimal integer string under the key equal to the address. A missing
balance reads as zero.

Every operation validates completely before its first write, so a rejected
call leaves the world state untouched.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Optional

from tokenledger.core import composite_key
from tokenledger.core.config import TRANSFER_EVENT_NAME
from tokenledger.core.events import TransferEvent
from tokenledger.core.ledger_exceptions import (
    DecodeError,
    EventError,
    InsufficientFundsError,
    NotFoundError,
    ValidationError,
)
from tokenledger.core.logging_config import truncate_address
from tokenledger.core.protocols import IEventSink, IStateStore

logger = logging.getLogger(__name__)

UINT64_MAX = 2**64 - 1

_STORED_INT = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class TokenMetadata:
    """Token meta info, written once at initialization."""

    name: str
    symbol: str
    owner: str
    total_supply: int

    def to_bytes(self) -> bytes:
        return json.dumps(
            {
                "name": self.name,
                "symbol": self.symbol,
                "owner": self.owner,
                "totalSupply": self.total_supply,
            },
            separators=(",", ":"),
        ).encode("utf-8")

    @classmethod
    def from_bytes(cls, raw: bytes) -> "TokenMetadata":
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise DecodeError(f"token metadata is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise DecodeError("token metadata must be a JSON object")

        total_supply = data.get("totalSupply", 0)
        if not isinstance(total_supply, int) or isinstance(total_supply, bool) or total_supply < 0:
            raise DecodeError(f"token metadata totalSupply is not an unsigned integer: {total_supply!r}")
        fields = {}
        for field in ("name", "symbol", "owner"):
            value = data.get(field, "")
            if not isinstance(value, str):
                raise DecodeError(f"token metadata {field} must be a string")
            fields[field] = value
        return cls(total_supply=total_supply, **fields)


def encode_balance(amount: int) -> bytes:
    return str(amount).encode("ascii")


def decode_balance(raw: Optional[bytes], address: str) -> int:
    """Parse a stored balance; absence is zero."""
    if raw is None:
        return 0
    try:
        text = raw.decode("ascii")
    except UnicodeDecodeError as e:
        raise DecodeError(f"balance of {address!r} is not an integer") from e
    if not _STORED_INT.fullmatch(text):
        raise DecodeError(f"balance of {address!r} is not an integer: {text!r}")
    return int(text)


class TokenLedger:
    """
    Issuance, supply and balance queries, and transfers.

    The ledger keeps no state of its own: every call works against the
    state store handed in for the current invocation.
    """

    def __init__(self, store: IStateStore, events: IEventSink) -> None:
        self.store = store
        self.events = events

    # ==================== Issuance ====================

    def initialize(self, token_name: str, symbol: str, owner: str, amount: int) -> TokenMetadata:
        """
        Create the token and credit the whole supply to ``owner``.

        Args:
            token_name: Token name, also the metadata key
            symbol: Ticker symbol
            owner: Address receiving the initial supply
            amount: Initial (and total) supply

        Returns:
            The stored metadata

        Raises:
            ValidationError: If a field is empty or the amount is out of range
            StoreError: If a write fails
        """
        if not token_name or not symbol or not owner:
            raise ValidationError("tokenName or symbol or owner cannot be empty")
        composite_key.validate_simple_key(token_name)
        composite_key.validate_simple_key(owner)
        self._validate_amount(amount, allow_zero=True)

        metadata = TokenMetadata(name=token_name, symbol=symbol, owner=owner, total_supply=amount)
        self.store.put(token_name, metadata.to_bytes())
        self.store.put(owner, encode_balance(amount))

        logger.info(
            "Token initialized",
            extra={
                "event": "token.initialized",
                "token": token_name,
                "symbol": symbol,
                "owner": truncate_address(owner),
                "total_supply": amount,
            },
        )
        return metadata

    # ==================== View Functions ====================

    def metadata(self, token_name: str) -> TokenMetadata:
        """
        Load token metadata.

        Raises:
            NotFoundError: If the token was never initialized
            DecodeError: If the stored record is malformed
        """
        composite_key.validate_simple_key(token_name)
        raw = self.store.get(token_name)
        if raw is None:
            raise NotFoundError(f"token {token_name!r} does not exist", details={"token": token_name})
        return TokenMetadata.from_bytes(raw)

    def total_supply(self, token_name: str) -> int:
        supply = self.metadata(token_name).total_supply
        logger.debug(
            "Total supply queried",
            extra={"event": "token.total_supply", "token": token_name, "total_supply": supply},
        )
        return supply

    def balance_of(self, address: str) -> int:
        """Balance of ``address``; an address never written holds zero."""
        composite_key.validate_simple_key(address)
        return decode_balance(self.store.get(address), address)

    # ==================== State-Changing Functions ====================

    def transfer(self, caller: str, recipient: str, amount: int) -> TransferEvent:
        """
        Move ``amount`` tokens from ``caller`` to ``recipient``.

        Both balances are read and the new values checked before anything is
        written. The transfer event is emitted after the writes; if that
        fails an ``EventError`` is raised but the balances stay updated.

        Returns:
            The emitted transfer event

        Raises:
            ValidationError: If an address is empty or a composite key, or the
                amount is not positive
            InsufficientFundsError: If the caller's balance is below ``amount``
            DecodeError: If a stored balance is malformed
            EventError: If the event could not be emitted after the writes
        """
        if not caller or not recipient:
            raise ValidationError("caller and recipient addresses cannot be empty")
        composite_key.validate_simple_key(caller)
        composite_key.validate_simple_key(recipient)
        self._validate_amount(amount, allow_zero=False)

        caller_balance = self.balance_of(caller)
        recipient_balance = caller_balance if recipient == caller else self.balance_of(recipient)

        caller_result = caller_balance - amount
        if caller_result < 0:
            raise InsufficientFundsError(
                f"caller's balance is not sufficient ({caller_balance} < {amount})",
                balance=caller_balance,
                requested=amount,
            )

        if recipient == caller:
            # Self-transfer: both sides are the same record.
            writes = [(caller, caller_balance)]
        else:
            recipient_result = recipient_balance + amount
            if recipient_result > UINT64_MAX:
                raise ValidationError(
                    f"recipient balance would exceed {UINT64_MAX}",
                    details={"recipient": recipient},
                )
            writes = [(caller, caller_result), (recipient, recipient_result)]

        for address, balance in writes:
            self.store.put(address, encode_balance(balance))

        event = TransferEvent(sender=caller, recipient=recipient, amount=amount)
        self._emit(event)

        logger.info(
            "Token transfer",
            extra={
                "event": "token.transfer",
                "from": truncate_address(caller),
                "to": truncate_address(recipient),
                "amount": amount,
            },
        )
        return event

    # ==================== Helpers ====================

    def _emit(self, event: TransferEvent) -> None:
        try:
            self.events.emit(TRANSFER_EVENT_NAME, event.to_payload())
        except EventError:
            logger.error(
                "Transfer committed but event emission failed",
                extra={"event": "token.event_failed", "from": truncate_address(event.sender)},
            )
            raise
        except Exception as e:
            raise EventError(f"failed to emit {TRANSFER_EVENT_NAME}: {e}") from e

    @staticmethod
    def _validate_amount(amount: int, allow_zero: bool) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise ValidationError(f"amount must be an integer, got {type(amount).__name__}")
        if amount < 0 or (amount == 0 and not allow_zero):
            raise ValidationError(
                "amount cannot be negative" if allow_zero else "transfer amount must be positive",
                details={"amount": amount},
            )
        if amount > UINT64_MAX:
            raise ValidationError(f"amount exceeds {UINT64_MAX}", details={"amount": amount})
