"""
Typed requests parsed from the positional string arguments of an invocation.

All argument-count and number-format checks happen here, so the contract
operations only ever see typed values.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Dict, Sequence, Tuple, Union

from tokenledger.contracts.token_ledger import UINT64_MAX
from tokenledger.core import composite_key
from tokenledger.core.ledger_exceptions import UnsupportedOperationError, ValidationError

_UNSIGNED = re.compile(r"[0-9]+")
_SIGNED = re.compile(r"[+-]?[0-9]+")

PLACEHOLDER_FUNCTIONS = (
    "transferFrom",
    "increaseAllowance",
    "decreaseAllowance",
    "mint",
    "burn",
)


@dataclass(frozen=True)
class InitializeRequest:
    token_name: str
    symbol: str
    owner: str
    amount: int


@dataclass(frozen=True)
class TotalSupplyRequest:
    token_name: str


@dataclass(frozen=True)
class BalanceOfRequest:
    address: str


@dataclass(frozen=True)
class TransferRequest:
    caller: str
    recipient: str
    amount: int


@dataclass(frozen=True)
class SetAllowanceRequest:
    granter_id: str
    grantee_name: str
    amount: str


@dataclass(frozen=True)
class ListAllowancesRequest:
    granter_id: str


@dataclass(frozen=True)
class PlaceholderRequest:
    """An operation exposed on the surface that has no effect."""

    function: str
    args: Tuple[str, ...]


Request = Union[
    InitializeRequest,
    TotalSupplyRequest,
    BalanceOfRequest,
    TransferRequest,
    SetAllowanceRequest,
    ListAllowancesRequest,
    PlaceholderRequest,
]


def _require_arity(args: Sequence[str], expected: int) -> None:
    if len(args) != expected:
        raise ValidationError(
            "incorrect number of parameters",
            details={"expected": expected, "received": len(args)},
        )


def _require_text(value: str, field: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{field} cannot be empty", details={"field": field})
    return value


def _require_key(value: str, field: str) -> str:
    """A non-empty value that names a plain world-state key."""
    _require_text(value, field)
    if composite_key.is_composite_key(value):
        raise ValidationError(
            f"{field} cannot start with U+0000, which is reserved for composite keys",
            details={"field": field},
        )
    return value


def parse_unsigned_amount(value: str) -> int:
    """Parse an unsigned decimal integer no larger than 2**64 - 1."""
    if not isinstance(value, str) or not _UNSIGNED.fullmatch(value):
        raise ValidationError(
            "amount must be a number or amount cannot be negative",
            details={"field": "amount", "value": value},
        )
    amount = int(value)
    if amount > UINT64_MAX:
        raise ValidationError("amount is out of range", details={"field": "amount", "value": value})
    return amount


def parse_transfer_amount(value: str) -> int:
    """Parse a strictly positive (optionally signed) decimal integer."""
    if not isinstance(value, str) or not _SIGNED.fullmatch(value):
        raise ValidationError(
            "transfer amount must be integer",
            details={"field": "amount", "value": value},
        )
    amount = int(value)
    if amount <= 0:
        raise ValidationError("transfer amount must be positive", details={"field": "amount", "value": value})
    if amount > UINT64_MAX:
        raise ValidationError("transfer amount is out of range", details={"field": "amount", "value": value})
    return amount


def parse_initialize(args: Sequence[str]) -> InitializeRequest:
    _require_arity(args, 4)
    token_name, symbol, owner, amount = args
    parsed_amount = parse_unsigned_amount(amount)
    if not token_name or not symbol or not owner:
        raise ValidationError("tokenName or symbol or owner cannot be empty")
    _require_key(token_name, "tokenName")
    _require_key(owner, "owner")
    return InitializeRequest(token_name=token_name, symbol=symbol, owner=owner, amount=parsed_amount)


def _parse_total_supply(args: Sequence[str]) -> TotalSupplyRequest:
    _require_arity(args, 1)
    return TotalSupplyRequest(token_name=_require_key(args[0], "tokenName"))


def _parse_balance_of(args: Sequence[str]) -> BalanceOfRequest:
    _require_arity(args, 1)
    return BalanceOfRequest(address=_require_key(args[0], "address"))


def _parse_transfer(args: Sequence[str]) -> TransferRequest:
    _require_arity(args, 3)
    caller, recipient, amount = args
    return TransferRequest(
        caller=_require_key(caller, "caller"),
        recipient=_require_key(recipient, "recipient"),
        amount=parse_transfer_amount(amount),
    )


def _parse_set_allowance(args: Sequence[str]) -> SetAllowanceRequest:
    _require_arity(args, 3)
    granter_id, grantee_name, amount = args
    return SetAllowanceRequest(
        granter_id=_require_text(granter_id, "id"),
        grantee_name=_require_text(grantee_name, "name"),
        amount=amount,
    )


def _parse_list_allowances(args: Sequence[str]) -> ListAllowancesRequest:
    _require_arity(args, 1)
    return ListAllowancesRequest(granter_id=_require_text(args[0], "id"))


_PARSERS: Dict[str, Callable[[Sequence[str]], Request]] = {
    "totalSupply": _parse_total_supply,
    "balanceOf": _parse_balance_of,
    "transfer": _parse_transfer,
    "allowance": _parse_set_allowance,
    "approve": _parse_list_allowances,
}


def supported_functions() -> Tuple[str, ...]:
    return tuple(_PARSERS) + PLACEHOLDER_FUNCTIONS


def parse_request(function: str, args: Sequence[str]) -> Request:
    """
    Turn an invocation into a typed request.

    Raises:
        UnsupportedOperationError: If ``function`` is not on the operation surface
        ValidationError: If the arguments do not fit the operation
    """
    if function in PLACEHOLDER_FUNCTIONS:
        return PlaceholderRequest(function=function, args=tuple(args))
    parser = _PARSERS.get(function)
    if parser is None:
        raise UnsupportedOperationError(
            f"function {function!r} is not supported",
            details={"function": function},
        )
    return parser(list(args))
