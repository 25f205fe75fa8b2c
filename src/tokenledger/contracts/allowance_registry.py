"""
Allowance registry.

A bookkeeping ledger of amounts recorded per (granter, grantee) pair, keyed
by the composite key ``("insurance", [granter_id, grantee_name])``. Amounts
are opaque strings. The token ledger's transfer does not consult this
registry.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Dict, Iterator, List

from tokenledger.core.config import ALLOWANCE_NAMESPACE
from tokenledger.core.ledger_exceptions import DecodeError, ValidationError
from tokenledger.core.logging_config import truncate_address
from tokenledger.core.protocols import IStateStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllowanceEntry:
    name: str
    amount: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


class AllowanceRegistry:
    """Set and enumerate allowance entries for a granter."""

    def __init__(self, store: IStateStore, namespace: str = ALLOWANCE_NAMESPACE) -> None:
        self.store = store
        self.namespace = namespace

    def set_allowance(self, granter_id: str, grantee_name: str, amount: str) -> str:
        """
        Record ``amount`` for the pair, replacing any previous entry.

        Returns:
            The composite key written

        Raises:
            ValidationError: If an id is empty or contains a reserved delimiter
        """
        if not granter_id or not grantee_name:
            raise ValidationError("allowance id and name cannot be empty")
        if not isinstance(amount, str):
            raise ValidationError(f"allowance amount must be a string, got {type(amount).__name__}")

        key = self.store.make_composite_key(self.namespace, [granter_id, grantee_name])
        self.store.put(key, amount.encode("utf-8"))

        logger.info(
            "Allowance recorded",
            extra={
                "event": "allowance.set",
                "granter": truncate_address(granter_id),
                "grantee": truncate_address(grantee_name),
            },
        )
        return key

    def iter_allowances(self, granter_id: str) -> Iterator[AllowanceEntry]:
        """
        Lazily yield the granter's entries in ascending key order.

        Each call performs a new scan.
        """
        if not granter_id:
            raise ValidationError("allowance id cannot be empty")
        for key, value in self.store.scan_by_partial_composite_key(self.namespace, [granter_id]):
            namespace, parts = self.store.split_composite_key(key)
            if namespace != self.namespace or len(parts) != 2 or parts[0] != granter_id:
                raise DecodeError(f"unexpected allowance key {key!r}")
            try:
                amount = value.decode("utf-8")
            except UnicodeDecodeError as e:
                raise DecodeError(f"allowance amount under {key!r} is not UTF-8") from e
            yield AllowanceEntry(name=parts[1], amount=amount)

    def list_allowances(self, granter_id: str) -> List[AllowanceEntry]:
        entries = list(self.iter_allowances(granter_id))
        logger.debug(
            "Allowances listed",
            extra={"event": "allowance.list", "granter": truncate_address(granter_id), "count": len(entries)},
        )
        return entries
