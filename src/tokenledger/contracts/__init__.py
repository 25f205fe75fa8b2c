"""
Token contracts.

- TokenLedger: issuance, supply and balance queries, transfers
- AllowanceRegistry: per (granter, grantee) allowance bookkeeping
"""

from .allowance_registry import AllowanceEntry, AllowanceRegistry
from .token_ledger import TokenLedger, TokenMetadata

__all__ = [
    "TokenLedger",
    "TokenMetadata",
    "AllowanceRegistry",
    "AllowanceEntry",
]
