"""
tokenledger - Fungible Token Chaincode

A fixed-supply fungible token written against a key-value world state with
composite keys and per-transaction events.

Main Components:
- Contracts: token ledger (issuance, balances, transfers) and allowance registry
- Chaincode: argument parsing, operation dispatch and the host runtime
- Core: state store, composite keys, events, configuration, logging, metrics
- Database: SQLite world state
"""

__version__ = "0.1.0"
__author__ = "tokenledger developers"

__all__ = ["__version__"]
