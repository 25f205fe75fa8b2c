"""
Persistent world state storage.
"""

from .storage_manager import SQLiteStateBackend

__all__ = ["SQLiteStateBackend"]
