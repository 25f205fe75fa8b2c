"""
Command-line interface for the token chaincode.
"""

from .main import cli, main

__all__ = ["cli", "main"]
