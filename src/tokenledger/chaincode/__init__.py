"""
Chaincode surface: argument parsing, dispatch, responses and the host runtime.
"""

from .dispatch import TokenChaincode
from .response import ChaincodeResponse
from .runtime import ChaincodeRuntime

__all__ = ["TokenChaincode", "ChaincodeResponse", "ChaincodeRuntime"]
