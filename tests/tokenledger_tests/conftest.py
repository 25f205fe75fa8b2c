import logging
import sys
from pathlib import Path

import pytest
from prometheus_client import CollectorRegistry

# Ensure the src directory is on the Python path before collection runs.
project_root = Path(__file__).resolve().parents[2]
src_path = project_root / "src"
sys.path.insert(0, str(src_path))

from tokenledger.chaincode import ChaincodeRuntime, TokenChaincode  # noqa: E402
from tokenledger.core.events import EventHub  # noqa: E402
from tokenledger.core.metrics import ChaincodeMetrics  # noqa: E402
from tokenledger.core.state_backends import MemoryStateBackend  # noqa: E402
from tokenledger.core.transaction_context import TransactionContext  # noqa: E402

INIT_ARGS = ["GoldCoin", "GLD", "alice", "1000"]


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers installed by setup_logging so they never outlive a test's streams."""
    yield
    package_logger = logging.getLogger("tokenledger")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def backend():
    """Empty in-memory world state"""
    return MemoryStateBackend()


@pytest.fixture
def ctx(backend):
    """Transaction context over the in-memory world state"""
    return TransactionContext(backend, tx_id="tx-test")


@pytest.fixture
def registry():
    """Isolated prometheus registry so metric names never clash between tests"""
    return CollectorRegistry()


@pytest.fixture
def metrics(registry):
    return ChaincodeMetrics(registry=registry)


@pytest.fixture
def event_hub():
    return EventHub()


@pytest.fixture
def runtime(backend, event_hub, metrics):
    """Runtime over an empty world state"""
    return ChaincodeRuntime(TokenChaincode(), backend, event_hub=event_hub, metrics=metrics)


@pytest.fixture
def funded_runtime(runtime):
    """Runtime with GoldCoin instantiated and 1000 units credited to alice"""
    response = runtime.instantiate(INIT_ARGS)
    assert response.ok, response.message
    return runtime
