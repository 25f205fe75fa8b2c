"""
Tests for chaincode prometheus metrics.
"""

from tokenledger.core.metrics import ChaincodeMetrics, get_chaincode_metrics


def _value(registry, name, labels=None):
    return registry.get_sample_value(name, labels or {})


def test_record_invocation(metrics, registry):
    metrics.record_invocation("transfer", 200, 0.002)
    metrics.record_invocation("transfer", 200, 0.004)
    metrics.record_invocation("transfer", 500, 0.001)

    assert _value(registry, "tokenledger_invocations_total", {"function": "transfer", "status": "200"}) == 2
    assert _value(registry, "tokenledger_invocations_total", {"function": "transfer", "status": "500"}) == 1
    assert _value(registry, "tokenledger_invocation_latency_seconds_count", {"function": "transfer"}) == 3


def test_record_transfer_volume(metrics, registry):
    metrics.record_transfer(300)
    metrics.record_transfer(5)
    assert _value(registry, "tokenledger_transfer_volume_total") == 305


def test_record_event(metrics, registry):
    metrics.record_event("transferEvent")
    assert _value(registry, "tokenledger_events_published_total", {"event": "transferEvent"}) == 1


def test_separate_registries_do_not_share_state(registry):
    from prometheus_client import CollectorRegistry

    other = CollectorRegistry()
    ChaincodeMetrics(registry=registry).record_transfer(1)
    ChaincodeMetrics(registry=other)
    assert _value(other, "tokenledger_transfer_volume_total") == 0


def test_global_metrics_is_singleton():
    assert get_chaincode_metrics() is get_chaincode_metrics()
