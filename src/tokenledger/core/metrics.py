"""
Prometheus metrics for chaincode invocations.
"""

from __future__ import annotations

from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram


class ChaincodeMetrics:
    """Metrics for chaincode invocations, transfers and events."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or REGISTRY

        self.invocations_total = Counter(
            'tokenledger_invocations_total',
            'Total chaincode invocations by function and response status',
            ['function', 'status'],
            registry=self.registry
        )

        self.invocation_latency = Histogram(
            'tokenledger_invocation_latency_seconds',
            'Chaincode invocation latency including commit',
            ['function'],
            buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
            registry=self.registry
        )

        self.transfer_volume = Counter(
            'tokenledger_transfer_volume_total',
            'Total token units moved by committed transfers',
            registry=self.registry
        )

        self.events_published = Counter(
            'tokenledger_events_published_total',
            'Chaincode events published after commit',
            ['event'],
            registry=self.registry
        )

    def record_invocation(self, function: str, status: int, duration: float) -> None:
        self.invocations_total.labels(function=function, status=str(status)).inc()
        self.invocation_latency.labels(function=function).observe(duration)

    def record_transfer(self, amount: int) -> None:
        self.transfer_volume.inc(amount)

    def record_event(self, event_name: str) -> None:
        self.events_published.labels(event=event_name).inc()


_global_metrics: Optional[ChaincodeMetrics] = None


def get_chaincode_metrics() -> ChaincodeMetrics:
    """Process-wide metrics bound to the default registry."""
    global _global_metrics
    if _global_metrics is None:
        _global_metrics = ChaincodeMetrics()
    return _global_metrics
