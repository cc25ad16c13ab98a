"""Prometheus metrics for the Starknet operator."""

import logging
from typing import Any, Optional

from prometheus_client import Counter, Gauge, Histogram, Info, generate_latest, start_http_server
from prometheus_client.core import CollectorRegistry

logger = logging.getLogger(__name__)


class OperatorMetrics:
    """
    Prometheus metrics collector for the Starknet operator.

    Tracks reconciliation outcomes and performance, node pod recreations,
    and the current reason of every StarknetRPC condition.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """Initialize metrics with optional custom registry."""
        self.registry = registry or CollectorRegistry()

        # Reconciliation metrics
        self.reconciliation_total = Counter(
            'starknet_rpc_reconciliation_total',
            'Total number of reconciliations by outcome',
            ['name', 'namespace', 'outcome'],
            registry=self.registry
        )

        self.reconciliation_errors = Counter(
            'starknet_rpc_reconciliation_errors_total',
            'Total reconciliation errors',
            ['name', 'namespace', 'error_type'],
            registry=self.registry
        )

        self.reconciliation_duration = Histogram(
            'starknet_rpc_reconciliation_duration_seconds',
            'Reconciliation duration in seconds',
            ['name', 'namespace'],
            registry=self.registry
        )

        # Node pod health
        self.pod_recreations = Counter(
            'starknet_rpc_pod_recreations_total',
            'Node pods deleted because they were evicted or crash looping',
            ['name', 'namespace'],
            registry=self.registry
        )

        self.node_info = Info(
            'starknet_rpc_node',
            'Image and network of the node pod',
            ['name', 'namespace'],
            registry=self.registry
        )

        # Condition state (1 for the current reason of each type)
        self.condition = Gauge(
            'starknet_rpc_condition',
            'Current reason of each StarknetRPC condition',
            ['name', 'namespace', 'type', 'reason'],
            registry=self.registry
        )

    def record_reconciliation(
        self,
        name: str,
        namespace: str,
        outcome: str,
        duration: float
    ) -> None:
        """Record a reconciliation and its outcome."""
        self.reconciliation_total.labels(
            name=name,
            namespace=namespace,
            outcome=outcome
        ).inc()

        self.reconciliation_duration.labels(
            name=name,
            namespace=namespace
        ).observe(duration)

    def record_error(
        self,
        name: str,
        namespace: str,
        error_type: str
    ) -> None:
        """Record a reconciliation error."""
        self.reconciliation_errors.labels(
            name=name,
            namespace=namespace,
            error_type=error_type
        ).inc()

    def record_pod_recreation(self, name: str, namespace: str) -> None:
        """Record the deletion of an unhealthy node pod."""
        self.pod_recreations.labels(name=name, namespace=namespace).inc()

    def record_node_info(self, name: str, namespace: str, image: str, network: str) -> None:
        """Record the image and network the node pod runs."""
        self.node_info.labels(name=name, namespace=namespace).info(
            {"image": image, "network": network}
        )

    def update_conditions(
        self,
        name: str,
        namespace: str,
        conditions: list[dict[str, Any]]
    ) -> None:
        """Expose the current reason of each condition type."""
        for condition in conditions:
            type_ = condition.get("type", "")
            current = condition.get("reason", "")
            # Reset the previous reasons of this type
            for metric in self.condition.collect():
                for sample in metric.samples:
                    labels = sample.labels
                    if (
                        labels.get("name") == name
                        and labels.get("namespace") == namespace
                        and labels.get("type") == type_
                        and labels.get("reason") != current
                    ):
                        self.condition.labels(**labels).set(0)
            self.condition.labels(
                name=name,
                namespace=namespace,
                type=type_,
                reason=current
            ).set(1)

    def export_metrics(self) -> bytes:
        """Export metrics in Prometheus format."""
        return generate_latest(self.registry)

    def serve(self, port: int) -> None:
        """Expose the registry over HTTP."""
        logger.info(f"Serving metrics on port {port}")
        start_http_server(port, registry=self.registry)


# Global metrics instance
_metrics: Optional[OperatorMetrics] = None


def get_metrics() -> OperatorMetrics:
    """Get or create global metrics instance."""
    global _metrics
    if _metrics is None:
        _metrics = OperatorMetrics()
    return _metrics
