"""Readiness probing of Pathfinder pods through the API server proxy."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

logger = logging.getLogger(__name__)

MANAGEMENT_PORT_NAME = "monitoring"
READY_PATH = "ready"
SYNCED_PATH = "ready/synced"


@dataclass
class ProbeResult:
    """Outcome of one proxied probe against a node pod."""

    endpoint: str
    ready: bool
    message: str
    error: Optional[Exception] = None
    last_check: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def get_named_port(pod: Any, name: str) -> Optional[int]:
    """Find a named container port on the first container of a pod."""
    containers = (pod.spec.containers or []) if pod.spec else []
    if not containers:
        return None
    for port in containers[0].ports or []:
        if port.name == name:
            return port.container_port
    return None


class ReadinessProber:
    """
    Probes the Pathfinder management endpoints of a node pod.

    Calls go through the pod proxy subresource, so the operator needs no
    direct network route to the pod. Any failure is reported as "not ready";
    the prober never raises.
    """

    def __init__(self, k8s_client: Any, timeout: float = 5.0):
        """
        Initialize prober.

        Args:
            k8s_client: Kubernetes client exposing ``proxy_get``
            timeout: Timeout of a single probe call in seconds
        """
        self.k8s = k8s_client
        self.timeout = timeout

    def _probe(self, pod: Any, path: str) -> ProbeResult:
        pod_name = pod.metadata.name
        port = get_named_port(pod, MANAGEMENT_PORT_NAME)
        if port is None:
            return ProbeResult(
                endpoint=path,
                ready=False,
                message=f"Pod {pod_name} declares no {MANAGEMENT_PORT_NAME!r} port",
                error=ValueError(f"missing port {MANAGEMENT_PORT_NAME}"),
            )

        try:
            self.k8s.proxy_get(pod_name, port, path, self.timeout)
        except (ApiException, HTTPError) as e:
            logger.debug(f"Probe /{path} on pod {pod_name} failed: {e}")
            return ProbeResult(
                endpoint=path,
                ready=False,
                message=f"Probe /{path} failed: {e}",
                error=e,
            )

        return ProbeResult(endpoint=path, ready=True, message=f"/{path} answered")

    def is_ready(self, pod: Any) -> ProbeResult:
        """Check that the node answers requests."""
        return self._probe(pod, READY_PATH)

    def is_synced(self, pod: Any) -> ProbeResult:
        """Check that the node has caught up with the chain head."""
        return self._probe(pod, SYNCED_PATH)
