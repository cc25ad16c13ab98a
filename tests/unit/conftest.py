"""Shared fixtures: an in-memory cluster standing in for the Kubernetes API."""

import copy
import json
from datetime import datetime, timezone
from typing import Any, Optional

import pytest
from kubernetes import client
from kubernetes.client.exceptions import ApiException
from prometheus_client.core import CollectorRegistry

from starknet_operator.config import OperatorSettings
from starknet_operator.models.starknetrpc import API_VERSION, KIND, StarknetRPC
from starknet_operator.reconciler.context import ReconcileContext
from starknet_operator.utils.metrics import OperatorMetrics

NAME = "mainnet"
NAMESPACE = "starknet"


def api_error(status: int, reason: Optional[str] = None) -> ApiException:
    """Build an ApiException shaped like the ones the API server returns."""
    exc = ApiException(status=status, reason=reason or "Error")
    exc.body = json.dumps({"kind": "Status", "reason": reason, "code": status})
    return exc


class FakeK8sClient:
    """
    In-memory implementation of the K8sClient surface used by the reconcilers.

    Objects are stored as deep copies so callers can only change cluster state
    through the client. Every write that changes state is appended to
    ``mutations`` as ``(verb, kind, name)``.
    """

    api_error = staticmethod(api_error)

    def __init__(self, namespace: str = NAMESPACE):
        self.namespace = namespace
        self.objects: dict[tuple[str, str], Any] = {}
        self.rpcs: dict[str, dict[str, Any]] = {}
        self.mutations: list[tuple[str, str, str]] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self.proxy_responses: dict[str, Any] = {}
        self.proxy_calls: list[tuple[str, int, str, float]] = []
        self._version = 100

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    def _maybe_fail(self, verb: str, kind: str) -> None:
        exc = self.failures.get((verb, kind))
        if exc is not None:
            raise exc

    # Generic objects

    def create(self, obj: Any) -> Any:
        self._maybe_fail("create", obj.kind)
        key = (obj.kind, obj.metadata.name)
        if key in self.objects:
            raise api_error(409, "AlreadyExists")
        stored = copy.deepcopy(obj)
        stored.metadata.resource_version = self._next_version()
        self.objects[key] = stored
        self.mutations.append(("create", obj.kind, obj.metadata.name))
        return copy.deepcopy(stored)

    def get(self, kind: str, name: str) -> Any:
        self._maybe_fail("get", kind)
        try:
            return copy.deepcopy(self.objects[(kind, name)])
        except KeyError:
            raise api_error(404, "NotFound") from None

    def replace(self, obj: Any) -> Any:
        self._maybe_fail("replace", obj.kind)
        key = (obj.kind, obj.metadata.name)
        if key not in self.objects:
            raise api_error(404, "NotFound")
        if obj.metadata.resource_version != self.objects[key].metadata.resource_version:
            raise api_error(409, "Conflict")
        stored = copy.deepcopy(obj)
        stored.metadata.resource_version = self._next_version()
        self.objects[key] = stored
        self.mutations.append(("replace", obj.kind, obj.metadata.name))
        return copy.deepcopy(stored)

    def delete(self, kind: str, name: str, propagation_policy: Optional[str] = None) -> Any:
        self._maybe_fail("delete", kind)
        if self.objects.pop((kind, name), None) is None:
            return None
        self.mutations.append(("delete", kind, name))
        return {"kind": "Status", "status": "Success"}

    # StarknetRPC custom objects

    def add_rpc(self, body: dict[str, Any]) -> None:
        self.rpcs[body["metadata"]["name"]] = copy.deepcopy(body)

    def get_starknet_rpc(self, name: str) -> dict[str, Any]:
        self._maybe_fail("get", KIND)
        try:
            return copy.deepcopy(self.rpcs[name])
        except KeyError:
            raise api_error(404, "NotFound") from None

    def replace_starknet_rpc_status(self, name: str, body: dict[str, Any]) -> dict[str, Any]:
        self._maybe_fail("replace_status", KIND)
        stored = self.rpcs.get(name)
        if stored is None:
            raise api_error(404, "NotFound")
        sent_version = body["metadata"].get("resourceVersion")
        if sent_version is not None and sent_version != stored["metadata"].get("resourceVersion"):
            raise api_error(409, "Conflict")
        stored["status"] = copy.deepcopy(body["status"])
        stored["metadata"]["resourceVersion"] = self._next_version()
        self.mutations.append(("replace_status", KIND, name))
        return copy.deepcopy(stored)

    def proxy_get(self, pod_name: str, port: int, path: str, timeout: float) -> str:
        self.proxy_calls.append((pod_name, port, path, timeout))
        response = self.proxy_responses.get(path, api_error(503, "ServiceUnavailable"))
        if isinstance(response, Exception):
            raise response
        return response

    # Test helpers

    def conditions(self, name: str = NAME) -> dict[str, dict[str, Any]]:
        """Conditions of a StarknetRPC keyed by type."""
        status = self.rpcs[name].get("status") or {}
        return {c["type"]: c for c in status.get("conditions", [])}

    def has(self, kind: str, name: str) -> bool:
        return (kind, name) in self.objects

    def set_pvc_phase(self, name: str, phase: str = "Bound") -> None:
        self.objects[("PersistentVolumeClaim", name)].status = client.V1PersistentVolumeClaimStatus(
            phase=phase
        )

    def set_job_status(self, name: str, succeeded: int = 0, failed: int = 0) -> None:
        self.objects[("Job", name)].status = client.V1JobStatus(
            succeeded=succeeded or None, failed=failed or None
        )

    def set_pod_status(self, name: str, status: client.V1PodStatus) -> None:
        self.objects[("Pod", name)].status = status

    def mark_terminating(self, name: str) -> None:
        self.objects[("Pod", name)].metadata.deletion_timestamp = datetime.now(timezone.utc)

    def node_answers(self, ready: bool = True, synced: bool = False) -> None:
        """Make the pod proxy answer the node health endpoints."""
        self.proxy_responses.clear()
        if ready:
            self.proxy_responses["ready"] = ""
        if synced:
            self.proxy_responses["ready/synced"] = ""


def make_rpc_body(
    name: str = NAME,
    namespace: str = NAMESPACE,
    restore_enabled: bool = True,
    **spec_overrides: Any,
) -> dict[str, Any]:
    """Raw StarknetRPC object as returned by the custom objects API."""
    spec: dict[str, Any] = {
        "network": "mainnet",
        "restoreArchive": {
            "enable": restore_enabled,
            "fileName": "mainnet_v0.14.0_751397.sqlite.zst",
            "checksum": "d3a1c6f2",
            "storage": {"size": "400Gi"},
        },
        "storage": {"size": "600Gi", "storageClass": "premium-rwo"},
        "layer1RpcSecret": {"name": "l1-rpc", "key": "url"},
        "resources": {"requests": {"cpu": "2", "memory": "8Gi"}},
    }
    spec.update(spec_overrides)
    return {
        "apiVersion": API_VERSION,
        "kind": KIND,
        "metadata": {
            "name": name,
            "namespace": namespace,
            "uid": "0d9b3c52-7f1e-4c55-9d0e-5a3a1b2c3d4e",
            "resourceVersion": "1",
            "generation": 1,
        },
        "spec": spec,
    }


@pytest.fixture
def rpc_body_factory() -> Any:
    return make_rpc_body


@pytest.fixture
def rpc_body() -> dict[str, Any]:
    return make_rpc_body()


@pytest.fixture
def fake_k8s(rpc_body: dict[str, Any]) -> FakeK8sClient:
    k8s = FakeK8sClient()
    k8s.add_rpc(rpc_body)
    return k8s


@pytest.fixture
def rpc(fake_k8s: FakeK8sClient) -> StarknetRPC:
    return StarknetRPC.from_body(fake_k8s.get_starknet_rpc(NAME))


@pytest.fixture
def settings() -> OperatorSettings:
    return OperatorSettings()


@pytest.fixture
def events() -> list[tuple[str, str, str]]:
    return []


@pytest.fixture
def metrics() -> OperatorMetrics:
    return OperatorMetrics(registry=CollectorRegistry())


@pytest.fixture
def ctx(
    fake_k8s: FakeK8sClient,
    settings: OperatorSettings,
    events: list[tuple[str, str, str]],
    metrics: OperatorMetrics,
) -> ReconcileContext:
    return ReconcileContext(
        k8s=fake_k8s,
        settings=settings,
        recorder=lambda event_type, reason, message: events.append((event_type, reason, message)),
        metrics=metrics,
    )
