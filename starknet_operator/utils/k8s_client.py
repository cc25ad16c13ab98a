"""Kubernetes API client wrapper."""

import json
import logging
from typing import Any, Callable, NamedTuple, Optional

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException

from starknet_operator.models.starknetrpc import GROUP, PLURAL, VERSION

logger = logging.getLogger(__name__)

KIND_PVC = "PersistentVolumeClaim"
KIND_JOB = "Job"
KIND_POD = "Pod"


def _status_reason(exc: ApiException) -> Optional[str]:
    """Extract the machine-readable reason from an API error body."""
    try:
        return json.loads(exc.body or "{}").get("reason")
    except (TypeError, ValueError):
        return None


def is_not_found(exc: BaseException) -> bool:
    """Check whether an error is a 404 from the API server."""
    return isinstance(exc, ApiException) and exc.status == 404


def is_already_exists(exc: BaseException) -> bool:
    """Check whether an error reports that the object already exists."""
    if not isinstance(exc, ApiException) or exc.status != 409:
        return False
    return _status_reason(exc) in (None, "AlreadyExists")


def is_conflict(exc: BaseException) -> bool:
    """Check whether an error is an optimistic-concurrency conflict."""
    return (
        isinstance(exc, ApiException)
        and exc.status == 409
        and _status_reason(exc) == "Conflict"
    )


class _KindMethods(NamedTuple):
    create: Callable[..., Any]
    read: Callable[..., Any]
    replace: Callable[..., Any]
    delete: Callable[..., Any]


class K8sClient:
    """
    Wrapper around Kubernetes Python client with helper methods.

    Provides the kind-keyed create/get/replace/delete operations used by the
    reconcilers, the StarknetRPC status subresource, and the pod proxy.
    All calls are scoped to a single namespace.
    """

    def __init__(self, namespace: str = "default"):
        """
        Initialize Kubernetes client.

        Args:
            namespace: Namespace for all operations
        """
        self.namespace = namespace
        self._core_v1: Optional[client.CoreV1Api] = None
        self._batch_v1: Optional[client.BatchV1Api] = None
        self._custom_objects: Optional[client.CustomObjectsApi] = None

        # Load kubeconfig
        try:
            config.load_incluster_config()
            logger.debug("Loaded in-cluster Kubernetes config")
        except config.ConfigException:
            config.load_kube_config()
            logger.debug("Loaded kubeconfig from file")

    @property
    def core_v1(self) -> client.CoreV1Api:
        """Get CoreV1Api client."""
        if self._core_v1 is None:
            self._core_v1 = client.CoreV1Api()
        return self._core_v1

    @property
    def batch_v1(self) -> client.BatchV1Api:
        """Get BatchV1Api client."""
        if self._batch_v1 is None:
            self._batch_v1 = client.BatchV1Api()
        return self._batch_v1

    @property
    def custom_objects(self) -> client.CustomObjectsApi:
        """Get CustomObjectsApi client."""
        if self._custom_objects is None:
            self._custom_objects = client.CustomObjectsApi()
        return self._custom_objects

    def _methods(self, kind: str) -> _KindMethods:
        if kind == KIND_PVC:
            return _KindMethods(
                self.core_v1.create_namespaced_persistent_volume_claim,
                self.core_v1.read_namespaced_persistent_volume_claim,
                self.core_v1.replace_namespaced_persistent_volume_claim,
                self.core_v1.delete_namespaced_persistent_volume_claim,
            )
        if kind == KIND_JOB:
            return _KindMethods(
                self.batch_v1.create_namespaced_job,
                self.batch_v1.read_namespaced_job,
                self.batch_v1.replace_namespaced_job,
                self.batch_v1.delete_namespaced_job,
            )
        if kind == KIND_POD:
            return _KindMethods(
                self.core_v1.create_namespaced_pod,
                self.core_v1.read_namespaced_pod,
                self.core_v1.replace_namespaced_pod,
                self.core_v1.delete_namespaced_pod,
            )
        raise ValueError(f"Unsupported kind: {kind}")

    def create(self, obj: Any) -> Any:
        """
        Create a namespaced object.

        Args:
            obj: Kubernetes model (V1PersistentVolumeClaim, V1Job, V1Pod)

        Returns:
            The created object as returned by the API server

        Raises:
            ApiException: If creation fails (409 if it already exists)
        """
        return self._methods(obj.kind).create(self.namespace, obj)

    def get(self, kind: str, name: str) -> Any:
        """
        Read a namespaced object.

        Raises:
            ApiException: If the read fails (404 if not found)
        """
        return self._methods(kind).read(name, self.namespace)

    def replace(self, obj: Any) -> Any:
        """
        Replace a namespaced object.

        The object must carry the resourceVersion it was read with.

        Raises:
            ApiException: If the update fails (409 on a conflicting write)
        """
        return self._methods(obj.kind).replace(obj.metadata.name, self.namespace, obj)

    def delete(
        self, kind: str, name: str, propagation_policy: Optional[str] = None
    ) -> Optional[Any]:
        """
        Delete a namespaced object.

        Args:
            kind: Object kind
            name: Object name
            propagation_policy: Optional propagation policy (e.g. "Background")

        Returns:
            Status object or None if not found
        """
        body = client.V1DeleteOptions(propagation_policy=propagation_policy)
        try:
            return self._methods(kind).delete(name, self.namespace, body=body)
        except ApiException as e:
            if e.status == 404:
                return None
            logger.error(f"Failed to delete {kind} {name}: {e}")
            raise

    def get_starknet_rpc(self, name: str) -> dict[str, Any]:
        """
        Read a StarknetRPC custom object.

        Raises:
            ApiException: If the read fails (404 if not found)
        """
        return self.custom_objects.get_namespaced_custom_object(
            GROUP, VERSION, self.namespace, PLURAL, name
        )

    def replace_starknet_rpc_status(self, name: str, body: dict[str, Any]) -> dict[str, Any]:
        """
        Replace the status subresource of a StarknetRPC.

        Raises:
            ApiException: If the update fails (409 if the resourceVersion is stale)
        """
        return self.custom_objects.replace_namespaced_custom_object_status(
            GROUP, VERSION, self.namespace, PLURAL, name, body
        )

    def proxy_get(self, pod_name: str, port: int, path: str, timeout: float) -> str:
        """
        GET a path on a pod port through the API server proxy.

        Args:
            pod_name: Pod name
            port: Container port
            path: Path without leading slash
            timeout: Request timeout in seconds

        Returns:
            Raw response body

        Raises:
            ApiException: On a non-2xx answer
            urllib3.exceptions.HTTPError: On transport failures and timeouts
        """
        return self.core_v1.connect_get_namespaced_pod_proxy_with_path(
            f"{pod_name}:{port}",
            self.namespace,
            path.lstrip("/"),
            _request_timeout=timeout,
        )
