"""Naming and ownership of the sub-resources of a StarknetRPC."""

from typing import Optional

from kubernetes import client

from starknet_operator.models.starknetrpc import StarknetRPC

STORAGE_SUFFIX = "storage"
RESTORE_PVC_SUFFIX = "archive-restore"
RESTORE_JOB_SUFFIX = "archive-restore-job"
POD_SUFFIX = "rpc"


def storage_pvc_name(rpc: StarknetRPC) -> str:
    return f"{rpc.name}-{STORAGE_SUFFIX}"


def restore_pvc_name(rpc: StarknetRPC) -> str:
    return f"{rpc.name}-{RESTORE_PVC_SUFFIX}"


def restore_job_name(rpc: StarknetRPC) -> str:
    return f"{rpc.name}-{RESTORE_JOB_SUFFIX}"


def pod_name(rpc: StarknetRPC) -> str:
    return f"{rpc.name}-{POD_SUFFIX}"


def owner_reference(rpc: StarknetRPC) -> client.V1OwnerReference:
    """Controller reference so that deleting the StarknetRPC cascades."""
    return client.V1OwnerReference(
        api_version=rpc.api_version,
        kind=rpc.kind,
        name=rpc.name,
        uid=rpc.metadata.uid,
        controller=True,
        block_owner_deletion=True,
    )


def owned_metadata(
    rpc: StarknetRPC, name: str, labels: Optional[dict[str, str]] = None
) -> client.V1ObjectMeta:
    """Object metadata for a sub-resource owned by the StarknetRPC."""
    return client.V1ObjectMeta(
        name=name,
        namespace=rpc.namespace,
        labels=labels or {},
        annotations={},
        owner_references=[owner_reference(rpc)],
    )
