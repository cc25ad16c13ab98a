"""Persistent volume claims of a StarknetRPC."""

from kubernetes import client

from starknet_operator.models.starknetrpc import StarknetRPC, StorageTemplate
from starknet_operator.resources.metadata import (
    owned_metadata,
    restore_pvc_name,
    storage_pvc_name,
)
from starknet_operator.utils.k8s_client import KIND_PVC

CLAIM_BOUND = "Bound"


def _pvc(rpc: StarknetRPC, name: str, storage: StorageTemplate) -> client.V1PersistentVolumeClaim:
    return client.V1PersistentVolumeClaim(
        api_version="v1",
        kind=KIND_PVC,
        metadata=owned_metadata(rpc, name),
        spec=client.V1PersistentVolumeClaimSpec(
            access_modes=["ReadWriteOnce"],
            resources=client.V1VolumeResourceRequirements(
                requests={"storage": storage.size}
            ),
            storage_class_name=storage.storage_class,
        ),
    )


def wanted_storage_pvc(rpc: StarknetRPC) -> client.V1PersistentVolumeClaim:
    """Main data volume of the node."""
    return _pvc(rpc, storage_pvc_name(rpc), rpc.spec.storage)


def wanted_restore_pvc(rpc: StarknetRPC) -> client.V1PersistentVolumeClaim:
    """Scratch volume the snapshot is downloaded to before extraction."""
    return _pvc(rpc, restore_pvc_name(rpc), rpc.spec.restore_archive.storage)


def is_bound(pvc: client.V1PersistentVolumeClaim) -> bool:
    return pvc.status is not None and pvc.status.phase == CLAIM_BOUND
