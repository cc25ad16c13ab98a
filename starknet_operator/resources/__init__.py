"""Builders for the sub-resources owned by a StarknetRPC."""

from starknet_operator.resources.job import wanted_restore_job
from starknet_operator.resources.pod import wanted_pod
from starknet_operator.resources.pvc import wanted_restore_pvc, wanted_storage_pvc

__all__ = [
    "wanted_pod",
    "wanted_restore_job",
    "wanted_restore_pvc",
    "wanted_storage_pvc",
]
