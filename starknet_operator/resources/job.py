"""Archive restore job of a StarknetRPC."""

from kubernetes import client

from starknet_operator.models.starknetrpc import StarknetRPC
from starknet_operator.resources.metadata import (
    owned_metadata,
    restore_job_name,
    restore_pvc_name,
    storage_pvc_name,
)
from starknet_operator.utils.k8s_client import KIND_JOB

RESTORE_CONTAINER_NAME = "archive-downloader"
SCRATCH_VOLUME = "snapshot-scratch"
DATA_VOLUME = "data"


def restore_image(rpc: StarknetRPC, default_image: str) -> str:
    return rpc.spec.restore_archive.restore_image or default_image


def restore_env(rpc: StarknetRPC) -> list[client.V1EnvVar]:
    """Environment of the snapshot restore container."""
    archive = rpc.spec.restore_archive
    env = [
        client.V1EnvVar(name="PATHFINDER_NETWORK", value=rpc.spec.network),
        client.V1EnvVar(name="PATHFINDER_FILE_NAME", value=archive.file_name),
        client.V1EnvVar(name="PATHFINDER_CHECKSUM", value=archive.checksum),
    ]
    if archive.rsync_config is not None:
        env.append(client.V1EnvVar(name="PATHFINDER_DOWNLOAD_URL", value=archive.rsync_config))
    return env


def wanted_restore_job(rpc: StarknetRPC, default_image: str) -> client.V1Job:
    """
    One-shot job downloading the archive snapshot into the data volume.

    The job never retries on its own: a single failed pod marks the restore
    as failed, since re-running a partially applied restore is unsafe.
    """
    container = client.V1Container(
        name=RESTORE_CONTAINER_NAME,
        image=restore_image(rpc, default_image),
        env=restore_env(rpc),
        volume_mounts=[
            client.V1VolumeMount(name=SCRATCH_VOLUME, mount_path="/scratch"),
            client.V1VolumeMount(name=DATA_VOLUME, mount_path="/data"),
        ],
    )
    return client.V1Job(
        api_version="batch/v1",
        kind=KIND_JOB,
        metadata=owned_metadata(rpc, restore_job_name(rpc)),
        spec=client.V1JobSpec(
            backoff_limit=0,
            template=client.V1PodTemplateSpec(
                spec=client.V1PodSpec(
                    restart_policy="Never",
                    containers=[container],
                    volumes=[
                        client.V1Volume(
                            name=DATA_VOLUME,
                            persistent_volume_claim=client.V1PersistentVolumeClaimVolumeSource(
                                claim_name=storage_pvc_name(rpc)
                            ),
                        ),
                        client.V1Volume(
                            name=SCRATCH_VOLUME,
                            persistent_volume_claim=client.V1PersistentVolumeClaimVolumeSource(
                                claim_name=restore_pvc_name(rpc)
                            ),
                        ),
                    ],
                ),
            ),
        ),
    )


def job_succeeded(job: client.V1Job) -> bool:
    return bool(job.status and (job.status.succeeded or 0) > 0)


def job_failed(job: client.V1Job) -> bool:
    return bool(job.status and (job.status.failed or 0) > 0)
