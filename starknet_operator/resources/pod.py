"""Pathfinder node pod of a StarknetRPC."""

from typing import Any

from kubernetes import client

from starknet_operator.models.starknetrpc import StarknetRPC
from starknet_operator.resources.metadata import owned_metadata, pod_name, storage_pvc_name
from starknet_operator.utils.k8s_client import KIND_POD
from starknet_operator.utils.readiness import MANAGEMENT_PORT_NAME

NODE_CONTAINER_NAME = "rpc-pathfinder"
DATA_VOLUME = "pathfinder-data"
DATA_DIR = "/usr/share/pathfinder/data"
RPC_PORT = 9545
MONITOR_PORT = 9000
RUN_AS_USER = 1000

EVICTED_REASON = "Evicted"
CRASH_LOOP_REASON = "CrashLoopBackOff"


def node_image(rpc: StarknetRPC, default_image: str) -> str:
    return rpc.spec.image or default_image


def pod_labels(rpc: StarknetRPC) -> dict[str, str]:
    return {
        "rpc.runelabs.xyz/type": "starknet",
        "rpc.runelabs.xyz/name": rpc.name,
        "runelabs.xyz/network": rpc.spec.network,
    }


def _toleration(raw: dict[str, Any]) -> client.V1Toleration:
    return client.V1Toleration(
        key=raw.get("key"),
        operator=raw.get("operator"),
        value=raw.get("value"),
        effect=raw.get("effect"),
        toleration_seconds=raw.get("tolerationSeconds"),
    )


def node_env(rpc: StarknetRPC) -> list[client.V1EnvVar]:
    secret = rpc.spec.layer1_rpc_secret
    return [
        client.V1EnvVar(name="RUST_LOG", value="info"),
        client.V1EnvVar(name="PATHFINDER_DATA_DIR", value=DATA_DIR),
        client.V1EnvVar(name="PATHFINDER_MONITOR_ADDRESS", value=f"0.0.0.0:{MONITOR_PORT}"),
        client.V1EnvVar(
            name="PATHFINDER_ETHEREUM_API_URL",
            value_from=client.V1EnvVarSource(
                secret_key_ref=client.V1SecretKeySelector(
                    name=secret.name, key=secret.key, optional=secret.optional
                )
            ),
        ),
        client.V1EnvVar(name="PATHFINDER_WEBSOCKET_ENABLED", value="true"),
        client.V1EnvVar(name="PATHFINDER_HEAD_POLL_INTERVAL_SECONDS", value="2"),
    ]


def wanted_pod(rpc: StarknetRPC, default_image: str) -> client.V1Pod:
    """Long-running Pathfinder node mounting the data volume."""
    resources = rpc.spec.resources
    container = client.V1Container(
        name=NODE_CONTAINER_NAME,
        image=node_image(rpc, default_image),
        image_pull_policy="IfNotPresent",
        env=node_env(rpc),
        resources=client.V1ResourceRequirements(
            limits=dict(resources.limits) or None,
            requests=dict(resources.requests) or None,
        ),
        ports=[
            client.V1ContainerPort(name="rpc", container_port=RPC_PORT),
            client.V1ContainerPort(name=MANAGEMENT_PORT_NAME, container_port=MONITOR_PORT),
        ],
        volume_mounts=[client.V1VolumeMount(name=DATA_VOLUME, mount_path=DATA_DIR)],
    )
    return client.V1Pod(
        api_version="v1",
        kind=KIND_POD,
        metadata=owned_metadata(rpc, pod_name(rpc), labels=pod_labels(rpc)),
        spec=client.V1PodSpec(
            containers=[container],
            volumes=[
                client.V1Volume(
                    name=DATA_VOLUME,
                    persistent_volume_claim=client.V1PersistentVolumeClaimVolumeSource(
                        claim_name=storage_pvc_name(rpc)
                    ),
                )
            ],
            tolerations=[_toleration(t) for t in rpc.spec.tolerations] or None,
            # Pathfinder images expect to own the data directory as uid 1000
            security_context=client.V1PodSecurityContext(
                run_as_user=RUN_AS_USER,
                run_as_group=RUN_AS_USER,
                fs_group=RUN_AS_USER,
            ),
        ),
    )


def is_terminating(pod: client.V1Pod) -> bool:
    return pod.metadata is not None and pod.metadata.deletion_timestamp is not None


def should_recreate(pod: client.V1Pod, restart_threshold: int = 5) -> bool:
    """
    Check whether a node pod is stuck and must be deleted to be recreated.

    Bare pods are never rescheduled once evicted, and a container that keeps
    crashing past the threshold will not recover by itself.
    """
    status = pod.status
    if status is None:
        return False
    if status.reason == EVICTED_REASON:
        return True
    for container_status in status.container_statuses or []:
        waiting = container_status.state.waiting if container_status.state else None
        if (
            waiting is not None
            and waiting.reason == CRASH_LOOP_REASON
            and (container_status.restart_count or 0) > restart_threshold
        ):
            return True
    return False
