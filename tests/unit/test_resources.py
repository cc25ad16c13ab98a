"""Tests for the sub-resource builders."""

from kubernetes import client

from starknet_operator.models.starknetrpc import StarknetRPC
from starknet_operator.resources.job import job_failed, job_succeeded, wanted_restore_job
from starknet_operator.resources.metadata import (
    pod_name,
    restore_job_name,
    restore_pvc_name,
    storage_pvc_name,
)
from starknet_operator.resources.pod import is_terminating, should_recreate, wanted_pod
from starknet_operator.resources.pvc import is_bound, wanted_restore_pvc, wanted_storage_pvc
from starknet_operator.utils.validators import MAX_OWNER_NAME_LENGTH

NODE_IMAGE = "eqlabs/pathfinder:v0.20.0"
RESTORE_IMAGE = "ghcr.io/runelabsxyz/pathfinder-snapshotter:latest"


def env_map(container: client.V1Container) -> dict:
    return {e.name: e for e in container.env}


class TestNames:
    """Tests for derived sub-resource names."""

    def test_names(self, rpc) -> None:
        """Test every sub-resource name is derived from the owner."""
        assert storage_pvc_name(rpc) == "mainnet-storage"
        assert restore_pvc_name(rpc) == "mainnet-archive-restore"
        assert restore_job_name(rpc) == "mainnet-archive-restore-job"
        assert pod_name(rpc) == "mainnet-rpc"

    def test_longest_name_fits_labels(self, rpc_body_factory) -> None:
        """Test the longest accepted owner name yields a valid job name and pod label."""
        rpc = StarknetRPC.from_body(rpc_body_factory(name="a" * MAX_OWNER_NAME_LENGTH))

        assert len(restore_job_name(rpc)) <= 63
        pod = wanted_pod(rpc, NODE_IMAGE)
        assert all(len(value) <= 63 for value in pod.metadata.labels.values())


class TestPVC:
    """Tests for persistent volume claims."""

    def test_storage_pvc(self, rpc) -> None:
        """Test the data claim uses the main storage template."""
        pvc = wanted_storage_pvc(rpc)
        assert pvc.kind == "PersistentVolumeClaim"
        assert pvc.metadata.namespace == "starknet"
        assert pvc.spec.access_modes == ["ReadWriteOnce"]
        assert pvc.spec.resources.requests == {"storage": "600Gi"}
        assert pvc.spec.storage_class_name == "premium-rwo"

    def test_restore_pvc(self, rpc) -> None:
        """Test the scratch claim uses the archive storage template."""
        pvc = wanted_restore_pvc(rpc)
        assert pvc.metadata.name == "mainnet-archive-restore"
        assert pvc.spec.resources.requests == {"storage": "400Gi"}
        assert pvc.spec.storage_class_name is None

    def test_owner_reference(self, rpc) -> None:
        """Test sub-resources are controlled by the StarknetRPC."""
        (owner,) = wanted_storage_pvc(rpc).metadata.owner_references
        assert owner.kind == "StarknetRPC"
        assert owner.api_version == "pathfinder.runelabs.xyz/v1alpha1"
        assert owner.name == "mainnet"
        assert owner.uid == rpc.metadata.uid
        assert owner.controller is True
        assert owner.block_owner_deletion is True

    def test_is_bound(self, rpc) -> None:
        """Test the bound check reads the claim phase."""
        pvc = wanted_storage_pvc(rpc)
        assert not is_bound(pvc)
        pvc.status = client.V1PersistentVolumeClaimStatus(phase="Pending")
        assert not is_bound(pvc)
        pvc.status = client.V1PersistentVolumeClaimStatus(phase="Bound")
        assert is_bound(pvc)


class TestRestoreJob:
    """Tests for the archive restore job."""

    def test_job(self, rpc) -> None:
        """Test the job runs once and mounts both claims."""
        job = wanted_restore_job(rpc, RESTORE_IMAGE)
        assert job.metadata.name == "mainnet-archive-restore-job"
        assert job.metadata.owner_references[0].name == "mainnet"
        assert job.spec.backoff_limit == 0

        pod_spec = job.spec.template.spec
        assert pod_spec.restart_policy == "Never"
        claims = {v.name: v.persistent_volume_claim.claim_name for v in pod_spec.volumes}
        assert claims == {"data": "mainnet-storage", "snapshot-scratch": "mainnet-archive-restore"}

        container = pod_spec.containers[0]
        assert container.image == RESTORE_IMAGE
        mounts = {m.name: m.mount_path for m in container.volume_mounts}
        assert mounts == {"data": "/data", "snapshot-scratch": "/scratch"}

    def test_env(self, rpc) -> None:
        """Test the restore parameters are passed as environment."""
        env = env_map(wanted_restore_job(rpc, RESTORE_IMAGE).spec.template.spec.containers[0])
        assert env["PATHFINDER_NETWORK"].value == "mainnet"
        assert env["PATHFINDER_FILE_NAME"].value == "mainnet_v0.14.0_751397.sqlite.zst"
        assert env["PATHFINDER_CHECKSUM"].value == "d3a1c6f2"
        assert "PATHFINDER_DOWNLOAD_URL" not in env

    def test_overrides(self, rpc) -> None:
        """Test the restore image and download configuration overrides."""
        rpc.spec.restore_archive.restore_image = "example/restore:1"
        rpc.spec.restore_archive.rsync_config = "rsync://snapshots.example/mainnet"
        container = wanted_restore_job(rpc, RESTORE_IMAGE).spec.template.spec.containers[0]
        assert container.image == "example/restore:1"
        assert env_map(container)["PATHFINDER_DOWNLOAD_URL"].value == "rsync://snapshots.example/mainnet"

    def test_outcome(self, rpc) -> None:
        """Test job outcome helpers."""
        job = wanted_restore_job(rpc, RESTORE_IMAGE)
        assert not job_succeeded(job) and not job_failed(job)
        job.status = client.V1JobStatus(active=1)
        assert not job_succeeded(job) and not job_failed(job)
        job.status = client.V1JobStatus(succeeded=1)
        assert job_succeeded(job)
        job.status = client.V1JobStatus(failed=1)
        assert job_failed(job)


class TestPod:
    """Tests for the node pod."""

    def test_pod(self, rpc) -> None:
        """Test the node container layout."""
        pod = wanted_pod(rpc, NODE_IMAGE)
        assert pod.metadata.name == "mainnet-rpc"
        assert pod.metadata.labels["rpc.runelabs.xyz/name"] == "mainnet"
        assert pod.metadata.labels["runelabs.xyz/network"] == "mainnet"

        container = pod.spec.containers[0]
        assert container.name == "rpc-pathfinder"
        assert container.image == NODE_IMAGE
        assert {p.name: p.container_port for p in container.ports} == {
            "rpc": 9545,
            "monitoring": 9000,
        }
        assert container.resources.requests == {"cpu": "2", "memory": "8Gi"}
        assert container.resources.limits is None
        assert pod.spec.volumes[0].persistent_volume_claim.claim_name == "mainnet-storage"
        assert pod.spec.security_context.run_as_user == 1000
        assert pod.spec.security_context.fs_group == 1000
        assert pod.spec.tolerations is None

    def test_env(self, rpc) -> None:
        """Test the layer 1 endpoint comes from the referenced secret."""
        env = env_map(wanted_pod(rpc, NODE_IMAGE).spec.containers[0])
        ref = env["PATHFINDER_ETHEREUM_API_URL"].value_from.secret_key_ref
        assert (ref.name, ref.key) == ("l1-rpc", "url")
        assert env["PATHFINDER_DATA_DIR"].value == "/usr/share/pathfinder/data"
        assert env["PATHFINDER_MONITOR_ADDRESS"].value == "0.0.0.0:9000"

    def test_image_and_tolerations(self, rpc) -> None:
        """Test the image override and tolerations are applied."""
        rpc.spec.image = "eqlabs/pathfinder:v0.21.0"
        rpc.spec.tolerations = [
            {"key": "dedicated", "operator": "Equal", "value": "starknet", "effect": "NoSchedule"}
        ]
        pod = wanted_pod(rpc, NODE_IMAGE)
        assert pod.spec.containers[0].image == "eqlabs/pathfinder:v0.21.0"
        (toleration,) = pod.spec.tolerations
        assert toleration.key == "dedicated"
        assert toleration.effect == "NoSchedule"


class TestPodHealth:
    """Tests for the unhealthy pod checks."""

    def _status(self, reason: str, restarts: int) -> client.V1PodStatus:
        return client.V1PodStatus(
            container_statuses=[
                client.V1ContainerStatus(
                    name="rpc-pathfinder",
                    image=NODE_IMAGE,
                    image_id="",
                    ready=False,
                    restart_count=restarts,
                    state=client.V1ContainerState(
                        waiting=client.V1ContainerStateWaiting(reason=reason)
                    ),
                )
            ]
        )

    def test_healthy(self, rpc) -> None:
        """Test a pod without status or with a running container is kept."""
        pod = wanted_pod(rpc, NODE_IMAGE)
        assert not should_recreate(pod)
        pod.status = client.V1PodStatus(phase="Running")
        assert not should_recreate(pod)

    def test_evicted(self, rpc) -> None:
        """Test an evicted pod is recreated."""
        pod = wanted_pod(rpc, NODE_IMAGE)
        pod.status = client.V1PodStatus(phase="Failed", reason="Evicted")
        assert should_recreate(pod)

    def test_crash_loop_threshold(self, rpc) -> None:
        """Test the restart count must exceed the threshold."""
        pod = wanted_pod(rpc, NODE_IMAGE)
        pod.status = self._status("CrashLoopBackOff", 5)
        assert not should_recreate(pod)
        pod.status = self._status("CrashLoopBackOff", 6)
        assert should_recreate(pod)
        assert not should_recreate(pod, restart_threshold=10)

    def test_other_waiting_reason(self, rpc) -> None:
        """Test restarts alone do not trigger a recreation."""
        pod = wanted_pod(rpc, NODE_IMAGE)
        pod.status = self._status("ContainerCreating", 50)
        assert not should_recreate(pod)

    def test_terminating(self, rpc) -> None:
        """Test the deletion timestamp marks a terminating pod."""
        pod = wanted_pod(rpc, NODE_IMAGE)
        assert not is_terminating(pod)
        pod.metadata.deletion_timestamp = "2026-01-01T00:00:00Z"
        assert is_terminating(pod)
