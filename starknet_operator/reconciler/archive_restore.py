"""Archive snapshot restore phase."""

import logging

from kubernetes.client.exceptions import ApiException

from starknet_operator.models.conditions import (
    RESTORE_CONDITION,
    RestorePhase,
    is_status_condition_true,
)
from starknet_operator.models.starknetrpc import StarknetRPC
from starknet_operator.reconciler.context import EVENT_NORMAL, EVENT_WARNING, ReconcileContext
from starknet_operator.reconciler.ensure import create_or_reconcile
from starknet_operator.reconciler.result import (
    CONTINUE,
    Continue,
    PhaseResult,
    RepeatAfter,
    Terminate,
)
from starknet_operator.reconciler.status import set_phases
from starknet_operator.reconciler.storage import PVC_POLL_DELAY, ensure_storage_bound
from starknet_operator.resources.job import job_failed, job_succeeded, wanted_restore_job
from starknet_operator.resources.metadata import restore_job_name, restore_pvc_name
from starknet_operator.resources.pvc import is_bound, wanted_restore_pvc
from starknet_operator.utils.k8s_client import KIND_JOB, KIND_PVC, is_not_found

logger = logging.getLogger(__name__)

JOB_POLL_DELAY = 1.0
# Restores take minutes; poll less often while the job runs
JOB_RUNNING_DELAY = 30.0


def cleanup_restore(ctx: ReconcileContext, rpc: StarknetRPC) -> None:
    """Delete the restore job and its scratch volume if they still exist."""
    ctx.k8s.delete(KIND_JOB, restore_job_name(rpc), propagation_policy="Background")
    ctx.k8s.delete(KIND_PVC, restore_pvc_name(rpc))


def reconcile_archive_restore(ctx: ReconcileContext, rpc: StarknetRPC) -> PhaseResult:
    """
    Restore the archive snapshot into the data volume.

    Once the Restore condition is True (restored or skipped) the phase only
    cleans up the job and scratch volume.
    """
    if is_status_condition_true(rpc.status.conditions, RESTORE_CONDITION):
        logger.debug(f"Restore of {rpc.namespace}/{rpc.name} resolved, cleaning up")
        cleanup_restore(ctx, rpc)
        return CONTINUE

    if not rpc.spec.restore_archive.enable:
        logger.info(f"Archive restore disabled for {rpc.namespace}/{rpc.name}")
        set_phases(ctx.k8s, rpc, RestorePhase.SKIPPED.apply())
        return CONTINUE

    try:
        ensured_scratch = create_or_reconcile(ctx.k8s, wanted_restore_pvc(rpc))
    except ApiException as e:
        if is_not_found(e):
            return RepeatAfter(PVC_POLL_DELAY, "scratch volume not found")
        raise

    scratch = ensured_scratch.object
    if ensured_scratch.created:
        ctx.event(EVENT_NORMAL, "StorageCreated", f"Created scratch volume {restore_pvc_name(rpc)}")

    if not is_bound(scratch):
        logger.debug(f"Scratch volume {restore_pvc_name(rpc)} is not bound yet")
        return RepeatAfter(PVC_POLL_DELAY, "scratch volume not bound")

    storage_result = ensure_storage_bound(ctx, rpc)
    if not isinstance(storage_result, Continue):
        return storage_result

    ensured = create_or_reconcile(
        ctx.k8s, wanted_restore_job(rpc, ctx.settings.default_restore_image)
    )
    job_name = restore_job_name(rpc)
    if ensured.created:
        ctx.event(EVENT_NORMAL, "RestoreStarted", f"Started archive restore job {job_name}")
        set_phases(ctx.k8s, rpc, RestorePhase.RESTORING.apply())
        return RepeatAfter(JOB_POLL_DELAY, "restore job created")

    job = ensured.object
    if job_succeeded(job):
        logger.info(f"Restore job {job_name} succeeded")
        if set_phases(ctx.k8s, rpc, RestorePhase.SUCCESS.apply()):
            ctx.event(EVENT_NORMAL, "RestoreSucceeded", f"Archive restore job {job_name} succeeded")
        return RepeatAfter(JOB_POLL_DELAY, "restore finished")

    if job_failed(job):
        logger.warning(f"Restore job {job_name} failed")
        if set_phases(ctx.k8s, rpc, RestorePhase.FAILED.apply()):
            ctx.event(EVENT_WARNING, "RestoreFailed", f"Archive restore job {job_name} failed")
        return Terminate(f"archive restore job {job_name} failed")

    logger.debug(f"Restore job {job_name} still running")
    return RepeatAfter(JOB_RUNNING_DELAY, "restore in progress")
