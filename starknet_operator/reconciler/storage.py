"""Main data volume phase."""

import logging

from kubernetes.client.exceptions import ApiException

from starknet_operator.models.conditions import RestorePhase
from starknet_operator.models.starknetrpc import StarknetRPC
from starknet_operator.reconciler.context import EVENT_NORMAL, ReconcileContext
from starknet_operator.reconciler.ensure import create_or_reconcile
from starknet_operator.reconciler.result import CONTINUE, PhaseResult, RepeatAfter
from starknet_operator.reconciler.status import set_phases
from starknet_operator.resources.metadata import storage_pvc_name
from starknet_operator.resources.pvc import is_bound, wanted_storage_pvc
from starknet_operator.utils.k8s_client import KIND_PVC, is_not_found

logger = logging.getLogger(__name__)

PVC_POLL_DELAY = 1.0


def reconcile_storage(ctx: ReconcileContext, rpc: StarknetRPC) -> PhaseResult:
    """
    Ensure the main data claim exists.

    A freshly created claim is empty, so the restore is reset to Pending.
    """
    result = create_or_reconcile(ctx.k8s, wanted_storage_pvc(rpc))
    if result.created:
        ctx.event(EVENT_NORMAL, "StorageCreated", f"Created data volume {storage_pvc_name(rpc)}")
        set_phases(ctx.k8s, rpc, RestorePhase.PENDING.apply())
    return CONTINUE


def ensure_storage_bound(ctx: ReconcileContext, rpc: StarknetRPC) -> PhaseResult:
    """Wait until the main data claim is bound to a volume."""
    name = storage_pvc_name(rpc)
    try:
        pvc = ctx.k8s.get(KIND_PVC, name)
    except ApiException as e:
        if is_not_found(e):
            logger.debug(f"Data volume {name} not visible yet")
            return RepeatAfter(PVC_POLL_DELAY, "data volume not found")
        raise

    if not is_bound(pvc):
        logger.debug(f"Data volume {name} is not bound yet")
        return RepeatAfter(PVC_POLL_DELAY, "data volume not bound")
    return CONTINUE
