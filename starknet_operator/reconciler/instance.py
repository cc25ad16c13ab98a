"""Node pod phase."""

import logging

from kubernetes import client

from starknet_operator.models.conditions import AvailablePhase
from starknet_operator.models.starknetrpc import StarknetRPC
from starknet_operator.reconciler.context import EVENT_NORMAL, EVENT_WARNING, ReconcileContext
from starknet_operator.reconciler.ensure import ObjectReconciler, create_or_reconcile
from starknet_operator.reconciler.result import CONTINUE, PhaseResult, RepeatAfter
from starknet_operator.reconciler.status import set_phases
from starknet_operator.resources.pod import (
    is_terminating,
    node_image,
    should_recreate,
    wanted_pod,
)
from starknet_operator.utils.k8s_client import KIND_POD

logger = logging.getLogger(__name__)

TERMINATING_POLL_DELAY = 1.0
RECREATE_DELAY = 0.0


def image_reconciler(rpc: StarknetRPC, default_image: str) -> ObjectReconciler[client.V1Pod]:
    """Keep the node container on the requested image."""
    wanted = node_image(rpc, default_image)

    def is_up_to_date(pod: client.V1Pod) -> bool:
        # Terminating pods are left alone
        if is_terminating(pod):
            return True
        return pod.spec.containers[0].image == wanted

    def update(pod: client.V1Pod) -> client.V1Pod:
        pod.spec.containers[0].image = wanted
        return pod

    return ObjectReconciler(name="ImageReconciler", is_up_to_date=is_up_to_date, update=update)


def reconcile_instance(ctx: ReconcileContext, rpc: StarknetRPC) -> PhaseResult:
    """
    Run the node pod and track its availability.

    Evicted or crash-looping pods are deleted so the next invocation
    recreates them. A running pod is probed through the API server proxy.
    """
    default_image = ctx.settings.default_node_image
    ensured = create_or_reconcile(
        ctx.k8s,
        wanted_pod(rpc, default_image),
        image_reconciler(rpc, default_image),
    )
    pod = ensured.object
    pod_name = pod.metadata.name
    if ctx.metrics is not None:
        ctx.metrics.record_node_info(
            rpc.name, rpc.namespace, pod.spec.containers[0].image, rpc.spec.network
        )

    if ensured.created:
        ctx.event(EVENT_NORMAL, "PodCreated", f"Created node pod {pod_name}")
        set_phases(ctx.k8s, rpc, AvailablePhase.CREATING.apply())

    if is_terminating(pod):
        logger.debug(f"Node pod {pod_name} is terminating, waiting")
        return RepeatAfter(TERMINATING_POLL_DELAY, "node pod terminating")

    if should_recreate(pod, ctx.settings.restart_threshold):
        logger.warning(f"Node pod {pod_name} is unhealthy, deleting it")
        ctx.k8s.delete(KIND_POD, pod_name)
        ctx.event(EVENT_WARNING, "PodRecreated", f"Deleted unhealthy node pod {pod_name}")
        if ctx.metrics is not None:
            ctx.metrics.record_pod_recreation(rpc.name, rpc.namespace)
        set_phases(ctx.k8s, rpc, AvailablePhase.FAILED.apply())
        return RepeatAfter(RECREATE_DELAY, "node pod recreated")

    update_availability(ctx, rpc, pod)
    return CONTINUE


def update_availability(ctx: ReconcileContext, rpc: StarknetRPC, pod: client.V1Pod) -> None:
    """
    Promote the Available condition from the node's own health endpoints.

    A node that does not answer at all is only marked Unknown once it had
    been answering before; a freshly created pod keeps its condition.
    """
    ready = ctx.prober.is_ready(pod)
    if ready.ready:
        synced = ctx.prober.is_synced(pod)
        phase = AvailablePhase.READY if synced.ready else AvailablePhase.CATCHING_UP
        set_phases(ctx.k8s, rpc, phase.apply())
        return

    conditions = rpc.status.conditions
    if AvailablePhase.CATCHING_UP.is_current(conditions) or AvailablePhase.READY.is_current(
        conditions
    ):
        logger.info(f"Node pod {pod.metadata.name} stopped answering: {ready.message}")
        set_phases(ctx.k8s, rpc, AvailablePhase.UNKNOWN.apply())
