"""Phase orchestration of a StarknetRPC reconciliation."""

import logging

from kubernetes.client.exceptions import ApiException

from starknet_operator.models.conditions import RESTORE_CONDITION, is_status_condition_true
from starknet_operator.models.starknetrpc import StarknetRPC
from starknet_operator.reconciler.archive_restore import reconcile_archive_restore
from starknet_operator.reconciler.context import ReconcileContext
from starknet_operator.reconciler.instance import reconcile_instance
from starknet_operator.reconciler.result import (
    CONTINUE,
    Continue,
    Error,
    ReconcileResult,
    RepeatAfter,
    Terminate,
)
from starknet_operator.reconciler.status import initialize
from starknet_operator.reconciler.storage import reconcile_storage
from starknet_operator.utils.k8s_client import is_not_found

logger = logging.getLogger(__name__)

# Delay while the node waits for the restore to resolve
RESTORE_GATE_DELAY = 30.0


class StarknetRPCReconciler:
    """
    Drives a StarknetRPC towards its desired state.

    One call to ``reconcile`` is one invocation: it reads the object, runs
    the phases in order and stops at the first phase that does not return
    ``Continue``. Invocations keep no state of their own; everything is read
    from and written to the cluster, so any invocation may be interrupted
    and the next one repairs partial state.

    Phases, in order:

    1. storage: main data volume
    2. archive restore: scratch volume, restore job, cleanup
    3. gate: nothing below runs until the Restore condition is True
    4. instance: node pod, self-healing and readiness
    """

    def __init__(self, ctx: ReconcileContext):
        """
        Initialize reconciler.

        Args:
            ctx: Cluster client, settings and side channels for the phases
        """
        self.ctx = ctx

    def reconcile(self, name: str) -> ReconcileResult:
        """
        Run one invocation for the named StarknetRPC.

        Unexpected errors are logged and returned as ``Error`` so the caller
        can hand them to its retry mechanism.
        """
        namespace = self.ctx.k8s.namespace
        try:
            result = self._reconcile(name)
        except Exception as e:
            logger.error(f"Error while reconciling StarknetRPC {namespace}/{name}: {e}")
            return Error(e)

        if isinstance(result, RepeatAfter):
            logger.debug(
                f"StarknetRPC {namespace}/{name} re-scheduled in {result.delay}s: {result.reason}"
            )
        elif isinstance(result, Terminate):
            logger.error(f"StarknetRPC {namespace}/{name} terminated: {result.reason}")
        return result

    def _reconcile(self, name: str) -> ReconcileResult:
        try:
            body = self.ctx.k8s.get_starknet_rpc(name)
        except ApiException as e:
            if is_not_found(e):
                logger.debug(f"StarknetRPC {name} is gone, nothing to reconcile")
                return CONTINUE
            raise

        rpc = StarknetRPC.from_body(body)
        logger.debug(f"Reconciling StarknetRPC {rpc.namespace}/{rpc.name}")

        initialize(self.ctx.k8s, rpc)

        try:
            for phase in (reconcile_storage, reconcile_archive_restore):
                result = phase(self.ctx, rpc)
                if not isinstance(result, Continue):
                    return result

            if not is_status_condition_true(rpc.status.conditions, RESTORE_CONDITION):
                return RepeatAfter(RESTORE_GATE_DELAY, "archive restore not resolved")

            return reconcile_instance(self.ctx, rpc)
        finally:
            if self.ctx.metrics is not None:
                self.ctx.metrics.update_conditions(rpc.name, rpc.namespace, rpc.status.conditions)
