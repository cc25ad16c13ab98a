"""StarknetRPC resource event handlers."""

import asyncio
import logging
import time
from typing import Any, Optional

import kopf
from pydantic import ValidationError

from starknet_operator.config import OperatorSettings, get_settings
from starknet_operator.models.starknetrpc import GROUP, PLURAL, VERSION, StarknetRPCSpec
from starknet_operator.reconciler.context import EventRecorder, ReconcileContext
from starknet_operator.reconciler.controller import StarknetRPCReconciler
from starknet_operator.reconciler.result import (
    Continue,
    Error,
    ReconcileResult,
    RepeatAfter,
    Terminate,
)
from starknet_operator.utils.k8s_client import K8sClient
from starknet_operator.utils.metrics import OperatorMetrics, get_metrics
from starknet_operator.utils.validators import validate_owner_name

logger = logging.getLogger(__name__)

FAILURES_MEMO_KEY = "consecutive_failures"


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **kwargs: Any) -> None:
    """Apply operator settings and start the metrics endpoint."""
    operator_settings = get_settings()
    settings.posting.level = logging.WARNING

    if operator_settings.metrics_port:
        get_metrics().serve(operator_settings.metrics_port)


@kopf.on.create(GROUP, VERSION, PLURAL)
@kopf.on.update(GROUP, VERSION, PLURAL, field="spec")
def validate_starknet_rpc(spec: dict[str, Any], name: str, namespace: str, **kwargs: Any) -> None:
    """
    Reject malformed StarknetRPC specifications.

    Reconciliation itself runs in the per-object daemon; this handler only
    surfaces invalid input as a permanent failure on the object.
    """
    if not validate_owner_name(name):
        raise kopf.PermanentError(
            f"StarknetRPC name {name!r} is too long or not a valid resource name"
        )

    try:
        StarknetRPCSpec.model_validate(dict(spec))
    except ValidationError as e:
        logger.error(f"Invalid StarknetRPC spec for {namespace}/{name}: {e}")
        raise kopf.PermanentError(f"Invalid StarknetRPC specification: {e}")


def event_recorder(body: Any) -> EventRecorder:
    """Bind kopf event posting to one StarknetRPC object."""

    def record(event_type: str, reason: str, message: str) -> None:
        kopf.event(body, type=event_type, reason=reason, message=message)

    return record


def next_delay(
    result: ReconcileResult,
    settings: OperatorSettings,
    memo: Any,
) -> float:
    """
    Translate a reconciliation outcome into the wait before the next one.

    Failures are counted in the per-object memo and handed to kopf as a
    TemporaryError with an exponential delay.

    Raises:
        kopf.TemporaryError: For Terminate and Error outcomes
    """
    if isinstance(result, (Terminate, Error)):
        failures = memo.get(FAILURES_MEMO_KEY, 0) + 1
        memo[FAILURES_MEMO_KEY] = failures
        delay = settings.backoff_delay(failures)
        if isinstance(result, Terminate):
            raise kopf.TemporaryError(result.reason, delay=delay)
        raise kopf.TemporaryError(f"Reconciliation failed: {result.cause}", delay=delay) from result.cause

    memo[FAILURES_MEMO_KEY] = 0
    if isinstance(result, RepeatAfter):
        return result.delay
    return settings.resync_interval_seconds


def outcome_label(result: ReconcileResult) -> str:
    if isinstance(result, Continue):
        return "continue"
    if isinstance(result, RepeatAfter):
        return "repeat"
    if isinstance(result, Terminate):
        return "terminate"
    return "error"


def run_once(
    reconciler: StarknetRPCReconciler,
    name: str,
    namespace: str,
    settings: OperatorSettings,
    memo: Any,
    metrics: Optional[OperatorMetrics] = None,
) -> float:
    """Run one reconciliation and return how long to wait before the next."""
    start = time.monotonic()
    result = reconciler.reconcile(name)
    if metrics is not None:
        metrics.record_reconciliation(
            name, namespace, outcome_label(result), time.monotonic() - start
        )
        if isinstance(result, Error):
            metrics.record_error(name, namespace, type(result.cause).__name__)

    if isinstance(result, Error) and isinstance(result.cause, ValidationError):
        # Invalid resource spec, wait for an update without backoff
        memo[FAILURES_MEMO_KEY] = 0
        return settings.resync_interval_seconds

    return next_delay(result, settings, memo)


def build_reconciler(
    namespace: str,
    body: Any,
    settings: OperatorSettings,
    metrics: OperatorMetrics,
) -> StarknetRPCReconciler:
    """Wire a reconciler for one StarknetRPC to the cluster."""
    ctx = ReconcileContext(
        k8s=K8sClient(namespace=namespace),
        settings=settings,
        recorder=event_recorder(body),
        metrics=metrics,
    )
    return StarknetRPCReconciler(ctx)


@kopf.daemon(GROUP, VERSION, PLURAL, cancellation_timeout=10.0)
async def reconcile_starknet_rpc(
    name: str,
    namespace: str,
    body: Any,
    memo: Any,
    stopped: kopf.DaemonStopped,
    **kwargs: Any,
) -> None:
    """
    Reconcile one StarknetRPC for as long as it exists.

    kopf runs a single daemon per object, so invocations for the same object
    never overlap. Each blocking reconciliation runs in a worker thread and
    the daemon only holds it for that iteration; the wait between iterations
    is interrupted when the object is deleted or the operator stops.
    """
    settings = get_settings()
    metrics = get_metrics()
    reconciler = await asyncio.to_thread(build_reconciler, namespace, body, settings, metrics)
    logger.info(f"Starting reconciliation of StarknetRPC {namespace}/{name}")

    while not stopped:
        delay = await asyncio.to_thread(
            run_once, reconciler, name, namespace, settings, memo, metrics
        )
        await stopped.wait(delay)

    logger.info(f"Stopped reconciliation of StarknetRPC {namespace}/{name}")
