"""Writing condition transitions to the StarknetRPC status."""

import logging
from typing import Any

from starknet_operator.models.conditions import AvailablePhase, RestorePhase, StateTransition
from starknet_operator.models.starknetrpc import StarknetRPC

logger = logging.getLogger(__name__)


def set_phases(k8s: Any, rpc: StarknetRPC, *transitions: StateTransition) -> bool:
    """
    Apply condition transitions and persist the status if anything changed.

    The resourceVersion returned by the API server is stored back on ``rpc``
    so later writes in the same invocation do not conflict with this one.
    A conflicting concurrent write raises the API error.

    Returns:
        True if the status was written
    """
    conditions = rpc.status.conditions
    generation = rpc.metadata.generation
    changed = False
    for transition in transitions:
        changed = transition(conditions, generation) or changed

    if not changed:
        return False

    response = k8s.replace_starknet_rpc_status(rpc.name, rpc.status_body())
    resource_version = (response or {}).get("metadata", {}).get("resourceVersion")
    if resource_version is not None:
        rpc.metadata.resource_version = resource_version
    logger.debug(f"Updated conditions of {rpc.namespace}/{rpc.name}: {conditions}")
    return True


def initialize(k8s: Any, rpc: StarknetRPC) -> bool:
    """Seed both condition types to Pending on a resource without conditions."""
    if rpc.status.conditions:
        return False
    return set_phases(
        k8s,
        rpc,
        RestorePhase.PENDING.apply(),
        AvailablePhase.PENDING.apply(),
    )
