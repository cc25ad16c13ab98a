"""Status conditions of a StarknetRPC resource.

Two independent condition types are tracked:

- ``Restore``: progress of the one-shot archive restore.
- ``Available``: lifecycle of the long-running node pod.

Each phase maps to exactly one condition record. Records are merged into the
status by type, so at most one record per type exists.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

CONDITION_TRUE = "True"
CONDITION_FALSE = "False"
CONDITION_UNKNOWN = "Unknown"

RESTORE_CONDITION = "Restore"
AVAILABLE_CONDITION = "Available"

Conditions = list[dict[str, Any]]
StateTransition = Callable[[Conditions, Optional[int]], bool]


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def find_status_condition(conditions: Conditions, type_: str) -> Optional[dict[str, Any]]:
    """Return the condition of the given type, if any."""
    for condition in conditions:
        if condition.get("type") == type_:
            return condition
    return None


def is_status_condition_true(conditions: Conditions, type_: str) -> bool:
    """Check whether the condition of the given type has status True."""
    condition = find_status_condition(conditions, type_)
    return condition is not None and condition.get("status") == CONDITION_TRUE


def set_status_condition(
    conditions: Conditions,
    new: dict[str, Any],
    observed_generation: Optional[int] = None,
) -> bool:
    """
    Insert or update a condition, keyed by its type.

    ``lastTransitionTime`` only moves when the status value flips.

    Args:
        conditions: Condition list, modified in place
        new: Condition record with type, status, reason and message
        observed_generation: Generation of the resource the condition is based on

    Returns:
        True if the list changed
    """
    existing = find_status_condition(conditions, new["type"])
    if existing is None:
        record = {
            "type": new["type"],
            "status": new["status"],
            "reason": new["reason"],
            "message": new["message"],
            "lastTransitionTime": new.get("lastTransitionTime") or _now(),
        }
        if observed_generation is not None:
            record["observedGeneration"] = observed_generation
        conditions.append(record)
        return True

    changed = False
    if existing.get("status") != new["status"]:
        existing["status"] = new["status"]
        existing["lastTransitionTime"] = new.get("lastTransitionTime") or _now()
        changed = True
    for key in ("reason", "message"):
        if existing.get(key) != new[key]:
            existing[key] = new[key]
            changed = True
    if observed_generation is not None and existing.get("observedGeneration") != observed_generation:
        existing["observedGeneration"] = observed_generation
        changed = True
    return changed


class _Phase(str, Enum):
    """A lifecycle phase that maps to a single condition record."""

    @property
    def condition_type(self) -> str:
        raise NotImplementedError

    @property
    def status(self) -> str:
        raise NotImplementedError

    @property
    def message(self) -> str:
        raise NotImplementedError

    @property
    def reason(self) -> str:
        return self.value

    def as_condition(self) -> dict[str, Any]:
        return {
            "type": self.condition_type,
            "status": self.status,
            "reason": self.reason,
            "message": self.message,
        }

    def apply(self) -> StateTransition:
        """Transition merging this phase's condition into a condition list."""
        condition = self.as_condition()

        def transition(conditions: Conditions, observed_generation: Optional[int] = None) -> bool:
            return set_status_condition(conditions, condition, observed_generation)

        return transition

    def is_current(self, conditions: Conditions) -> bool:
        """Check whether this phase is the one recorded in the conditions."""
        condition = find_status_condition(conditions, self.condition_type)
        return condition is not None and condition.get("reason") == self.reason


class RestorePhase(_Phase):
    """Phases of the archive restore."""

    PENDING = "Pending"
    RESTORING = "Restoring"
    SUCCESS = "Success"
    FAILED = "Failed"
    SKIPPED = "Skipped"

    @property
    def condition_type(self) -> str:
        return RESTORE_CONDITION

    @property
    def status(self) -> str:
        return _RESTORE_STATUS[self]

    @property
    def message(self) -> str:
        return _RESTORE_MESSAGES[self]


class AvailablePhase(_Phase):
    """Phases of the node pod."""

    PENDING = "Pending"
    CREATING = "Creating"
    CATCHING_UP = "CatchingUp"
    READY = "Ready"
    FAILED = "Failed"
    # The node stopped answering; the pod is left in place
    UNKNOWN = "Unknown"

    @property
    def condition_type(self) -> str:
        return AVAILABLE_CONDITION

    @property
    def status(self) -> str:
        return _AVAILABLE_STATUS[self]

    @property
    def message(self) -> str:
        return _AVAILABLE_MESSAGES[self]


_RESTORE_STATUS = {
    RestorePhase.PENDING: CONDITION_FALSE,
    RestorePhase.RESTORING: CONDITION_FALSE,
    RestorePhase.SUCCESS: CONDITION_TRUE,
    RestorePhase.FAILED: CONDITION_FALSE,
    RestorePhase.SKIPPED: CONDITION_TRUE,
}

_RESTORE_MESSAGES = {
    RestorePhase.PENDING: "Restore operation is being setup",
    RestorePhase.RESTORING: "Restore operation is in progress",
    RestorePhase.SUCCESS: "Restore operation has completed successfully",
    RestorePhase.FAILED: "Restore operation has failed",
    RestorePhase.SKIPPED: "Restore operation was skipped by the configuration",
}

_AVAILABLE_STATUS = {
    AvailablePhase.PENDING: CONDITION_UNKNOWN,
    AvailablePhase.CREATING: CONDITION_UNKNOWN,
    AvailablePhase.CATCHING_UP: CONDITION_UNKNOWN,
    AvailablePhase.READY: CONDITION_TRUE,
    AvailablePhase.FAILED: CONDITION_FALSE,
    AvailablePhase.UNKNOWN: CONDITION_UNKNOWN,
}

_AVAILABLE_MESSAGES = {
    AvailablePhase.PENDING: "The RPC is waiting for the initial state to be ready",
    AvailablePhase.CREATING: "RPC Pod is being scheduled",
    AvailablePhase.CATCHING_UP: "The node is catching up with the latest block",
    AvailablePhase.READY: "The node is ready and is fully synced",
    AvailablePhase.FAILED: "The node failed to start, or another error occurred",
    AvailablePhase.UNKNOWN: "Impossible to determine the status of the node",
}
