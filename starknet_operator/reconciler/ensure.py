"""Create-or-converge primitive shared by every phase."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from kubernetes.client.exceptions import ApiException

from starknet_operator.utils.k8s_client import is_already_exists

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ObjectReconciler(Generic[T]):
    """
    Field-level drift correction for an existing object.

    ``update`` receives the live object and returns it with the field fixed.
    """

    name: str
    is_up_to_date: Callable[[T], bool]
    update: Callable[[T], T]


@dataclass
class EnsureResult(Generic[T]):
    """Object after convergence, and whether it was created by this call."""

    created: bool
    object: T


def create_or_reconcile(k8s: Any, wanted: T, *reconcilers: ObjectReconciler[T]) -> EnsureResult[T]:
    """
    Create ``wanted`` if it does not exist, otherwise converge the live object.

    Every reconciler whose field is out of date is applied to the live object
    and the result is persisted. Errors other than "already exists" on
    creation are raised unmodified.

    Args:
        k8s: Kubernetes client
        wanted: Desired object (V1PersistentVolumeClaim, V1Job, V1Pod)
        *reconcilers: Field reconcilers applied to an existing object

    Returns:
        The created or converged object
    """
    kind = wanted.kind
    name = wanted.metadata.name
    try:
        created = k8s.create(wanted)
    except ApiException as e:
        if not is_already_exists(e):
            logger.error(f"Failed to create {kind} {name}: {e}")
            raise
    else:
        logger.info(f"Created {kind} {name}")
        return EnsureResult(created=True, object=created)

    current = k8s.get(kind, name)
    for reconciler in reconcilers:
        if reconciler.is_up_to_date(current):
            continue
        logger.info(f"{kind} {name} drifted, applying {reconciler.name}")
        current = k8s.replace(reconciler.update(current))

    return EnsureResult(created=False, object=current)
