"""
Starknet Operator - Kubernetes operator for Pathfinder RPC nodes

Deploys and manages Starknet full nodes described by StarknetRPC custom
resources: persistent storage, an optional one-shot restore of a chain
snapshot into that storage, and the node pod itself with self-healing and
readiness tracking.

This operator uses Kopf (Kubernetes Operator Pythonic Framework) to run one
reconciliation loop per StarknetRPC resource.
"""

__version__ = "0.1.0"

from starknet_operator.models.conditions import AvailablePhase, RestorePhase
from starknet_operator.models.starknetrpc import StarknetRPC, StarknetRPCSpec, StarknetRPCStatus

__all__ = [
    "AvailablePhase",
    "RestorePhase",
    "StarknetRPC",
    "StarknetRPCSpec",
    "StarknetRPCStatus",
]
