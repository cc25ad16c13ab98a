"""Pydantic models and status conditions for StarknetRPC custom resources."""

from starknet_operator.models.conditions import AvailablePhase, RestorePhase
from starknet_operator.models.starknetrpc import (
    StarknetRPC,
    StarknetRPCSpec,
    StarknetRPCStatus,
)

__all__ = [
    "AvailablePhase",
    "RestorePhase",
    "StarknetRPC",
    "StarknetRPCSpec",
    "StarknetRPCStatus",
]
