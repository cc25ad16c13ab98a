"""Kopf event handlers for StarknetRPC custom resources."""

from starknet_operator.handlers.starknetrpc_handler import (
    configure,
    reconcile_starknet_rpc,
    validate_starknet_rpc,
)

__all__ = [
    "configure",
    "reconcile_starknet_rpc",
    "validate_starknet_rpc",
]
