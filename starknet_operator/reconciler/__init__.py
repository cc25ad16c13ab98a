"""Reconciliation engine for StarknetRPC resources."""

from starknet_operator.reconciler.context import ReconcileContext
from starknet_operator.reconciler.controller import StarknetRPCReconciler
from starknet_operator.reconciler.ensure import ObjectReconciler, create_or_reconcile
from starknet_operator.reconciler.result import Continue, Error, RepeatAfter, Terminate

__all__ = [
    "Continue",
    "Error",
    "ObjectReconciler",
    "ReconcileContext",
    "RepeatAfter",
    "StarknetRPCReconciler",
    "Terminate",
    "create_or_reconcile",
]
