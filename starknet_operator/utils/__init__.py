"""Utility functions and helpers for the Starknet operator."""

from starknet_operator.utils.validators import validate_resource_name, validate_storage_size

__all__ = ["validate_resource_name", "validate_storage_size"]
