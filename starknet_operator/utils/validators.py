"""Input validation utilities."""

import re
from typing import Pattern


# Kubernetes resource name pattern (RFC 1123 DNS label)
K8S_NAME_PATTERN: Pattern[str] = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")

# Storage quantity pattern (e.g., "8Gi", "500G", "1.5Ti")
STORAGE_SIZE_PATTERN: Pattern[str] = re.compile(
    r"^\d+(\.\d+)?(Ki|Mi|Gi|Ti|Pi|Ei|k|M|G|T|P|E)?$"
)

# Label values and the Job name copied into its pods' job-name label are capped at 63
MAX_LABEL_VALUE_LENGTH = 63

# Longest owner name whose "-archive-restore-job" name still fits a label value
MAX_OWNER_NAME_LENGTH = MAX_LABEL_VALUE_LENGTH - len("-archive-restore-job")


def validate_resource_name(name: str) -> bool:
    """
    Validate Kubernetes resource name.

    Args:
        name: Resource name to validate

    Returns:
        True if valid, False otherwise
    """
    if not name or len(name) > 253:
        return False
    return K8S_NAME_PATTERN.match(name) is not None


def validate_owner_name(name: str) -> bool:
    """Validate that every derived sub-resource name stays a legal resource name."""
    return validate_resource_name(name) and len(name) <= MAX_OWNER_NAME_LENGTH


def validate_storage_size(size: str) -> bool:
    """
    Validate Kubernetes storage quantity.

    Args:
        size: Storage size string (e.g., "8Gi")

    Returns:
        True if valid, False otherwise
    """
    if not size:
        return False
    return STORAGE_SIZE_PATTERN.match(size) is not None
