"""Operator-wide settings."""

import os
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

ENV_PREFIX = "STARKNET_OPERATOR_"


class OperatorSettings(BaseModel):
    """
    Runtime configuration of the Starknet operator.

    Every field can be overridden with an environment variable named
    ``STARKNET_OPERATOR_<FIELD>`` (e.g. ``STARKNET_OPERATOR_PROBE_TIMEOUT_SECONDS``).
    """

    default_node_image: str = Field(
        default="eqlabs/pathfinder:v0.20.0",
        description="Pathfinder image used when the resource does not set one",
    )
    default_restore_image: str = Field(
        default="ghcr.io/runelabsxyz/pathfinder-snapshotter:latest",
        description="Snapshot restore image used when the resource does not set one",
    )
    probe_timeout_seconds: float = Field(
        default=5.0, gt=0, description="Timeout of a single readiness proxy call"
    )
    resync_interval_seconds: float = Field(
        default=60.0, gt=0, description="Delay between steady-state reconciliations"
    )
    backoff_base_seconds: float = Field(
        default=5.0, gt=0, description="First retry delay after a failed reconciliation"
    )
    backoff_max_seconds: float = Field(
        default=300.0, gt=0, description="Upper bound of the retry delay"
    )
    restart_threshold: int = Field(
        default=5, ge=0, description="Container restarts tolerated in CrashLoopBackOff"
    )
    metrics_port: int = Field(
        default=9090, ge=0, le=65535, description="Prometheus port (0 disables)"
    )
    log_level: str = Field(default="INFO", description="Root log level")
    namespace: str = Field(
        default="", description="Namespace to watch (empty watches all namespaces)"
    )
    liveness_endpoint: str = Field(
        default="http://0.0.0.0:8080/healthz", description="kopf liveness endpoint"
    )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "OperatorSettings":
        """Build settings from ``STARKNET_OPERATOR_*`` environment variables."""
        environ = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for field_name in cls.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{field_name.upper()}")
            if raw is not None:
                values[field_name] = raw
        return cls(**values)

    def backoff_delay(self, failures: int) -> float:
        """Exponential retry delay for the given number of consecutive failures."""
        exponent = max(failures - 1, 0)
        return min(self.backoff_base_seconds * (2**exponent), self.backoff_max_seconds)


_settings: Optional[OperatorSettings] = None


def get_settings() -> OperatorSettings:
    """Get or create the process-wide settings."""
    global _settings
    if _settings is None:
        _settings = OperatorSettings.from_env()
    return _settings
