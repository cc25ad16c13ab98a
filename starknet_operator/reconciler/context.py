"""Collaborators shared by the phases of one reconciliation."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from starknet_operator.config import OperatorSettings
from starknet_operator.utils.metrics import OperatorMetrics
from starknet_operator.utils.readiness import ReadinessProber

logger = logging.getLogger(__name__)

# (event_type, reason, message)
EventRecorder = Callable[[str, str, str], None]

EVENT_NORMAL = "Normal"
EVENT_WARNING = "Warning"


def _discard_event(event_type: str, reason: str, message: str) -> None:
    pass


@dataclass
class ReconcileContext:
    """Cluster client, settings and side channels used by the phases."""

    k8s: Any
    settings: OperatorSettings = field(default_factory=OperatorSettings)
    prober: Optional[ReadinessProber] = None
    recorder: EventRecorder = _discard_event
    metrics: Optional[OperatorMetrics] = None

    def __post_init__(self) -> None:
        if self.prober is None:
            self.prober = ReadinessProber(self.k8s, timeout=self.settings.probe_timeout_seconds)

    def event(self, event_type: str, reason: str, message: str) -> None:
        """Record an event; failures never affect reconciliation."""
        try:
            self.recorder(event_type, reason, message)
        except Exception as e:
            logger.warning(f"Failed to record event {reason}: {e}")
