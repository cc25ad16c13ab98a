"""Outcomes of reconciliation phases."""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Continue:
    """The phase is done; proceed with the next one."""


@dataclass(frozen=True)
class RepeatAfter:
    """Stop this invocation and run again after ``delay`` seconds."""

    delay: float
    reason: str = ""


@dataclass(frozen=True)
class Terminate:
    """The phase failed conclusively and must not be re-driven by the orchestrator."""

    reason: str


@dataclass(frozen=True)
class Error:
    """The invocation failed with an unexpected error."""

    cause: Exception


PhaseResult = Union[Continue, RepeatAfter, Terminate]
ReconcileResult = Union[Continue, RepeatAfter, Terminate, Error]

CONTINUE = Continue()
