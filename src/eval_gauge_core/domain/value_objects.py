"""
Domain Value Objects

Defines immutable data structures representing values such as evaluation results,
judge verdicts, model responses, and run statuses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from eval_gauge_core.domain.exceptions import InvalidTransitionError


def freeze_mapping(data: Mapping[str, Any] | None) -> Mapping[str, Any]:
    """Return a read-only copy of a mapping (None becomes an empty mapping)"""
    return MappingProxyType(dict(data or {}))


@dataclass(frozen=True)
class EvalResult:
    """Result of one evaluator applied to one test case"""

    name: str
    score: float
    success: bool
    threshold: float | None = None
    reason: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    error: str | None = None  # Set when the evaluator failed; such results never succeed

    def __post_init__(self):
        object.__setattr__(self, "metadata", freeze_mapping(self.metadata))
        if self.error is not None and self.success:
            raise ValueError("An errored EvalResult cannot be successful")

    @property
    def errored(self) -> bool:
        return self.error is not None

    @classmethod
    def of(
        cls,
        name: str,
        score: float,
        threshold: float,
        reason: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> EvalResult:
        """Create a result whose success is score >= threshold (inclusive)"""
        return cls(
            name=name,
            score=score,
            success=score >= threshold,
            threshold=threshold,
            reason=reason,
            metadata=metadata or {},
        )

    @classmethod
    def failed(cls, name: str, threshold: float | None, error: BaseException) -> EvalResult:
        """Create a result recording that the evaluator itself failed"""
        message = f"{type(error).__name__}: {error}"
        return cls(
            name=name,
            score=0.0,
            success=False,
            threshold=threshold,
            reason=f"Evaluation failed: {message}",
            error=message,
        )


@dataclass(frozen=True)
class JudgeVerdict:
    """Score and justification extracted from a judge response"""

    score: float
    reason: str | None = None


@dataclass
class ModelResponse:
    """Model response"""
    output: str
    latency_ms: int
    model_name: str
    input_tokens: int = 0
    output_tokens: int = 0


class RunStatus(str, Enum):
    """Lifecycle status of a persisted Run"""
    RUNNING = "RUNNING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self is not RunStatus.RUNNING


def transition(current: RunStatus, target: RunStatus) -> RunStatus:
    """
    The only legal way to move a Run between statuses

    RUNNING may move to exactly one terminal status. Terminal statuses are final.

    Args:
        current: Current status
        target: Requested status

    Returns:
        The new status (== target)

    Raises:
        InvalidTransitionError: If current is terminal or target is not terminal
    """
    if current.is_terminal or not target.is_terminal:
        raise InvalidTransitionError(current.value, target.value)
    return target
