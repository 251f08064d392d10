"""
Domain Exceptions

Defines the exception hierarchy raised across the evaluation harness.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from eval_gauge_core.domain.entities import Example, ItemResult


class EvalGaugeError(Exception):
    """Base exception for all eval-gauge-core errors"""
    pass


# ---------------------------------------------------------------------------
# Datasets
# ---------------------------------------------------------------------------


class ResolutionFailure(str, Enum):
    """Reason a dataset locator could not be resolved"""
    UNSUPPORTED = "unsupported"
    LOAD_FAILURE = "load_failure"


class DatasetResolutionError(EvalGaugeError):
    """Raised when a dataset locator cannot be resolved to a Dataset"""

    def __init__(self, locator: str, kind: ResolutionFailure, message: str) -> None:
        super().__init__(message)
        self.locator = locator
        self.kind = kind

    @classmethod
    def unsupported(cls, locator: str) -> DatasetResolutionError:
        return cls(locator, ResolutionFailure.UNSUPPORTED, f"No resolver found for locator: {locator}")

    @classmethod
    def load_failure(cls, locator: str, cause: BaseException | None = None) -> DatasetResolutionError:
        message = f"Failed to load dataset from: {locator}"
        if cause is not None:
            message = f"{message} ({cause})"
        return cls(locator, ResolutionFailure.LOAD_FAILURE, message)


class DatasetFormatError(EvalGaugeError, ValueError):
    """Raised when dataset content (JSON / JSONL / CSV) is malformed"""
    pass


# ---------------------------------------------------------------------------
# Evaluators
# ---------------------------------------------------------------------------


class EvaluatorConfigurationError(EvalGaugeError, ValueError):
    """Raised eagerly when an evaluator is constructed with an invalid configuration"""
    pass


class EvaluationError(EvalGaugeError):
    """Raised when an evaluator cannot produce a verdict for a test case"""
    pass


class JudgeResponseParseError(EvaluationError):
    """Raised when a judge response cannot be reduced to a numeric score"""

    def __init__(self, message: str, response: str = "") -> None:
        super().__init__(message)
        self.response = response


class EvaluationTimeoutError(EvaluationError):
    """Raised when a single evaluator call exceeds its time budget"""
    pass


# ---------------------------------------------------------------------------
# Experiments
# ---------------------------------------------------------------------------


class TaskExecutionError(EvalGaugeError):
    """Raised when the task under evaluation fails for an example (aborts the experiment)"""

    def __init__(self, example: Example, cause: BaseException) -> None:
        super().__init__(f"Task failed for input {example.input[:80]!r}: {cause}")
        self.example = example
        self.cause = cause


class ExperimentCancelledError(EvalGaugeError):
    """Raised when an experiment is cancelled before all examples were processed"""

    def __init__(self, experiment_name: str, completed_items: Sequence[ItemResult] = ()) -> None:
        super().__init__(
            f"Experiment '{experiment_name}' was cancelled after {len(completed_items)} item(s)"
        )
        self.experiment_name = experiment_name
        self.completed_items = tuple(completed_items)


# ---------------------------------------------------------------------------
# Run lifecycle
# ---------------------------------------------------------------------------


class RunStateError(EvalGaugeError):
    """Base exception for Run state machine violations"""
    pass


class RunClosedError(RunStateError):
    """Raised when items are appended to a Run that has reached a terminal status"""

    def __init__(self, run_id: Any, status: Any) -> None:
        super().__init__(f"Run {run_id} is closed (status={status}); no more items can be added")
        self.run_id = run_id
        self.status = status


class InvalidTransitionError(RunStateError):
    """Raised when a Run status transition is not allowed"""

    def __init__(self, current: Any, target: Any) -> None:
        super().__init__(f"Invalid run status transition: {current} -> {target}")
        self.current = current
        self.target = target


class RunNotFoundError(EvalGaugeError):
    """Raised when a run id is unknown"""
    pass


class ExperimentNotFoundError(EvalGaugeError):
    """Raised when an experiment id is unknown"""
    pass
