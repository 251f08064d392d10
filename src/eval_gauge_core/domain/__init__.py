"""
Domain Layer

Defines constants, entities, value objects, and exceptions that form the core of the
evaluation harness. Has no dependencies on external libraries.
"""

from eval_gauge_core.domain.constants import (
    DEFAULT_CONTEXT_KEY,
    DEFAULT_PROJECT,
    DEFAULT_TREND_LIMIT,
    PRIMARY_OUTPUT_KEY,
)
from eval_gauge_core.domain.entities import (
    Dataset,
    EvalTestCase,
    Example,
    ExperimentRecord,
    ExperimentResult,
    ExperimentSummary,
    HealthCheckResult,
    ItemResult,
    Run,
    RunDetails,
    RunItem,
    RunPoint,
    TrendData,
)
from eval_gauge_core.domain.exceptions import (
    DatasetFormatError,
    DatasetResolutionError,
    EvalGaugeError,
    EvaluationError,
    EvaluationTimeoutError,
    EvaluatorConfigurationError,
    ExperimentCancelledError,
    ExperimentNotFoundError,
    InvalidTransitionError,
    JudgeResponseParseError,
    ResolutionFailure,
    RunClosedError,
    RunNotFoundError,
    RunStateError,
    TaskExecutionError,
)
from eval_gauge_core.domain.value_objects import (
    EvalResult,
    JudgeVerdict,
    ModelResponse,
    RunStatus,
    transition,
)

__all__ = [
    # constants
    "DEFAULT_CONTEXT_KEY",
    "DEFAULT_PROJECT",
    "DEFAULT_TREND_LIMIT",
    "PRIMARY_OUTPUT_KEY",
    # entities
    "Dataset",
    "EvalTestCase",
    "Example",
    "ExperimentRecord",
    "ExperimentResult",
    "ExperimentSummary",
    "HealthCheckResult",
    "ItemResult",
    "Run",
    "RunDetails",
    "RunItem",
    "RunPoint",
    "TrendData",
    # exceptions
    "DatasetFormatError",
    "DatasetResolutionError",
    "EvalGaugeError",
    "EvaluationError",
    "EvaluationTimeoutError",
    "EvaluatorConfigurationError",
    "ExperimentCancelledError",
    "ExperimentNotFoundError",
    "InvalidTransitionError",
    "JudgeResponseParseError",
    "ResolutionFailure",
    "RunClosedError",
    "RunNotFoundError",
    "RunStateError",
    "TaskExecutionError",
    # value objects
    "EvalResult",
    "JudgeVerdict",
    "ModelResponse",
    "RunStatus",
    "transition",
]
