"""
Domain Entities

Defines the primary data structures used in the evaluation process:
examples, datasets, test cases, item/experiment results, and persisted runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator, Mapping, Sequence

from eval_gauge_core.domain.constants import PRIMARY_OUTPUT_KEY
from eval_gauge_core.domain.value_objects import EvalResult, RunStatus, freeze_mapping


@dataclass(frozen=True)
class EvalTestCase:
    """An example enriched with the actual output produced by the task"""

    input: str | None
    actual_output: str | None
    expected_output: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    actual_outputs: Mapping[str, Any] = field(default_factory=dict)  # All named task outputs

    def __post_init__(self):
        object.__setattr__(self, "metadata", freeze_mapping(self.metadata))
        object.__setattr__(self, "actual_outputs", freeze_mapping(self.actual_outputs))


@dataclass(frozen=True)
class Example:
    """One labeled input / expected-output record of a dataset"""

    input: str
    expected_output: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "metadata", freeze_mapping(self.metadata))

    def to_test_case(
        self,
        actual_outputs: Mapping[str, Any],
        primary_output_key: str = PRIMARY_OUTPUT_KEY,
    ) -> EvalTestCase:
        """Build the test case for this example from the task's outputs"""
        actual = actual_outputs.get(primary_output_key)
        return EvalTestCase(
            input=self.input,
            actual_output=None if actual is None else str(actual),
            expected_output=self.expected_output,
            metadata=self.metadata,
            actual_outputs=actual_outputs,
        )


@dataclass(frozen=True)
class Dataset:
    """Named, ordered, immutable collection of examples"""

    name: str = "unnamed"
    examples: Sequence[Example] = ()
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, "examples", tuple(self.examples))

    def __iter__(self) -> Iterator[Example]:
        return iter(self.examples)

    def __len__(self) -> int:
        return len(self.examples)

    def __getitem__(self, index: int) -> Example:
        return self.examples[index]


@dataclass(frozen=True)
class ItemResult:
    """Outcome of running one example through the task and all evaluators"""

    example: Example
    actual_outputs: Mapping[str, Any]
    eval_results: Sequence[EvalResult] = ()

    def __post_init__(self):
        object.__setattr__(self, "actual_outputs", freeze_mapping(self.actual_outputs))
        object.__setattr__(self, "eval_results", tuple(self.eval_results))

    @property
    def success(self) -> bool:
        """True when every evaluator succeeded (vacuously true without evaluators)"""
        return all(r.success for r in self.eval_results)

    def result_for(self, evaluator_name: str) -> EvalResult | None:
        for result in self.eval_results:
            if result.name == evaluator_name:
                return result
        return None


@dataclass(frozen=True)
class ExperimentResult:
    """Aggregated outcome of one experiment over a whole dataset"""

    name: str
    item_results: Sequence[ItemResult] = ()
    description: str = ""
    metadata: Mapping[str, Any] = field(default_factory=dict)
    run_id: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "item_results", tuple(self.item_results))
        object.__setattr__(self, "metadata", freeze_mapping(self.metadata))

    @property
    def total_count(self) -> int:
        return len(self.item_results)

    @property
    def pass_count(self) -> int:
        return sum(1 for item in self.item_results if item.success)

    @property
    def fail_count(self) -> int:
        return self.total_count - self.pass_count

    @property
    def pass_rate(self) -> float:
        """Share of successful items (0.0 for an empty dataset)"""
        if self.total_count == 0:
            return 0.0
        return self.pass_count / self.total_count

    def average_score(self, evaluator_name: str) -> float:
        """
        Mean score of one evaluator across the items that include it

        Errored results carry no score and are skipped.
        Returns 0.0 when no item has a scored result for the evaluator.
        """
        scores = [
            r.score
            for item in self.item_results
            for r in item.eval_results
            if r.name == evaluator_name and not r.errored
        ]
        if not scores:
            return 0.0
        return sum(scores) / len(scores)

    def evaluator_names(self) -> list[str]:
        """Evaluator names in first-seen order"""
        names: dict[str, None] = {}
        for item in self.item_results:
            for r in item.eval_results:
                names.setdefault(r.name, None)
        return list(names)


@dataclass
class HealthCheckResult:
    """Health check result"""
    model_name: str
    success: bool
    latency_ms: int | None
    error: str | None


# ---------------------------------------------------------------------------
# Persisted runs
# ---------------------------------------------------------------------------


def _first_text(values: Mapping[str, Any], keys: Sequence[str]) -> str | None:
    for key in keys:
        if key in values:
            value = values[key]
            return None if value is None else str(value)
    return None


@dataclass(frozen=True)
class RunItem:
    """An item as persisted under a Run"""

    id: str
    inputs: Mapping[str, Any]
    expected_outputs: Mapping[str, Any]
    actual_outputs: Mapping[str, Any]
    eval_results: Sequence[EvalResult]
    success: bool
    metadata: Mapping[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None

    def __post_init__(self):
        object.__setattr__(self, "inputs", freeze_mapping(self.inputs))
        object.__setattr__(self, "expected_outputs", freeze_mapping(self.expected_outputs))
        object.__setattr__(self, "actual_outputs", freeze_mapping(self.actual_outputs))
        object.__setattr__(self, "metadata", freeze_mapping(self.metadata))
        object.__setattr__(self, "eval_results", tuple(self.eval_results))

    @property
    def input(self) -> str | None:
        return _first_text(self.inputs, ("input", "text", "content", "value"))

    @property
    def expected_output(self) -> str | None:
        return _first_text(self.expected_outputs, ("output", "text", "content", "value"))

    @property
    def actual_output(self) -> str | None:
        return _first_text(self.actual_outputs, ("output", "text", "content", "value"))


@dataclass(frozen=True)
class ExperimentRecord:
    """A named experiment within a project; groups runs for trend tracking"""
    id: str
    project: str
    name: str
    created_at: datetime


@dataclass
class Run:
    """
    One persisted execution of an experiment

    Mutated only through RunTracker, which serialises access and enforces the
    RUNNING -> terminal state machine.
    """
    id: str
    experiment_id: str
    started_at: datetime
    status: RunStatus = RunStatus.RUNNING
    config: dict[str, Any] = field(default_factory=dict)
    completed_at: datetime | None = None
    total_items: int = 0
    passed_items: int = 0
    expected_items: int | None = None  # Dataset size when known at creation
    items: list[RunItem] = field(default_factory=list)

    @property
    def pass_rate(self) -> float:
        if self.total_items == 0:
            return 0.0
        return self.passed_items / self.total_items


@dataclass(frozen=True)
class RunPoint:
    """One completed run as a point on a trend line"""
    run_id: str
    started_at: datetime
    pass_rate: float
    total_items: int
    passed_items: int


@dataclass(frozen=True)
class TrendData:
    """Time-ordered (oldest first) run points for one experiment"""
    experiment_name: str
    runs: Sequence[RunPoint] = ()

    def __post_init__(self):
        object.__setattr__(self, "runs", tuple(self.runs))

    @property
    def pass_rate_delta(self) -> float:
        """Latest pass rate minus the earliest one (0.0 with fewer than two runs)"""
        if len(self.runs) < 2:
            return 0.0
        return self.runs[-1].pass_rate - self.runs[0].pass_rate


@dataclass(frozen=True)
class ExperimentSummary:
    """An experiment together with its most recent run, if any"""
    experiment: ExperimentRecord
    latest_run_id: str | None = None
    latest_status: RunStatus | None = None
    latest_pass_rate: float | None = None  # None while the latest run is still RUNNING
    latest_started_at: datetime | None = None


@dataclass(frozen=True)
class RunDetails:
    """A run together with one page of its items"""
    run: Run
    experiment_name: str
    project: str
    items: Sequence[RunItem]
    page: int
    size: int

    @property
    def total_elements(self) -> int:
        return self.run.total_items

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return (self.total_elements + self.size - 1) // self.size
