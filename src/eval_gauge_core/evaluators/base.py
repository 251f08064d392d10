"""
Evaluator contract

Defines the Evaluator interface, the validating BaseEvaluator, the test case fields an
evaluator can require, and the JudgeLM contract used by judge-based evaluators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Protocol, runtime_checkable

from eval_gauge_core.domain.entities import EvalTestCase
from eval_gauge_core.domain.exceptions import EvaluationError, EvaluatorConfigurationError
from eval_gauge_core.domain.value_objects import EvalResult


@runtime_checkable
class JudgeLM(Protocol):
    """Any language model usable as a judge: prompt in, text out"""

    def generate(self, prompt: str) -> str:
        ...


class FunctionJudge:
    """Adapts a plain callable (prompt -> text) to the JudgeLM contract"""

    def __init__(self, fn: Callable[[str], str]) -> None:
        if not callable(fn):
            raise TypeError("FunctionJudge requires a callable")
        self._fn = fn

    def generate(self, prompt: str) -> str:
        return self._fn(prompt)


def require_judge(judge: Any) -> JudgeLM:
    """Validate a judge argument eagerly (must expose generate(prompt))"""
    if judge is None:
        raise EvaluatorConfigurationError("A judge is required")
    if not callable(getattr(judge, "generate", None)):
        raise EvaluatorConfigurationError(
            f"Judge must provide a generate(prompt) method: {type(judge).__name__}"
        )
    return judge


class EvalParam(str, Enum):
    """Test case fields an evaluator can require"""
    INPUT = "input"
    ACTUAL_OUTPUT = "actual_output"
    EXPECTED_OUTPUT = "expected_output"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class Evaluator(ABC):
    """Scores one test case"""

    name: str
    threshold: float | None

    @abstractmethod
    def evaluate(self, test_case: EvalTestCase) -> EvalResult:
        """
        Evaluate a test case

        Raises:
            EvaluationError: When no verdict can be produced (never returned as score 0)
        """
        pass


class BaseEvaluator(Evaluator):
    """
    Evaluator with eager configuration validation and required-field checks

    Subclasses implement _run_evaluation. `higher_is_better` sets the comparison
    direction used by _result().
    """

    higher_is_better: bool = True

    def __init__(
        self,
        name: str,
        threshold: float,
        evaluation_params: Iterable[EvalParam] = (),
    ) -> None:
        if name is None or not str(name).strip():
            raise EvaluatorConfigurationError("Evaluator name must not be blank")
        if threshold is None or not 0.0 <= threshold <= 1.0:
            raise EvaluatorConfigurationError(
                f"Threshold must be between 0.0 and 1.0: {threshold}"
            )
        self.name = name
        self.threshold = float(threshold)
        self.evaluation_params: tuple[EvalParam, ...] = tuple(evaluation_params)

    def evaluate(self, test_case: EvalTestCase) -> EvalResult:
        self._validate_test_case(test_case)
        return self._run_evaluation(test_case)

    def _validate_test_case(self, test_case: EvalTestCase) -> None:
        for param in self.evaluation_params:
            if getattr(test_case, param.value) is None:
                raise EvaluationError(
                    f"{self.name} requires '{param.value}' but the test case has none"
                )

    @abstractmethod
    def _run_evaluation(self, test_case: EvalTestCase) -> EvalResult:
        pass

    def _passes(self, score: float) -> bool:
        if self.higher_is_better:
            return score >= self.threshold
        return score <= self.threshold

    def _result(
        self,
        score: float,
        reason: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> EvalResult:
        return EvalResult(
            name=self.name,
            score=score,
            success=self._passes(score),
            threshold=self.threshold,
            reason=reason,
            metadata=metadata or {},
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, threshold={self.threshold})"
