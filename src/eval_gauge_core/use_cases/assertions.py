"""
Assertions

Test-framework friendly helper: evaluate a single test case and fail loudly.
"""

from __future__ import annotations

from typing import Iterable

from eval_gauge_core.domain.entities import EvalTestCase
from eval_gauge_core.domain.value_objects import EvalResult
from eval_gauge_core.evaluators.base import Evaluator


def _describe(result: EvalResult) -> str:
    threshold = "n/a" if result.threshold is None else f"{result.threshold:g}"
    message = f"Evaluation '{result.name}' failed: score={result.score:g}, threshold={threshold}"
    if result.reason:
        message += f", reason: {result.reason}"
    return message


def assert_eval(test_case: EvalTestCase, evaluators: Iterable[Evaluator]) -> list[EvalResult]:
    """
    Run every evaluator on a test case and assert that all succeed

    Evaluators run in order; evaluation stops at the first failure.

    Returns:
        list[EvalResult]: Results of all evaluators (when all succeeded)

    Raises:
        AssertionError: Naming the first failing evaluator with score, threshold and reason
        EvaluationError: If an evaluator cannot produce a verdict
    """
    results = []
    for evaluator in evaluators:
        result = evaluator.evaluate(test_case)
        if not result.success:
            raise AssertionError(_describe(result))
        results.append(result)
    return results
