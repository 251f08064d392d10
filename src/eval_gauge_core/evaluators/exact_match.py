"""
Exact match evaluator
"""

from __future__ import annotations

from eval_gauge_core.domain.constants import EXACT_MATCH_NAME, EXACT_MATCH_THRESHOLD
from eval_gauge_core.domain.entities import EvalTestCase
from eval_gauge_core.domain.value_objects import EvalResult
from eval_gauge_core.evaluators.base import BaseEvaluator, EvalParam
from eval_gauge_core.evaluators.text_normalizers import Normalizer, identity


class ExactMatchEvaluator(BaseEvaluator):
    """
    Scores 1.0 when the normalized actual output equals the normalized expected output

    The default normalizer is identity, so whitespace and case are significant unless a
    normalizer such as `strip_casefold` or `normalize_text` is supplied.
    """

    def __init__(
        self,
        name: str = EXACT_MATCH_NAME,
        threshold: float = EXACT_MATCH_THRESHOLD,
        normalizer: Normalizer | None = None,
    ) -> None:
        super().__init__(
            name,
            threshold,
            (EvalParam.ACTUAL_OUTPUT, EvalParam.EXPECTED_OUTPUT),
        )
        self._normalize = normalizer or identity

    def _run_evaluation(self, test_case: EvalTestCase) -> EvalResult:
        matched = self._normalize(test_case.actual_output) == self._normalize(test_case.expected_output)
        if matched:
            return self._result(1.0, "Output matches expected output")
        return self._result(0.0, "Output does not match expected output")
