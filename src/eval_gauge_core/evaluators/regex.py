"""
Regex evaluator
"""

from __future__ import annotations

import re

from eval_gauge_core.domain.constants import REGEX_NAME, REGEX_THRESHOLD
from eval_gauge_core.domain.entities import EvalTestCase
from eval_gauge_core.domain.exceptions import EvaluatorConfigurationError
from eval_gauge_core.domain.value_objects import EvalResult
from eval_gauge_core.evaluators.base import BaseEvaluator, EvalParam


class RegexEvaluator(BaseEvaluator):
    """Scores 1.0 when the pattern is found anywhere in the actual output"""

    def __init__(
        self,
        pattern: str,
        name: str = REGEX_NAME,
        threshold: float = REGEX_THRESHOLD,
        ignore_case: bool = False,
    ) -> None:
        super().__init__(name, threshold, (EvalParam.ACTUAL_OUTPUT,))
        if not pattern:
            raise EvaluatorConfigurationError("Regex pattern must not be empty")
        try:
            self._pattern = re.compile(pattern, re.IGNORECASE if ignore_case else 0)
        except re.error as e:
            raise EvaluatorConfigurationError(f"Invalid regex pattern {pattern!r}: {e}") from e

    @property
    def pattern(self) -> str:
        return self._pattern.pattern

    def _run_evaluation(self, test_case: EvalTestCase) -> EvalResult:
        if self._pattern.search(test_case.actual_output):
            return self._result(1.0, f"Output matches pattern: {self.pattern}")
        return self._result(0.0, f"Output does not match pattern: {self.pattern}")
