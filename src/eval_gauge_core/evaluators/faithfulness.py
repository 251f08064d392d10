"""
Faithfulness evaluator

Judges whether the actual output is grounded in a retrieval context.
"""

from __future__ import annotations

from typing import Any

from eval_gauge_core.domain.constants import (
    DEFAULT_CONTEXT_KEY,
    FAITHFULNESS_NAME,
    FAITHFULNESS_THRESHOLD,
)
from eval_gauge_core.domain.entities import EvalTestCase
from eval_gauge_core.domain.exceptions import EvaluationError
from eval_gauge_core.domain.value_objects import EvalResult
from eval_gauge_core.evaluators.base import BaseEvaluator, EvalParam, require_judge
from eval_gauge_core.evaluators.judge_response import parse_judge_response
from eval_gauge_core.evaluators.llm_judge import RESPONSE_FORMAT_INSTRUCTION, normalize_score


def find_context(test_case: EvalTestCase, context_key: str, fallback_to_expected: bool = False) -> str | None:
    """
    Look up the retrieval context of a test case

    Order: actual_outputs[context_key], metadata[context_key], then the expected output
    when fallback_to_expected is set.
    """
    for source in (test_case.actual_outputs, test_case.metadata):
        value = source.get(context_key)
        if value is not None:
            return _context_text(value)
    if fallback_to_expected and test_case.expected_output is not None:
        return test_case.expected_output
    return None


def _context_text(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return "\n".join(f"- {v}" for v in value)
    return str(value)


class FaithfulnessEvaluator(BaseEvaluator):
    """Scores in [0, 1] how far every claim of the actual output is supported by the context"""

    CRITERIA_TEMPLATE = (
        "You are evaluating FAITHFULNESS. Extract every factual claim made in the OUTPUT "
        "and check each one against the CONTEXT. A claim is supported only if the CONTEXT "
        "states or directly implies it; claims that contradict the CONTEXT or add "
        "information not present in it are unsupported.\n"
        "Score = (number of supported claims) / (total claims). "
        "Use 1.0 if the OUTPUT makes no factual claims."
    )

    def __init__(
        self,
        judge: Any,
        name: str = FAITHFULNESS_NAME,
        threshold: float = FAITHFULNESS_THRESHOLD,
        context_key: str = DEFAULT_CONTEXT_KEY,
    ) -> None:
        super().__init__(name, threshold, (EvalParam.ACTUAL_OUTPUT,))
        self.judge = require_judge(judge)
        self.context_key = context_key

    def _build_prompt(self, test_case: EvalTestCase, context: str) -> str:
        parts = [
            self.CRITERIA_TEMPLATE,
            "",
            f"CONTEXT:\n{context}",
            "",
        ]
        if test_case.input is not None:
            parts.append(f"INPUT:\n{test_case.input}")
            parts.append("")
        parts.append(f"OUTPUT:\n{test_case.actual_output}")
        parts.append("")
        parts.append("Provide a score between 0 and 1, and a brief reasoning.")
        parts.append(RESPONSE_FORMAT_INSTRUCTION)
        return "\n".join(parts)

    def _run_evaluation(self, test_case: EvalTestCase) -> EvalResult:
        context = find_context(test_case, self.context_key, fallback_to_expected=True)
        if context is None:
            raise EvaluationError(
                f"{self.name} requires '{self.context_key}' in actual outputs or metadata, "
                "or an expected output"
            )
        response = self.judge.generate(self._build_prompt(test_case, context))
        verdict = parse_judge_response(response)
        score = normalize_score(verdict.score, (0.0, 1.0))
        return self._result(score, verdict.reason, metadata={"raw_score": verdict.score})
