"""
LLM judge evaluator

Uses a separate model (the judge) to score a test case against free-form criteria.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from eval_gauge_core.domain.constants import LLM_JUDGE_THRESHOLD
from eval_gauge_core.domain.entities import EvalTestCase
from eval_gauge_core.domain.exceptions import EvaluatorConfigurationError
from eval_gauge_core.domain.value_objects import EvalResult
from eval_gauge_core.evaluators.base import BaseEvaluator, EvalParam, require_judge
from eval_gauge_core.evaluators.judge_response import parse_judge_response

logger = logging.getLogger(__name__)

RESPONSE_FORMAT_INSTRUCTION = 'Respond in JSON format: {"score": <number>, "reason": "<explanation>"}'


def _format_number(value: float) -> str:
    return f"{value:g}"


def normalize_score(raw: float, score_range: tuple[float, float]) -> float:
    """Clamp a raw score to score_range and map it onto [0, 1]"""
    low, high = score_range
    clamped = max(low, min(high, raw))
    return (clamped - low) / (high - low)


class LLMJudgeEvaluator(BaseEvaluator):
    """
    Evaluator that asks a judge model to score a test case against criteria

    The judge is asked for a score within `score_range`. The parsed score is clamped to
    that range and normalized to [0, 1] before the threshold is applied; the unmodified
    value is kept in metadata["raw_score"].
    """

    def __init__(
        self,
        name: str,
        criteria: str,
        judge: Any,
        evaluation_params: Iterable[EvalParam] = (EvalParam.INPUT, EvalParam.ACTUAL_OUTPUT),
        threshold: float = LLM_JUDGE_THRESHOLD,
        score_range: tuple[float, float] = (0.0, 1.0),
    ) -> None:
        params = tuple(evaluation_params)
        if not params:
            raise EvaluatorConfigurationError("LLM judge requires at least one evaluation param")
        if criteria is None or not criteria.strip():
            raise EvaluatorConfigurationError("LLM judge criteria must not be blank")
        low, high = score_range
        if not low < high:
            raise EvaluatorConfigurationError(
                f"score_range minimum must be below maximum: {score_range}"
            )
        super().__init__(name, threshold, params)
        self.judge = require_judge(judge)
        self.criteria = criteria
        self.score_range = (float(low), float(high))

    def _build_prompt(self, test_case: EvalTestCase) -> str:
        parts: list[str] = [
            f"Evaluate the following based on this criteria: {self.criteria}",
            "",
        ]
        for param in self.evaluation_params:
            parts.append(f"{param.label}: {getattr(test_case, param.value)}")
        low, high = self.score_range
        parts.append("")
        parts.append(
            f"Provide a score between {_format_number(low)} and {_format_number(high)}, "
            "and a brief reasoning."
        )
        parts.append(RESPONSE_FORMAT_INSTRUCTION)
        return "\n".join(parts)

    def _run_evaluation(self, test_case: EvalTestCase) -> EvalResult:
        prompt = self._build_prompt(test_case)
        response = self.judge.generate(prompt)
        verdict = parse_judge_response(response)
        score = normalize_score(verdict.score, self.score_range)
        logger.debug("%s judged raw=%s normalized=%.3f", self.name, verdict.score, score)
        return self._result(
            score,
            verdict.reason,
            metadata={"raw_score": verdict.score},
        )
