"""
Hallucination evaluator

Breaks the actual output into statements and has the judge mark each one as supported
by the context or not. The score is the share of unsupported statements, so lower is better.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from eval_gauge_core.domain.constants import (
    DEFAULT_CONTEXT_KEY,
    HALLUCINATION_NAME,
    HALLUCINATION_THRESHOLD,
)
from eval_gauge_core.domain.entities import EvalTestCase
from eval_gauge_core.domain.exceptions import EvaluationError, JudgeResponseParseError
from eval_gauge_core.domain.value_objects import EvalResult
from eval_gauge_core.evaluators.base import BaseEvaluator, EvalParam, require_judge
from eval_gauge_core.evaluators.faithfulness import find_context
from eval_gauge_core.evaluators.judge_response import parse_json_array

logger = logging.getLogger(__name__)

_VERDICTS_PROMPT = """Given the CONTEXT and the ACTUAL OUTPUT, determine whether each statement in the actual output is factually aligned with the context.

CONTEXT: {context}

ACTUAL OUTPUT: {actual_output}

Break down the actual output into individual statements and for each statement determine:
- verdict: "yes" if the statement is supported by the context, "no" if it contradicts or is not supported by the context
- reason: a brief explanation for the verdict

Respond ONLY as a JSON array in the following format, without markdown formatting or extra text:
[{{"verdict": "yes", "reason": "..."}}, {{"verdict": "no", "reason": "..."}}]"""

_SUMMARY_PROMPT = """Summarize the hallucination evaluation results into exactly one brief sentence.
Focus on the primary reasons for hallucinations if any were detected.

Factual Alignments: {alignments}
Contradictions: {contradictions}
Score: {score:.2f}

One-sentence summary:"""


def _verdict_of(entry: Any, index: int, raw: str) -> tuple[bool, str]:
    """Return (supported, reason) for one verdict entry"""
    if not isinstance(entry, Mapping) or not isinstance(entry.get("verdict"), str):
        raise JudgeResponseParseError(
            f"Verdict {index} must be an object with a string 'verdict'", response=raw
        )
    verdict = entry["verdict"].strip().lower()
    if verdict not in ("yes", "no"):
        raise JudgeResponseParseError(
            f"Verdict {index} must be 'yes' or 'no', got {entry['verdict']!r}", response=raw
        )
    return verdict == "yes", str(entry.get("reason") or "")


class HallucinationEvaluator(BaseEvaluator):
    """Scores the fraction of statements not supported by the context (success: score <= threshold)"""

    higher_is_better = False

    def __init__(
        self,
        judge: Any,
        name: str = HALLUCINATION_NAME,
        threshold: float = HALLUCINATION_THRESHOLD,
        context_key: str = DEFAULT_CONTEXT_KEY,
        include_reason: bool = True,
    ) -> None:
        super().__init__(name, threshold, (EvalParam.ACTUAL_OUTPUT,))
        self.judge = require_judge(judge)
        self.context_key = context_key
        self.include_reason = include_reason

    def _run_evaluation(self, test_case: EvalTestCase) -> EvalResult:
        context = find_context(test_case, self.context_key)
        if context is None:
            raise EvaluationError(
                f"{self.name} requires '{self.context_key}' in actual outputs or metadata"
            )

        raw = self.judge.generate(
            _VERDICTS_PROMPT.format(context=context, actual_output=test_case.actual_output)
        )
        verdicts = [_verdict_of(entry, i, raw) for i, entry in enumerate(parse_json_array(raw))]

        if verdicts:
            unsupported = sum(1 for supported, _ in verdicts if not supported)
            score = unsupported / len(verdicts)
        else:
            score = 0.0

        reason = self._summarize(verdicts, score) if self.include_reason else None
        return self._result(
            score,
            reason,
            metadata={
                "statements": len(verdicts),
                "unsupported": sum(1 for supported, _ in verdicts if not supported),
            },
        )

    def _summarize(self, verdicts: list[tuple[bool, str]], score: float) -> str:
        if not verdicts:
            return "No statements were found to evaluate."
        alignments = "; ".join(reason for supported, reason in verdicts if supported) or "None"
        contradictions = "; ".join(reason for supported, reason in verdicts if not supported) or "None"
        prompt = _SUMMARY_PROMPT.format(
            alignments=alignments, contradictions=contradictions, score=score
        )
        return self.judge.generate(prompt).strip()
