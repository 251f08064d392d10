"""
Contextual relevance evaluator

Has the judge score how relevant each retrieved context chunk is to the input.
The result is the mean chunk score.
"""

from __future__ import annotations

import logging
from typing import Any

from eval_gauge_core.domain.constants import (
    CONTEXTUAL_RELEVANCE_NAME,
    CONTEXTUAL_RELEVANCE_THRESHOLD,
    DEFAULT_CONTEXT_KEY,
)
from eval_gauge_core.domain.entities import EvalTestCase
from eval_gauge_core.domain.exceptions import EvaluationError
from eval_gauge_core.domain.value_objects import EvalResult
from eval_gauge_core.evaluators.base import BaseEvaluator, EvalParam, require_judge
from eval_gauge_core.evaluators.judge_response import parse_judge_response
from eval_gauge_core.evaluators.llm_judge import normalize_score

logger = logging.getLogger(__name__)

_CHUNK_PROMPT = """Evaluate how relevant the following CONTEXT is to answering the USER QUERY.

USER QUERY: {query}

CONTEXT: {context}

Score the relevance from 0.0 to 1.0 where:
- 1.0 = Highly relevant, directly addresses the query
- 0.7-0.9 = Mostly relevant, contains useful information for the query
- 0.4-0.6 = Partially relevant, some connection to the query
- 0.1-0.3 = Minimally relevant, weak connection to the query
- 0.0 = Completely irrelevant, no connection to the query

Respond ONLY as a JSON object in the following format, without markdown formatting or extra text:
{{"score": <number between 0.0 and 1.0>, "reason": "<brief explanation>"}}"""

_SUMMARY_PROMPT = """Summarize the contextual relevance evaluation into exactly one brief sentence.

USER QUERY: {query}
FINAL SCORE: {score:.3f}
TOTAL CONTEXTS: {total}

HIGHLY RELEVANT: {high}
PARTIALLY RELEVANT: {partial}
IRRELEVANT: {irrelevant}

INDIVIDUAL SCORES:
{scores}

One-sentence summary explaining the overall relevance of the retrieved contexts:"""

# Chunk score bands used in the summary prompt
HIGHLY_RELEVANT = 0.7
PARTIALLY_RELEVANT = 0.3


class ContextualRelevanceEvaluator(BaseEvaluator):
    """
    Mean judge-assigned relevance of the retrieval context chunks to the input

    The context is read from actual_outputs[context_key], then metadata[context_key].
    A string is one chunk; a list holds one chunk per entry. An empty list scores 0.0.
    strict_mode raises the threshold to 1.0.
    """

    def __init__(
        self,
        judge: Any,
        name: str = CONTEXTUAL_RELEVANCE_NAME,
        threshold: float = CONTEXTUAL_RELEVANCE_THRESHOLD,
        context_key: str = DEFAULT_CONTEXT_KEY,
        include_reason: bool = True,
        strict_mode: bool = False,
    ) -> None:
        super().__init__(name, 1.0 if strict_mode else threshold, (EvalParam.INPUT,))
        self.judge = require_judge(judge)
        self.context_key = context_key
        self.include_reason = include_reason

    def _chunks(self, test_case: EvalTestCase) -> list[str]:
        for source in (test_case.actual_outputs, test_case.metadata):
            value = source.get(self.context_key)
            if value is None:
                continue
            if isinstance(value, str):
                return [value]
            if isinstance(value, (list, tuple)):
                return [str(v) for v in value]
            raise EvaluationError(
                f"Expected '{self.context_key}' to be a list of strings or a string, "
                f"got {type(value).__name__}"
            )
        raise EvaluationError(
            f"{self.name} requires '{self.context_key}' in actual outputs or metadata"
        )

    def _score_chunk(self, query: str, context: str) -> dict:
        reply = self.judge.generate(_CHUNK_PROMPT.format(query=query, context=context))
        verdict = parse_judge_response(reply)
        return {
            "context": context,
            "score": normalize_score(verdict.score, (0.0, 1.0)),
            "reason": verdict.reason or "No reason provided",
        }

    def _run_evaluation(self, test_case: EvalTestCase) -> EvalResult:
        chunks = self._chunks(test_case)
        if not chunks:
            return self._result(
                0.0, "No retrieval context provided to evaluate.", metadata={"contextScores": []}
            )

        scored = [self._score_chunk(test_case.input, chunk) for chunk in chunks]
        score = sum(s["score"] for s in scored) / len(scored)
        logger.debug("%s scored %d chunk(s): mean %.3f", self.name, len(scored), score)

        reason = self._summarize(test_case.input, scored, score) if self.include_reason else None
        return self._result(score, reason, metadata={"contextScores": scored})

    def _summarize(self, query: str, scored: list[dict], score: float) -> str:
        bands: dict[str, list[str]] = {"high": [], "partial": [], "irrelevant": []}
        for i, entry in enumerate(scored, start=1):
            label = f"Context {i} (score: {entry['score']:.2f})"
            if entry["score"] >= HIGHLY_RELEVANT:
                bands["high"].append(label)
            elif entry["score"] >= PARTIALLY_RELEVANT:
                bands["partial"].append(label)
            else:
                bands["irrelevant"].append(label)

        prompt = _SUMMARY_PROMPT.format(
            query=query,
            score=score,
            total=len(scored),
            high=", ".join(bands["high"]) or "None",
            partial=", ".join(bands["partial"]) or "None",
            irrelevant=", ".join(bands["irrelevant"]) or "None",
            scores="\n".join(
                f"Context {i}: score={e['score']:.2f}, reason={e['reason']}"
                for i, e in enumerate(scored, start=1)
            ),
        )
        return self.judge.generate(prompt).strip()
