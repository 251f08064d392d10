"""
ContextualRelevanceEvaluator のテスト
"""

import pytest

from eval_gauge_core.domain.entities import EvalTestCase
from eval_gauge_core.domain.exceptions import EvaluationError, JudgeResponseParseError
from eval_gauge_core.evaluators.contextual_relevance import ContextualRelevanceEvaluator


class SequenceJudge:
    """呼び出し順にレスポンスを返すjudge"""

    def __init__(self, *responses: str):
        self._responses = list(responses)
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self._responses.pop(0)


def _case(context, key="context", in_metadata=False):
    outputs = {"output": "Paris"}
    metadata = {}
    if context is not None:
        (metadata if in_metadata else outputs)[key] = context
    return EvalTestCase(
        input="What is the capital of France?",
        actual_output="Paris",
        metadata=metadata,
        actual_outputs=outputs,
    )


CHUNKS = ["Paris is the capital of France.", "Bananas are rich in potassium."]


class TestContextualRelevanceEvaluator:
    """ContextualRelevanceEvaluator のテスト"""

    def test_mean_of_chunk_scores(self):
        judge = SequenceJudge(
            '{"score": 1.0, "reason": "Directly answers"}',
            '{"score": 0.0, "reason": "Unrelated"}',
            "Half of the retrieved context is relevant.",
        )
        result = ContextualRelevanceEvaluator(judge).evaluate(_case(CHUNKS))

        assert result.name == "Contextual Relevance"
        assert result.score == pytest.approx(0.5)
        assert result.success is True
        assert result.reason == "Half of the retrieved context is relevant."
        scores = result.metadata["contextScores"]
        assert [s["score"] for s in scores] == [1.0, 0.0]
        assert scores[1] == {"context": CHUNKS[1], "score": 0.0, "reason": "Unrelated"}

    def test_chunk_prompt_contains_query_and_context(self):
        judge = SequenceJudge('{"score": 0.8, "reason": "ok"}', "summary")
        ContextualRelevanceEvaluator(judge).evaluate(_case("Paris is in France."))
        assert "USER QUERY: What is the capital of France?" in judge.prompts[0]
        assert "CONTEXT: Paris is in France." in judge.prompts[0]

    def test_summary_prompt_groups_chunks(self):
        judge = SequenceJudge('{"score": 0.9}', '{"score": 0.4}', '{"score": 0.1}', "summary")
        ContextualRelevanceEvaluator(judge).evaluate(_case(["a", "b", "c"]))
        summary_prompt = judge.prompts[3]
        assert "HIGHLY RELEVANT: Context 1 (score: 0.90)" in summary_prompt
        assert "PARTIALLY RELEVANT: Context 2 (score: 0.40)" in summary_prompt
        assert "IRRELEVANT: Context 3 (score: 0.10)" in summary_prompt
        assert "Context 1: score=0.90, reason=No reason provided" in summary_prompt

    def test_scores_are_clamped(self):
        judge = SequenceJudge('{"score": 1.7, "reason": "very"}')
        result = ContextualRelevanceEvaluator(judge, include_reason=False).evaluate(_case("ctx"))
        assert result.score == 1.0
        assert result.reason is None

    def test_context_from_metadata(self):
        judge = SequenceJudge('{"score": 0.6}')
        result = ContextualRelevanceEvaluator(judge, include_reason=False).evaluate(
            _case(["ctx"], in_metadata=True)
        )
        assert result.score == pytest.approx(0.6)

    def test_empty_context_scores_zero(self):
        judge = SequenceJudge()
        result = ContextualRelevanceEvaluator(judge).evaluate(_case([]))
        assert result.score == 0.0
        assert result.success is False
        assert result.reason == "No retrieval context provided to evaluate."
        assert judge.prompts == []

    def test_strict_mode_requires_perfect_score(self):
        judge = SequenceJudge('{"score": 0.9}')
        evaluator = ContextualRelevanceEvaluator(judge, strict_mode=True, include_reason=False)
        assert evaluator.threshold == 1.0
        assert evaluator.evaluate(_case("ctx")).success is False

    def test_missing_context_raises(self):
        with pytest.raises(EvaluationError, match="'context'"):
            ContextualRelevanceEvaluator(SequenceJudge()).evaluate(_case(None))

    def test_invalid_context_type_raises(self):
        with pytest.raises(EvaluationError, match="list of strings or a string"):
            ContextualRelevanceEvaluator(SequenceJudge()).evaluate(_case({"a": 1}))

    def test_unparsable_chunk_reply_raises(self):
        judge = SequenceJudge("I cannot tell")
        with pytest.raises(JudgeResponseParseError):
            ContextualRelevanceEvaluator(judge).evaluate(_case("ctx"))
