"""
Evaluators

Scoring strategies that turn an EvalTestCase into an EvalResult.
"""

from eval_gauge_core.evaluators.base import (
    BaseEvaluator,
    EvalParam,
    Evaluator,
    FunctionJudge,
    JudgeLM,
)
from eval_gauge_core.evaluators.contextual_relevance import ContextualRelevanceEvaluator
from eval_gauge_core.evaluators.exact_match import ExactMatchEvaluator
from eval_gauge_core.evaluators.faithfulness import FaithfulnessEvaluator
from eval_gauge_core.evaluators.hallucination import HallucinationEvaluator
from eval_gauge_core.evaluators.judge_response import parse_judge_response, parse_json_array
from eval_gauge_core.evaluators.llm_judge import LLMJudgeEvaluator
from eval_gauge_core.evaluators.matching import (
    LLMMatchingStrategy,
    MatchingStrategy,
    all_of,
    any_of,
    by_containment,
    by_equality,
    by_field,
    by_fields,
    by_identifier,
    case_insensitive,
    custom,
    llm_based,
)
from eval_gauge_core.evaluators.regex import RegexEvaluator
from eval_gauge_core.evaluators.retrieval import PrecisionEvaluator, RecallEvaluator
from eval_gauge_core.evaluators.text_normalizers import (
    identity,
    normalize_text,
    remove_markdown,
    strip,
    strip_casefold,
)

__all__ = [
    # contract
    "BaseEvaluator",
    "EvalParam",
    "Evaluator",
    "FunctionJudge",
    "JudgeLM",
    # built-ins
    "ContextualRelevanceEvaluator",
    "ExactMatchEvaluator",
    "FaithfulnessEvaluator",
    "HallucinationEvaluator",
    "LLMJudgeEvaluator",
    "PrecisionEvaluator",
    "RecallEvaluator",
    "RegexEvaluator",
    # matching strategies
    "LLMMatchingStrategy",
    "MatchingStrategy",
    "all_of",
    "any_of",
    "by_containment",
    "by_equality",
    "by_field",
    "by_fields",
    "by_identifier",
    "case_insensitive",
    "custom",
    "llm_based",
    # judge responses
    "parse_judge_response",
    "parse_json_array",
    # normalizers
    "identity",
    "normalize_text",
    "remove_markdown",
    "strip",
    "strip_casefold",
]
