"""
Retrieval evaluators

Precision and recall of a retrieval step. The retrieved items come from the task
outputs, the relevant items from the example metadata (extra dataset fields land
there). Items are paired by a MatchingStrategy, equality by default.
"""

from __future__ import annotations

from typing import Any, Mapping

from eval_gauge_core.domain.constants import (
    DEFAULT_RELEVANT_KEY,
    DEFAULT_RETRIEVED_KEY,
    PRECISION_NAME,
    RECALL_NAME,
    RETRIEVAL_THRESHOLD,
)
from eval_gauge_core.domain.entities import EvalTestCase
from eval_gauge_core.domain.exceptions import EvaluationError
from eval_gauge_core.domain.value_objects import EvalResult
from eval_gauge_core.evaluators.base import BaseEvaluator, EvalParam
from eval_gauge_core.evaluators.matching import MatchingStrategy, Predicate, as_strategy, by_equality


def _as_items(value: Any) -> list:
    """Sequences and sets become lists; anything else is a single item"""
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


class _RetrievalEvaluator(BaseEvaluator):

    def __init__(
        self,
        name: str,
        threshold: float,
        retrieved_key: str,
        relevant_key: str,
        matching: MatchingStrategy | Predicate | None,
    ) -> None:
        super().__init__(name, threshold, (EvalParam.INPUT,))
        self.retrieved_key = retrieved_key
        self.relevant_key = relevant_key
        self.matching = by_equality() if matching is None else as_strategy(matching)

    def _collect(self, source: Mapping[str, Any], key: str, where: str) -> list:
        value = source.get(key)
        if value is None:
            raise EvaluationError(f"{self.name} requires '{key}' in {where}")
        return _as_items(value)

    def _items(self, test_case: EvalTestCase) -> tuple[list, list]:
        retrieved = self._collect(test_case.actual_outputs, self.retrieved_key, "the task outputs")
        relevant = self._collect(test_case.metadata, self.relevant_key, "the example metadata")
        return retrieved, relevant

    def _scored(self, score: float, reason: str, retrieved: list, relevant: list, hits: int) -> EvalResult:
        return self._result(
            score,
            reason,
            metadata={"retrieved": len(retrieved), "relevant": len(relevant), "truePositives": hits},
        )


class PrecisionEvaluator(_RetrievalEvaluator):
    """
    Share of retrieved items that are relevant

    An empty retrieval scores 1.0 (nothing irrelevant was returned).
    """

    def __init__(
        self,
        name: str = PRECISION_NAME,
        threshold: float = RETRIEVAL_THRESHOLD,
        retrieved_key: str = DEFAULT_RETRIEVED_KEY,
        relevant_key: str = DEFAULT_RELEVANT_KEY,
        matching: MatchingStrategy | Predicate | None = None,
    ) -> None:
        super().__init__(name, threshold, retrieved_key, relevant_key, matching)

    def _run_evaluation(self, test_case: EvalTestCase) -> EvalResult:
        retrieved, relevant = self._items(test_case)
        if not retrieved:
            return self._scored(
                1.0, "No items were retrieved. Precision is 1.0 by convention.", retrieved, relevant, 0
            )

        hits = self.matching.count_matches(retrieved, relevant)
        precision = hits / len(retrieved)
        if hits == len(retrieved):
            reason = f"All {len(retrieved)} retrieved items are relevant (perfect precision)."
        elif hits == 0:
            reason = f"None of the {len(retrieved)} retrieved items are relevant."
        else:
            reason = (
                f"Retrieved {len(retrieved)} items: {hits} relevant, {len(retrieved) - hits} irrelevant. "
                f"Precision: {precision * 100:.1f}%"
            )
        return self._scored(precision, reason, retrieved, relevant, hits)


class RecallEvaluator(_RetrievalEvaluator):
    """
    Share of relevant items that were retrieved

    Each relevant item counts once however many retrieved items match it. An
    empty ground truth scores 1.0 (there was nothing to miss).
    """

    def __init__(
        self,
        name: str = RECALL_NAME,
        threshold: float = RETRIEVAL_THRESHOLD,
        retrieved_key: str = DEFAULT_RETRIEVED_KEY,
        relevant_key: str = DEFAULT_RELEVANT_KEY,
        matching: MatchingStrategy | Predicate | None = None,
    ) -> None:
        super().__init__(name, threshold, retrieved_key, relevant_key, matching)

    def _run_evaluation(self, test_case: EvalTestCase) -> EvalResult:
        retrieved, relevant = self._items(test_case)
        if not relevant:
            return self._scored(
                1.0, "No relevant items in ground truth. Recall is 1.0 by convention.", retrieved, relevant, 0
            )

        found = self.matching.count_found(retrieved, relevant)
        recall = found / len(relevant)
        if found == len(relevant):
            reason = f"All {len(relevant)} relevant items were retrieved (perfect recall)."
        elif found == 0:
            reason = f"None of the {len(relevant)} relevant items were retrieved."
        else:
            reason = (
                f"Found {found} of {len(relevant)} relevant items ({len(relevant) - found} missed). "
                f"Recall: {recall * 100:.1f}%"
            )
        return self._scored(recall, reason, retrieved, relevant, found)
