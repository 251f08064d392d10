"""
Matching strategies

Decide whether a retrieved item corresponds to an expected item. Used by the
retrieval evaluators (precision / recall) to count hits between two collections.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Iterable, Mapping, Sequence

from eval_gauge_core.evaluators.base import require_judge
from eval_gauge_core.evaluators.text_normalizers import remove_markdown

logger = logging.getLogger(__name__)

Predicate = Callable[[Any, Any], bool]

_LLM_MATCH_PROMPT = """Determine if the following two items represent the same information or are semantically equivalent.

RETRIEVED ITEM:
{retrieved}

EXPECTED ITEM:
{expected}

Consider them a match if:
- They refer to the same document, entity, or concept
- One is a paraphrase or reformatting of the other
- They contain the same essential information

Respond with ONLY "yes" or "no"."""


class MatchingStrategy:
    """
    A named (retrieved, expected) -> bool predicate

    Instances are callable, so a plain function with the same signature can be
    used wherever a strategy is expected (see as_strategy()).
    """

    def __init__(self, predicate: Predicate, description: str = "custom"):
        if not callable(predicate):
            raise TypeError("MatchingStrategy requires a callable predicate")
        self._predicate = predicate
        self.description = description

    def matches(self, retrieved: Any, expected: Any) -> bool:
        return bool(self._predicate(retrieved, expected))

    __call__ = matches

    def count_matches(self, retrieved: Sequence[Any], expected: Sequence[Any]) -> int:
        """Number of retrieved items that match at least one expected item"""
        return sum(1 for r in retrieved if any(self.matches(r, e) for e in expected))

    def count_found(self, retrieved: Sequence[Any], expected: Sequence[Any]) -> int:
        """Number of expected items matched by at least one retrieved item"""
        return sum(1 for e in expected if any(self.matches(r, e) for r in retrieved))

    def __repr__(self) -> str:
        return f"MatchingStrategy({self.description})"


def as_strategy(strategy: MatchingStrategy | Predicate) -> MatchingStrategy:
    """Wrap a plain predicate; strategies pass through unchanged"""
    if isinstance(strategy, MatchingStrategy):
        return strategy
    return custom(strategy)


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return item


def _squash(text: str) -> str:
    return re.sub(r"\s+", " ", text.lower()).strip()


def by_equality() -> MatchingStrategy:
    """Items match when they are equal"""
    return MatchingStrategy(lambda r, e: r == e, "equality")


def by_identifier(extract: Callable[[Any], Any]) -> MatchingStrategy:
    """Items match when the extracted identifiers are equal"""
    return MatchingStrategy(lambda r, e: extract(r) == extract(e), "identifier")


def by_field(name: str) -> MatchingStrategy:
    """
    Items match on one field

    Mappings are compared by item[name]; any other item is compared as a whole.
    """
    return MatchingStrategy(
        lambda r, e: _field(r, name) == _field(e, name), f"field {name!r}"
    )


def by_fields(*names: str) -> MatchingStrategy:
    """Mappings match when every named field is equal; other items fall back to equality"""
    if not names:
        raise ValueError("by_fields requires at least one field name")

    def predicate(r: Any, e: Any) -> bool:
        if not isinstance(r, Mapping) or not isinstance(e, Mapping):
            return r == e
        return all(r.get(name) == e.get(name) for name in names)

    return MatchingStrategy(predicate, f"fields {list(names)!r}")


def custom(predicate: Predicate) -> MatchingStrategy:
    return MatchingStrategy(predicate, getattr(predicate, "__name__", "custom"))


def case_insensitive() -> MatchingStrategy:
    """Strings match ignoring case; other items fall back to equality"""

    def predicate(r: Any, e: Any) -> bool:
        if isinstance(r, str) and isinstance(e, str):
            return r.casefold() == e.casefold()
        return r == e

    return MatchingStrategy(predicate, "case-insensitive")


def by_containment(normalize: bool = True) -> MatchingStrategy:
    """
    Strings match when either one contains the other

    Args:
        normalize: Lowercase and collapse whitespace before comparing
    """

    def predicate(r: Any, e: Any) -> bool:
        if not isinstance(r, str) or not isinstance(e, str):
            return r == e
        if normalize:
            r, e = _squash(r), _squash(e)
        return e in r or r in e

    return MatchingStrategy(predicate, "containment")


class LLMMatchingStrategy(MatchingStrategy):
    """Asks a judge whether two items carry the same information (reply must start with "yes")"""

    def __init__(self, judge: Any):
        self.judge = require_judge(judge)
        super().__init__(self._ask, "llm")

    def _ask(self, retrieved: Any, expected: Any) -> bool:
        reply = self.judge.generate(
            _LLM_MATCH_PROMPT.format(retrieved=retrieved, expected=expected)
        )
        answer = remove_markdown(reply or "").strip().strip("*_\"'").lower()
        logger.debug("LLM match %r vs %r: %s", retrieved, expected, answer[:20])
        return answer.startswith("yes")


def llm_based(judge: Any) -> MatchingStrategy:
    """Items match when the judge considers them semantically equivalent"""
    return LLMMatchingStrategy(judge)


def any_of(*strategies: MatchingStrategy | Predicate) -> MatchingStrategy:
    """Match when at least one strategy matches (evaluated in order, short-circuits)"""
    wrapped = _wrap_all(strategies)
    return MatchingStrategy(
        lambda r, e: any(s.matches(r, e) for s in wrapped),
        "any of " + ", ".join(s.description for s in wrapped),
    )


def all_of(*strategies: MatchingStrategy | Predicate) -> MatchingStrategy:
    """Match when every strategy matches (evaluated in order, short-circuits)"""
    wrapped = _wrap_all(strategies)
    return MatchingStrategy(
        lambda r, e: all(s.matches(r, e) for s in wrapped),
        "all of " + ", ".join(s.description for s in wrapped),
    )


def _wrap_all(strategies: Iterable[MatchingStrategy | Predicate]) -> list[MatchingStrategy]:
    wrapped = [as_strategy(s) for s in strategies]
    if not wrapped:
        raise ValueError("At least one matching strategy is required")
    return wrapped
