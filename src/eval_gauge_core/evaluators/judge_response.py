"""
Judge response parsing

Reduces free-form judge output to a numeric score and an optional reason.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

from eval_gauge_core.domain.exceptions import JudgeResponseParseError
from eval_gauge_core.domain.value_objects import JudgeVerdict

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_NUMBER = r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)"
_SCORE_LINE_RE = re.compile(rf"^\s*\**(?:score|スコア)\**\s*[:：=]\s*({_NUMBER})", re.IGNORECASE | re.MULTILINE)
_REASON_LINE_RE = re.compile(r"^\s*\**(?:reason|reasoning|理由)\**\s*[:：=]\s*(.+)$", re.IGNORECASE | re.MULTILINE)
_LEADING_NUMBER_RE = re.compile(rf"^\s*({_NUMBER})(?![\w.])")

# Truncation length for raw responses in error messages
_PREVIEW_CHARS = 200


def strip_code_fence(text: str) -> str:
    """Return the body of the first ``` fence, or the stripped text when there is none"""
    match = _FENCE_RE.search(text)
    return match.group(1).strip() if match else text.strip()


def _to_score(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    return score if math.isfinite(score) else None


def _load_json(text: str) -> Any:
    """Load JSON from the fenced body, falling back to the outermost bracketed span"""
    body = strip_code_fence(text)
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        pass
    for opener, closer in (("{", "}"), ("[", "]")):
        start, end = body.find(opener), body.rfind(closer)
        if 0 <= start < end:
            try:
                return json.loads(body[start:end + 1])
            except json.JSONDecodeError:
                continue
    return None


def _from_json(text: str) -> JudgeVerdict | None:
    data = _load_json(text)
    if not isinstance(data, dict) or "score" not in data:
        return None
    score = _to_score(data["score"])
    if score is None:
        return None
    reason = data.get("reason")
    return JudgeVerdict(score=score, reason=None if reason is None else str(reason))


def _from_labelled_lines(text: str) -> JudgeVerdict | None:
    match = _SCORE_LINE_RE.search(text)
    if not match:
        return None
    reason_match = _REASON_LINE_RE.search(text)
    reason = reason_match.group(1).strip() if reason_match else None
    return JudgeVerdict(score=float(match.group(1)), reason=reason or None)


def _from_leading_number(text: str) -> JudgeVerdict | None:
    first, _, rest = text.strip().partition("\n")
    match = _LEADING_NUMBER_RE.match(first)
    if not match:
        return None
    return JudgeVerdict(score=float(match.group(1)), reason=rest.strip() or None)


def parse_judge_response(text: str) -> JudgeVerdict:
    """
    Extract score and reason from a judge response

    Parse order:
    1. JSON object (optionally inside a ``` fence) with numeric "score" and optional "reason"
    2. "score: <number>" line, with an optional "reason: ..." line
    3. Leading number on the first line, remaining lines as the reason
    4. JudgeResponseParseError

    Args:
        text: Raw judge response

    Returns:
        JudgeVerdict (score is not clamped or normalized here)

    Raises:
        JudgeResponseParseError: When no score can be found
    """
    if text is None or not text.strip():
        raise JudgeResponseParseError("Judge returned an empty response", response=text or "")

    for strategy in (_from_json, _from_labelled_lines, _from_leading_number):
        verdict = strategy(text)
        if verdict is not None:
            return verdict

    raise JudgeResponseParseError(
        f"Failed to parse score from judge response: {text.strip()[:_PREVIEW_CHARS]}",
        response=text,
    )


def parse_json_array(text: str) -> list:
    """
    Parse a JSON array reply (optionally inside a ``` fence)

    Raises:
        JudgeResponseParseError: When the reply is not a JSON array
    """
    data = _load_json(text or "")
    if not isinstance(data, list):
        raise JudgeResponseParseError(
            f"Expected a JSON array from judge: {(text or '').strip()[:_PREVIEW_CHARS]}",
            response=text or "",
        )
    return data
