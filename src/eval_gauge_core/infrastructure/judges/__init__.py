"""
Judge client package

Provides a unified JudgeLM interface to each LLM provider.
"""

from eval_gauge_core.infrastructure.judges.base import (
    JUDGE_SYSTEM_PROMPT,
    JudgeClient,
    JudgeReply,
    RetryMixin,
)
from eval_gauge_core.infrastructure.judges.factory import create_judge
from eval_gauge_core.domain.value_objects import ModelResponse

__all__ = [
    "JUDGE_SYSTEM_PROMPT",
    "JudgeClient",
    "JudgeReply",
    "ModelResponse",
    "RetryMixin",
    "create_judge",
]
