"""
Judge client factory

Creates the appropriate judge client based on the model name.
"""

from __future__ import annotations

from eval_gauge_core.harness_config import HarnessConfig, load_config
from eval_gauge_core.infrastructure.judges.base import JudgeClient
from eval_gauge_core.infrastructure.judges.claude import ClaudeJudge
from eval_gauge_core.infrastructure.judges.lmstudio import LMSTUDIO_PREFIX, OpenAICompatibleJudge
from eval_gauge_core.infrastructure.judges.vertex_ai import VertexAIJudge


def create_judge(model_name: str | None = None, config: HarnessConfig | None = None) -> JudgeClient:
    """
    Create the appropriate judge client based on the model name

    Args:
        model_name: Model name (defaults to config.judge.judge_model)
        config: HarnessConfig (loads from env if not provided)

    Returns:
        JudgeClient: lmstudio/* -> OpenAI-compatible, claude* -> Claude, otherwise Vertex AI
    """
    if config is None:
        config = load_config()
    if model_name is None:
        model_name = config.judge.judge_model

    judge = config.judge

    if model_name.startswith(LMSTUDIO_PREFIX):
        return OpenAICompatibleJudge(
            model_name,
            base_url=config.lmstudio.base_url,
            api_key=config.lmstudio.api_key,
            max_retries=judge.max_retries,
            retry_delay_seconds=judge.retry_delay_seconds,
            max_tokens=judge.max_tokens,
            timeout_seconds=judge.timeout_seconds,
        )
    elif model_name.startswith("claude"):
        return ClaudeJudge(
            model_name,
            max_retries=judge.max_retries,
            retry_delay_seconds=judge.retry_delay_seconds,
            max_tokens=judge.max_tokens,
        )
    else:
        return VertexAIJudge(
            model_name,
            timeout_seconds=judge.timeout_seconds,
            max_retries=judge.max_retries,
            retry_delay_seconds=judge.retry_delay_seconds,
            max_tokens=judge.max_tokens,
        )
