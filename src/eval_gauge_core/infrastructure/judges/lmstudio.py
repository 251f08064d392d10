"""
OpenAI-compatible judge client (LMStudio, OpenAI)
"""

import os

import openai
from openai import OpenAI

from eval_gauge_core.infrastructure.judges.base import JUDGE_SYSTEM_PROMPT, JudgeClient, JudgeReply

LMSTUDIO_PREFIX = "lmstudio/"


class OpenAICompatibleJudge(JudgeClient):
    """Judge using an OpenAI-compatible chat completions API (LMStudio by default)"""

    retryable_exceptions = (
        openai.APIConnectionError,
        openai.RateLimitError,
        openai.APIStatusError,
    )

    def __init__(
        self,
        model_name: str,
        base_url: str | None = None,
        api_key: str | None = None,
        max_retries: int = 3,
        retry_delay_seconds: float = 1.0,
        max_tokens: int = 1024,
        timeout_seconds: float | None = None,
        system_prompt: str = JUDGE_SYSTEM_PROMPT,
    ):
        """
        Args:
            model_name: Model name (e.g. lmstudio/qwen2.5-7b)
            base_url: API endpoint (falls back to LMSTUDIO_BASE_URL)
            api_key: API key (falls back to LMSTUDIO_API_KEY; LMStudio ignores it)
            max_retries: Maximum number of attempts (default: 3)
            retry_delay_seconds: Base delay of the exponential backoff (default: 1.0)
            max_tokens: Maximum number of tokens (default: 1024)
            timeout_seconds: Request timeout (default: the openai SDK default)
            system_prompt: System message sent with every verdict request
        """
        self.model_name = model_name
        # The server knows the model without the routing prefix
        self.api_model_name = model_name.removeprefix(LMSTUDIO_PREFIX)
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds
        self.max_tokens = max_tokens
        self.system_prompt = system_prompt

        self.base_url = base_url or os.environ.get("LMSTUDIO_BASE_URL", "http://localhost:1234/v1")
        api_key = api_key or os.environ.get("LMSTUDIO_API_KEY", "lm-studio")

        client_kwargs = {"base_url": self.base_url, "api_key": api_key}
        if timeout_seconds is not None:
            client_kwargs["timeout"] = timeout_seconds
        self.client = OpenAI(**client_kwargs)

    def _request(self, prompt: str) -> JudgeReply:
        completion = self.client.chat.completions.create(
            model=self.api_model_name,
            messages=[
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": prompt},
            ],
            temperature=0.0,
            max_tokens=self.max_tokens,
        )
        usage = completion.usage
        return JudgeReply(
            text=completion.choices[0].message.content or "",
            input_tokens=(usage.prompt_tokens or 0) if usage else 0,
            output_tokens=(usage.completion_tokens or 0) if usage else 0,
        )
