"""
Anthropic Claude judge client
"""

import os

from anthropic import Anthropic, APIConnectionError, RateLimitError, APIStatusError

from eval_gauge_core.infrastructure.judges.base import JUDGE_SYSTEM_PROMPT, JudgeClient, JudgeReply


class ClaudeJudge(JudgeClient):
    """Judge using the Anthropic Messages API"""

    retryable_exceptions = (APIConnectionError, RateLimitError, APIStatusError)

    def __init__(
        self,
        model_name: str,
        api_key: str | None = None,
        max_retries: int = 3,
        retry_delay_seconds: float = 1.0,
        max_tokens: int = 1024,
        system_prompt: str = JUDGE_SYSTEM_PROMPT,
    ):
        """
        Args:
            model_name: Model name (e.g. claude-haiku-4-5)
            api_key: Anthropic API key (falls back to ANTHROPIC_API_KEY)
            max_retries: Maximum number of attempts (default: 3)
            retry_delay_seconds: Base delay of the exponential backoff (default: 1.0)
            max_tokens: Maximum number of output tokens (default: 1024)
            system_prompt: System message sent with every verdict request
        """
        self.model_name = model_name
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds
        self.max_tokens = max_tokens
        self.system_prompt = system_prompt

        if not self.api_key:
            raise ValueError("ANTHROPIC_API_KEY is not set")

        self.client = Anthropic(api_key=self.api_key)

    def _request(self, prompt: str) -> JudgeReply:
        message = self.client.messages.create(
            model=self.model_name,
            max_tokens=self.max_tokens,
            temperature=0.0,
            system=self.system_prompt,
            messages=[{"role": "user", "content": prompt}],
        )
        # Verdicts are plain text; skip any non-text blocks
        text = "".join(
            block.text for block in message.content if getattr(block, "type", "text") == "text"
        )
        return JudgeReply(
            text=text,
            input_tokens=getattr(message.usage, "input_tokens", 0) or 0,
            output_tokens=getattr(message.usage, "output_tokens", 0) or 0,
        )
