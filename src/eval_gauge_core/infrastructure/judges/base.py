"""
Judge client base class and retry mixin

JudgeClient owns the request flow shared by every provider: the judge system
prompt, timing, retries and ModelResponse assembly. Provider clients only send
one request and report the reply text and token usage.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from eval_gauge_core.domain.value_objects import ModelResponse

logger = logging.getLogger(__name__)

# Sent as the system message of every judge request. The evaluator prompts
# describe the task; this pins the reply to the shapes the response parsers accept.
JUDGE_SYSTEM_PROMPT = (
    "You are an impartial evaluator grading the output of another AI system.\n"
    "Follow the grading instructions in the user message exactly.\n"
    "Reply with only the requested format and no preamble:\n"
    '- a score request: one JSON object such as {"score": 0.8, "reason": "<one sentence>"}\n'
    "- a list request: one JSON array\n"
    '- a yes/no question: the single word "yes" or "no"\n'
    "Do not wrap the reply in markdown code fences."
)


@dataclass
class JudgeReply:
    """Raw reply of one provider request"""

    text: str
    input_tokens: int = 0
    output_tokens: int = 0


class RetryMixin:
    """Exponential backoff retry. Subclasses set self.max_retries and self.retry_delay_seconds."""

    max_retries: int = 3
    retry_delay_seconds: float = 1.0

    def _with_retry(self, fn, retryable_exceptions=(Exception,)):
        """
        Execute with exponential backoff retry.

        Args:
            fn: The function to retry (a callable with no arguments)
            retryable_exceptions: Tuple of exception types eligible for retry

        Returns:
            The return value of fn()

        Raises:
            ValueError: If max_retries is less than 1
            Exception: The last exception if max retries are exceeded
        """
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1.")

        last_exception: Exception | None = None
        for attempt in range(self.max_retries):
            try:
                return fn()
            except retryable_exceptions as e:
                last_exception = e
                if attempt < self.max_retries - 1:
                    delay = self.retry_delay_seconds * (2 ** attempt)
                    logger.warning(
                        "Judge call failed (attempt %d/%d), retrying in %.1fs: %s",
                        attempt + 1, self.max_retries, delay, e,
                    )
                    time.sleep(delay)

        assert last_exception is not None
        raise last_exception


class JudgeClient(RetryMixin, ABC):
    """
    Abstract base class for judge model clients

    Every client satisfies the JudgeLM contract through generate(). Subclasses
    implement _request() and list the provider errors worth retrying in
    retryable_exceptions.
    """

    model_name: str
    system_prompt: str = JUDGE_SYSTEM_PROMPT
    retryable_exceptions: tuple = ()

    @abstractmethod
    def _request(self, prompt: str) -> JudgeReply:
        """Send one request with self.system_prompt and the prompt as the user turn"""
        pass

    def generate_response(self, prompt: str) -> ModelResponse:
        """
        Send a prompt and retrieve the full response (text, latency, token usage)

        Raises:
            Exception: The provider error once the retries are exhausted
        """
        def _call():
            start_time = time.time()
            reply = self._request(prompt)
            latency_ms = int((time.time() - start_time) * 1000)
            return ModelResponse(
                output=(reply.text or "").strip(),
                latency_ms=latency_ms,
                model_name=self.model_name,
                input_tokens=reply.input_tokens,
                output_tokens=reply.output_tokens,
            )

        response = self._with_retry(_call, retryable_exceptions=self.retryable_exceptions)
        logger.debug(
            "Judge %s answered in %dms (%d in / %d out tokens)",
            self.model_name, response.latency_ms, response.input_tokens, response.output_tokens,
        )
        return response

    def generate(self, prompt: str) -> str:
        """Send a prompt and return only the response text"""
        return self.generate_response(prompt).output
