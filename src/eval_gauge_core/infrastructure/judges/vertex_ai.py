"""
Vertex AI (Google GenAI SDK) judge client
"""

import os

from google import genai
from google.api_core import exceptions as google_exceptions
from google.genai.types import GenerateContentConfig, HttpOptions

from eval_gauge_core.infrastructure.judges.base import JUDGE_SYSTEM_PROMPT, JudgeClient, JudgeReply


class VertexAIJudge(JudgeClient):
    """Judge using Gemini models on Vertex AI"""

    retryable_exceptions = (
        google_exceptions.DeadlineExceeded,
        google_exceptions.ServiceUnavailable,
        google_exceptions.ResourceExhausted,
    )

    def __init__(
        self,
        model_name: str,
        project_id: str | None = None,
        location: str | None = None,
        timeout_seconds: int = 30,
        max_retries: int = 3,
        retry_delay_seconds: float = 1.0,
        max_tokens: int = 1024,
        system_prompt: str = JUDGE_SYSTEM_PROMPT,
    ):
        """
        Args:
            model_name: Model name (e.g. gemini-2.5-flash)
            project_id: GCP project ID (falls back to GCP_PROJECT_ID)
            location: Region (falls back to GCP_LOCATION, then "global")
            timeout_seconds: Request timeout in seconds (default: 30)
            max_retries: Maximum number of attempts (default: 3)
            retry_delay_seconds: Base delay of the exponential backoff (default: 1.0)
            max_tokens: Maximum number of output tokens (default: 1024)
            system_prompt: System instruction sent with every verdict request
        """
        self.model_name = model_name
        self.project_id = project_id or os.environ.get("GCP_PROJECT_ID")
        self.location = location or os.environ.get("GCP_LOCATION", "global")
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds
        self.system_prompt = system_prompt

        if not self.project_id:
            raise ValueError("GCP_PROJECT_ID is not set")

        # HttpOptions takes milliseconds
        self.client = genai.Client(
            vertexai=True,
            project=self.project_id,
            location=self.location,
            http_options=HttpOptions(timeout=timeout_seconds * 1000),
        )
        self.generation_config = GenerateContentConfig(
            system_instruction=system_prompt,
            temperature=0.0,
            max_output_tokens=max_tokens,
        )

    def _request(self, prompt: str) -> JudgeReply:
        response = self.client.models.generate_content(
            model=self.model_name,
            contents=prompt,
            config=self.generation_config,
        )
        usage = getattr(response, "usage_metadata", None)
        return JudgeReply(
            text=response.text or "",
            input_tokens=(getattr(usage, "prompt_token_count", 0) or 0) if usage else 0,
            output_tokens=(getattr(usage, "candidates_token_count", 0) or 0) if usage else 0,
        )
