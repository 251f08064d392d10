"""
Health Check

Performs connectivity checks for judge models before an experiment is started.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from eval_gauge_core.domain.entities import HealthCheckResult
from eval_gauge_core.evaluators.base import JudgeLM

logger = logging.getLogger(__name__)

HEALTH_CHECK_PROMPT = "Reply with only 'OK' if you can read this message."


def check_judge(judge: JudgeLM, model_name: str | None = None) -> HealthCheckResult:
    """
    Execute a health check for a single judge. Never raises.

    Args:
        judge: Any JudgeLM (generate(prompt) -> str)
        model_name: Name used in the result (defaults to judge.model_name or the class name)

    Returns:
        HealthCheckResult: success with latency, or the error message
    """
    name = model_name or getattr(judge, "model_name", None) or type(judge).__name__
    start_time = time.time()
    try:
        output = judge.generate(HEALTH_CHECK_PROMPT)
    except Exception as e:
        logger.warning("Judge %s health check failed: %s", name, e)
        return HealthCheckResult(model_name=name, success=False, latency_ms=None, error=str(e))

    latency_ms = int((time.time() - start_time) * 1000)
    if not output or not str(output).strip():
        return HealthCheckResult(
            model_name=name,
            success=False,
            latency_ms=latency_ms,
            error=f"Judge ({name}) returned an empty response",
        )
    return HealthCheckResult(model_name=name, success=True, latency_ms=latency_ms, error=None)


def check_judges(
    model_names: list[str],
    create_judge_fn: Callable[[str], JudgeLM] | None = None,
) -> tuple[list[str], list[HealthCheckResult]]:
    """
    Execute health checks for several judge models.

    Client construction errors (e.g. missing credentials) are reported as failures.

    Args:
        model_names: Judge model names
        create_judge_fn: Factory creating a judge (defaults to create_judge)

    Returns:
        tuple: (list of available models, list of all check results)
    """
    if create_judge_fn is None:
        from eval_gauge_core.infrastructure.judges.factory import create_judge
        create_judge_fn = create_judge

    available, results = [], []
    for model_name in model_names:
        try:
            judge = create_judge_fn(model_name)
        except Exception as e:
            logger.warning("Could not create judge %s: %s", model_name, e)
            result = HealthCheckResult(model_name=model_name, success=False, latency_ms=None, error=str(e))
        else:
            result = check_judge(judge, model_name)
        results.append(result)
        if result.success:
            available.append(model_name)
        logger.info(
            "Judge %s: %s", model_name,
            f"OK ({result.latency_ms}ms)" if result.success else f"FAILED ({(result.error or '')[:100]})",
        )
    return available, results
