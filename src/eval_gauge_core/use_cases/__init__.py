"""
Use Cases Layer

Experiment orchestration, assertions, and judge health checks.
"""

from eval_gauge_core.use_cases.assertions import assert_eval
from eval_gauge_core.use_cases.experiment import Experiment, Task, run_experiment
from eval_gauge_core.use_cases.health_check import (
    HEALTH_CHECK_PROMPT,
    check_judge,
    check_judges,
)

__all__ = [
    # experiment
    "Experiment",
    "Task",
    "run_experiment",
    # assertions
    "assert_eval",
    # health_check
    "HEALTH_CHECK_PROMPT",
    "check_judge",
    "check_judges",
]
