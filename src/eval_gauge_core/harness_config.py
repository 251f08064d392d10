"""
Evaluation Harness Configuration

Manages loading from environment variables (optionally seeded from a .env file)
and default values.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, asdict

from dotenv import load_dotenv

from eval_gauge_core.domain.constants import (
    DEFAULT_JUDGE_MODEL,
    DEFAULT_PROJECT,
    DEFAULT_TREND_LIMIT,
    PRIMARY_OUTPUT_KEY,
)


def _env_int(key: str, default: int) -> int:
    """Convert an environment variable to int"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to an integer.")


def _env_float(key: str, default: float) -> float:
    """Convert an environment variable to float"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to a number.")


def _env_optional_float(key: str, default: float | None) -> float | None:
    """Convert an environment variable to float; an empty value or 0 means "not set" """
    val = os.environ.get(key)
    if val is None:
        return default
    if not val.strip():
        return None
    number = _env_float(key, 0.0)
    return number if number > 0 else None


def _env_str(key: str, default: str) -> str:
    """Get an environment variable as a string"""
    return os.environ.get(key, default)


@dataclass
class ExperimentSettings:
    """Experiment orchestration configuration"""
    max_workers: int = 1
    evaluation_timeout_seconds: float | None = None  # None = wait indefinitely
    primary_output_key: str = PRIMARY_OUTPUT_KEY


@dataclass
class JudgeSettings:
    """LLM judge client configuration"""
    judge_model: str = DEFAULT_JUDGE_MODEL
    timeout_seconds: int = 30
    max_retries: int = 2
    retry_delay_seconds: float = 1.0
    max_tokens: int = 1024


@dataclass
class LMStudioConfig:
    """LMStudio (OpenAI-compatible local LLM) configuration"""
    base_url: str = "http://localhost:1234/v1"
    api_key: str = "lm-studio"


@dataclass
class TrackingSettings:
    """Run tracking configuration"""
    project: str = DEFAULT_PROJECT
    trend_limit: int = DEFAULT_TREND_LIMIT


@dataclass
class HarnessConfig:
    """Overall evaluation harness configuration"""
    experiment: ExperimentSettings = field(default_factory=ExperimentSettings)
    judge: JudgeSettings = field(default_factory=JudgeSettings)
    lmstudio: LMStudioConfig = field(default_factory=LMStudioConfig)
    tracking: TrackingSettings = field(default_factory=TrackingSettings)

    def to_dict(self) -> dict:
        """Convert to dictionary format"""
        return {"harness_config": asdict(self)}

    @classmethod
    def from_dict(cls, data: dict) -> "HarnessConfig":
        """Create from dictionary (handles presence/absence of harness_config key)"""
        config_data = data.get("harness_config", data)
        return cls(
            experiment=ExperimentSettings(**config_data.get("experiment", {})),
            judge=JudgeSettings(**config_data.get("judge", {})),
            lmstudio=LMStudioConfig(**config_data.get("lmstudio", {})),
            tracking=TrackingSettings(**config_data.get("tracking", {})),
        )


def load_config(env_file: str | os.PathLike | None = None) -> HarnessConfig:
    """
    Load configuration from environment variables

    Uses default values when environment variables are not set.

    Args:
        env_file: Optional .env file loaded first (variables already set in the
            environment take precedence)

    Returns:
        HarnessConfig
    """
    if env_file is not None:
        load_dotenv(env_file, override=False)

    experiment = ExperimentSettings(
        max_workers=_env_int("EVAL_GAUGE_MAX_WORKERS", 1),
        evaluation_timeout_seconds=_env_optional_float("EVAL_GAUGE_EVALUATION_TIMEOUT_SECONDS", None),
        primary_output_key=_env_str("EVAL_GAUGE_PRIMARY_OUTPUT_KEY", PRIMARY_OUTPUT_KEY),
    )
    judge = JudgeSettings(
        judge_model=_env_str("JUDGE_MODEL", DEFAULT_JUDGE_MODEL),
        timeout_seconds=_env_int("JUDGE_TIMEOUT_SECONDS", 30),
        max_retries=_env_int("JUDGE_MAX_RETRIES", 2),
        retry_delay_seconds=_env_float("JUDGE_RETRY_DELAY_SECONDS", 1.0),
        max_tokens=_env_int("JUDGE_MAX_TOKENS", 1024),
    )
    lmstudio = LMStudioConfig(
        base_url=_env_str("LMSTUDIO_BASE_URL", "http://localhost:1234/v1"),
        api_key=_env_str("LMSTUDIO_API_KEY", "lm-studio"),
    )
    tracking = TrackingSettings(
        project=_env_str("EVAL_GAUGE_PROJECT", DEFAULT_PROJECT),
        trend_limit=_env_int("EVAL_GAUGE_TREND_LIMIT", DEFAULT_TREND_LIMIT),
    )
    return HarnessConfig(
        experiment=experiment,
        judge=judge,
        lmstudio=lmstudio,
        tracking=tracking,
    )
