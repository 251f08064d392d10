"""
harness_config.pyのテスト
"""

import os
from unittest.mock import patch

import pytest

from eval_gauge_core.harness_config import (
    ExperimentSettings,
    HarnessConfig,
    JudgeSettings,
    LMStudioConfig,
    TrackingSettings,
    load_config,
)

ENV_KEYS = [
    "EVAL_GAUGE_MAX_WORKERS", "EVAL_GAUGE_EVALUATION_TIMEOUT_SECONDS",
    "EVAL_GAUGE_PRIMARY_OUTPUT_KEY",
    "JUDGE_MODEL", "JUDGE_TIMEOUT_SECONDS", "JUDGE_MAX_RETRIES",
    "JUDGE_RETRY_DELAY_SECONDS", "JUDGE_MAX_TOKENS",
    "LMSTUDIO_BASE_URL", "LMSTUDIO_API_KEY",
    "EVAL_GAUGE_PROJECT", "EVAL_GAUGE_TREND_LIMIT",
]


@pytest.fixture
def clean_env(monkeypatch):
    """ハーネス関連の環境変数をクリア"""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestSettingsDefaults:
    """各設定dataclassのデフォルト値"""

    def test_experiment_settings(self):
        settings = ExperimentSettings()
        assert settings.max_workers == 1
        assert settings.evaluation_timeout_seconds is None
        assert settings.primary_output_key == "output"

    def test_judge_settings(self):
        settings = JudgeSettings()
        assert settings.judge_model == "gemini-2.5-flash"
        assert settings.timeout_seconds == 30
        assert settings.max_retries == 2
        assert settings.retry_delay_seconds == 1.0
        assert settings.max_tokens == 1024

    def test_lmstudio_config(self):
        config = LMStudioConfig()
        assert config.base_url == "http://localhost:1234/v1"
        assert config.api_key == "lm-studio"

    def test_tracking_settings(self):
        settings = TrackingSettings()
        assert settings.project == "default"
        assert settings.trend_limit == 20


class TestHarnessConfig:
    """HarnessConfig dataclassのテスト"""

    def test_to_dict(self):
        d = HarnessConfig().to_dict()
        assert set(d["harness_config"]) == {"experiment", "judge", "lmstudio", "tracking"}
        assert d["harness_config"]["experiment"]["max_workers"] == 1

    def test_from_dict_with_key(self):
        config = HarnessConfig.from_dict({
            "harness_config": {
                "experiment": {"max_workers": 4},
                "judge": {"judge_model": "claude-haiku-4-5"},
            }
        })
        assert config.experiment.max_workers == 4
        assert config.judge.judge_model == "claude-haiku-4-5"
        # デフォルト値は維持される
        assert config.judge.max_retries == 2

    def test_from_dict_without_key(self):
        config = HarnessConfig.from_dict({"tracking": {"project": "search"}})
        assert config.tracking.project == "search"

    def test_roundtrip(self):
        original = HarnessConfig(experiment=ExperimentSettings(max_workers=8, evaluation_timeout_seconds=2.5))
        restored = HarnessConfig.from_dict(original.to_dict())
        assert restored == original


class TestLoadConfig:
    """load_config関数のテスト（環境変数ベース）"""

    def test_defaults_without_env(self, clean_env):
        """環境変数未設定時はデフォルト値を返す"""
        assert load_config() == HarnessConfig()

    def test_custom_env_values(self, clean_env):
        clean_env.setenv("EVAL_GAUGE_MAX_WORKERS", "4")
        clean_env.setenv("EVAL_GAUGE_EVALUATION_TIMEOUT_SECONDS", "12.5")
        clean_env.setenv("EVAL_GAUGE_PRIMARY_OUTPUT_KEY", "answer")
        clean_env.setenv("JUDGE_MODEL", "lmstudio/qwen")
        clean_env.setenv("JUDGE_MAX_RETRIES", "5")
        clean_env.setenv("JUDGE_RETRY_DELAY_SECONDS", "0.1")
        clean_env.setenv("EVAL_GAUGE_PROJECT", "rag")
        clean_env.setenv("EVAL_GAUGE_TREND_LIMIT", "50")

        config = load_config()
        assert config.experiment.max_workers == 4
        assert config.experiment.evaluation_timeout_seconds == 12.5
        assert config.experiment.primary_output_key == "answer"
        assert config.judge.judge_model == "lmstudio/qwen"
        assert config.judge.max_retries == 5
        assert config.judge.retry_delay_seconds == 0.1
        assert config.tracking.project == "rag"
        assert config.tracking.trend_limit == 50

    @pytest.mark.parametrize("value", ["0", "", "-1"])
    def test_timeout_zero_or_empty_means_unset(self, clean_env, value):
        clean_env.setenv("EVAL_GAUGE_EVALUATION_TIMEOUT_SECONDS", value)
        assert load_config().experiment.evaluation_timeout_seconds is None

    def test_invalid_int(self, clean_env):
        clean_env.setenv("EVAL_GAUGE_MAX_WORKERS", "many")
        with pytest.raises(ValueError, match="EVAL_GAUGE_MAX_WORKERS"):
            load_config()

    def test_invalid_float(self, clean_env):
        clean_env.setenv("JUDGE_RETRY_DELAY_SECONDS", "soon")
        with pytest.raises(ValueError, match="JUDGE_RETRY_DELAY_SECONDS"):
            load_config()

    def test_env_file(self, clean_env, tmp_path):
        """.envファイルから読み込む（既存の環境変数が優先）"""
        env_file = tmp_path / ".env"
        env_file.write_text("EVAL_GAUGE_MAX_WORKERS=3\nEVAL_GAUGE_PROJECT=from-file\n", encoding="utf-8")
        clean_env.setenv("EVAL_GAUGE_PROJECT", "from-env")

        # load_dotenv が追加した変数は patch.dict で後始末される
        with patch.dict(os.environ):
            config = load_config(env_file)
        assert config.experiment.max_workers == 3
        assert config.tracking.project == "from-env"
