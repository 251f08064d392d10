"""
ExactMatchEvaluator / RegexEvaluator / BaseEvaluator のテスト
"""

import pytest

from eval_gauge_core.domain.entities import EvalTestCase
from eval_gauge_core.domain.exceptions import EvaluationError, EvaluatorConfigurationError
from eval_gauge_core.evaluators.exact_match import ExactMatchEvaluator
from eval_gauge_core.evaluators.regex import RegexEvaluator
from eval_gauge_core.evaluators.text_normalizers import normalize_text, strip, strip_casefold


def _case(actual, expected="Paris", input_text="Capital of France?"):
    return EvalTestCase(input=input_text, actual_output=actual, expected_output=expected)


class TestExactMatchEvaluator:
    """ExactMatchEvaluator のテスト"""

    def test_match(self):
        result = ExactMatchEvaluator().evaluate(_case("Paris"))
        assert result.score == 1.0
        assert result.success is True
        assert result.name == "Exact Match"
        assert result.threshold == 1.0

    def test_mismatch(self):
        result = ExactMatchEvaluator().evaluate(_case("London"))
        assert result.score == 0.0
        assert result.success is False

    def test_default_is_strict(self):
        # デフォルトは正規化なし
        assert ExactMatchEvaluator().evaluate(_case(" paris ")).score == 0.0

    def test_strip_normalizer(self):
        assert ExactMatchEvaluator(normalizer=strip).evaluate(_case("  Paris\n")).score == 1.0

    def test_casefold_normalizer(self):
        assert ExactMatchEvaluator(normalizer=strip_casefold).evaluate(_case(" PARIS ")).score == 1.0

    def test_normalize_text_normalizer(self):
        evaluator = ExactMatchEvaluator(normalizer=normalize_text)
        assert evaluator.evaluate(_case("`Paris`")).score == 1.0

    def test_missing_expected_output_raises(self):
        with pytest.raises(EvaluationError, match="expected_output"):
            ExactMatchEvaluator().evaluate(_case("Paris", expected=None))

    def test_missing_actual_output_raises(self):
        with pytest.raises(EvaluationError, match="actual_output"):
            ExactMatchEvaluator().evaluate(_case(None))


class TestBaseEvaluatorValidation:
    """構築時のバリデーション"""

    def test_blank_name(self):
        with pytest.raises(EvaluatorConfigurationError):
            ExactMatchEvaluator(name="  ")

    @pytest.mark.parametrize("threshold", [-0.1, 1.5])
    def test_threshold_out_of_range(self, threshold):
        with pytest.raises(EvaluatorConfigurationError):
            ExactMatchEvaluator(threshold=threshold)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            ExactMatchEvaluator(threshold=2.0)


class TestRegexEvaluator:
    """RegexEvaluator のテスト"""

    def test_pattern_found(self):
        result = RegexEvaluator(r"\d{3}-\d{4}").evaluate(_case("Call 555-1234 now"))
        assert result.score == 1.0
        assert result.success is True
        assert result.name == "Regex Match"

    def test_pattern_not_found(self):
        result = RegexEvaluator(r"^\d+$").evaluate(_case("forty-two"))
        assert result.score == 0.0
        assert result.success is False

    def test_ignore_case(self):
        assert RegexEvaluator("paris", ignore_case=True).evaluate(_case("PARIS")).success is True
        assert RegexEvaluator("paris").evaluate(_case("PARIS")).success is False

    def test_does_not_require_expected_output(self):
        assert RegexEvaluator("a").evaluate(_case("a", expected=None)).success is True

    def test_invalid_pattern(self):
        with pytest.raises(EvaluatorConfigurationError, match="Invalid regex"):
            RegexEvaluator("(unclosed")

    def test_empty_pattern(self):
        with pytest.raises(EvaluatorConfigurationError):
            RegexEvaluator("")
