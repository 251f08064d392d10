"""
エクスポーター・レポーターのテスト
"""

import json
import logging
from datetime import datetime, timezone
from unittest.mock import patch

import pandas as pd
import pytest

from eval_gauge_core.domain.entities import Example, ExperimentResult, ItemResult
from eval_gauge_core.domain.value_objects import EvalResult, RunStatus
from eval_gauge_core.reporting.exporters import (
    BASE_COLUMNS,
    evaluator_pass_rate,
    export_csv,
    export_html,
    export_json,
    export_markdown,
    to_csv,
    to_dataframe,
    to_dict,
    to_html,
    to_json,
    to_markdown,
)
from eval_gauge_core.reporting.reporters import (
    CsvReporter,
    LoggingReporter,
    NoOpReporter,
    RunTrackerReporter,
)
from eval_gauge_core.tracking.run_tracker import RunTracker

STAMP = datetime(2026, 2, 3, 4, 5, 6, tzinfo=timezone.utc)


@pytest.fixture
def result():
    items = [
        ItemResult(
            example=Example(input="What is 2+2?", expected_output="4", metadata={"level": "easy"}),
            actual_outputs={"output": "4"},
            eval_results=[
                EvalResult.of("Exact Match", 1.0, 1.0, reason="Output matches expected output"),
                EvalResult.of("Correctness", 0.9, 0.5, reason="Right"),
            ],
        ),
        ItemResult(
            example=Example(input="Capital | of France?", expected_output="Paris"),
            actual_outputs={"output": "Lyon"},
            eval_results=[
                EvalResult.of("Exact Match", 0.0, 1.0, reason="Output does not match expected output"),
                EvalResult.failed("Correctness", 0.5, TimeoutError("judge timed out")),
            ],
        ),
    ]
    return ExperimentResult(
        name="smoke", item_results=items, description="nightly", metadata={"model": "m1"}, run_id="run-1",
    )


class TestToDict:
    def test_summary(self, result):
        data = to_dict(result, timestamp=STAMP)
        assert data["version"] == 1
        assert data["experimentName"] == "smoke"
        assert data["runId"] == "run-1"
        assert data["timestamp"] == STAMP.isoformat()
        assert data["metadata"] == {"model": "m1"}
        summary = data["summary"]
        assert summary["totalExamples"] == 2
        assert summary["passCount"] == 1
        assert summary["failCount"] == 1
        assert summary["passRate"] == 0.5

    def test_evaluator_statistics(self, result):
        evaluators = to_dict(result, timestamp=STAMP)["summary"]["evaluators"]
        assert list(evaluators) == ["Exact Match", "Correctness"]
        assert evaluators["Exact Match"] == {"averageScore": 0.5, "passRate": 0.5, "errorCount": 0}
        # エラー結果は平均スコアから除外される
        assert evaluators["Correctness"]["averageScore"] == 0.9
        assert evaluators["Correctness"]["errorCount"] == 1

    def test_items(self, result):
        items = to_dict(result, timestamp=STAMP)["items"]
        assert items[0]["metadata"] == {"level": "easy"}
        assert items[0]["actualOutputs"] == {"output": "4"}
        errored = items[1]["evaluations"][1]
        assert errored["success"] is False
        assert "judge timed out" in errored["error"]

    def test_to_json_parses(self, result):
        data = json.loads(to_json(result, timestamp=STAMP))
        assert data["summary"]["passRate"] == 0.5


class TestDataFrame:
    def test_columns(self, result):
        df = to_dataframe(result)
        assert list(df.columns) == BASE_COLUMNS + [
            "Exact Match score", "Exact Match success", "Exact Match reason",
            "Correctness score", "Correctness success", "Correctness reason",
        ]
        assert len(df) == 2
        assert df.loc[1, "actual_output"] == "Lyon"
        assert not df.loc[1, "success"]

    def test_csv_roundtrip_through_pandas(self, result, tmp_path):
        path = export_csv(result, tmp_path / "out" / "result.csv")
        df = pd.read_csv(path)
        assert df["input"].tolist() == ["What is 2+2?", "Capital | of France?"]
        assert df["Exact Match score"].tolist() == [1.0, 0.0]
        assert to_csv(result).splitlines()[0].startswith("index,input,expected_output")

    def test_evaluator_pass_rate(self, result):
        assert evaluator_pass_rate(result, "Correctness") == 0.5
        assert evaluator_pass_rate(result, "Unknown") == 0.0


class TestMarkdown:
    def test_sections(self, result):
        text = to_markdown(result)
        assert text.startswith("# Experiment: smoke")
        assert "## Summary" in text
        assert "## Evaluators" in text
        assert "| Pass rate | 50.00% |" in text
        assert "| 0 | What is 2+2? | 4 | 4 | PASS |" in text
        assert "Capital \\| of France?" in text
        assert "FAIL" in text

    def test_export_files(self, result, tmp_path):
        md = export_markdown(result, tmp_path / "report.md")
        js = export_json(result, tmp_path / "nested" / "report.json")
        assert md.read_text(encoding="utf-8").startswith("# Experiment: smoke")
        assert json.loads(js.read_text(encoding="utf-8"))["experimentName"] == "smoke"


class TestHtml:
    def test_sections_and_tables(self, result):
        text = to_html(result, timestamp=STAMP)
        assert text.startswith("<!DOCTYPE html>")
        assert "<title>Experiment: smoke</title>" in text
        assert f"Generated: {STAMP.isoformat()}" in text
        assert '<p class="description">nightly</p>' in text
        assert "<h2>Summary</h2>" in text
        assert "<h2>Evaluators</h2>" in text
        assert "50.00%" in text
        assert "PASS" in text and "FAIL" in text

    def test_tables_rendered_by_pandas(self, result):
        text = to_html(result, timestamp=STAMP)
        assert 'class="dataframe summary"' in text
        assert 'class="dataframe evaluators"' in text
        assert 'class="dataframe items"' in text
        assert "<th>Exact Match score</th>" in text
        assert "<td>Capital | of France?</td>" in text

    def test_cells_are_escaped(self):
        item = ItemResult(example=Example(input="<script>alert(1)</script>"), actual_outputs={"output": "x"})
        text = to_html(ExperimentResult(name="<b>xss</b>", item_results=[item]))
        assert "<script>" not in text
        assert "&lt;script&gt;" in text
        assert "<b>xss</b>" not in text

    def test_export_html(self, result, tmp_path):
        path = export_html(result, tmp_path / "out" / "report.html")
        assert "<h1>smoke</h1>" in path.read_text(encoding="utf-8")


class TestReporters:
    def test_noop(self, result):
        assert NoOpReporter().report(result) is None

    def test_logging_reporter(self, result, caplog):
        with caplog.at_level(logging.INFO, logger="eval_gauge_core.reporting.reporters"):
            LoggingReporter().report(result)
        assert "Experiment 'smoke': 1/2 passed (pass rate 50.00%)" in caplog.text
        assert "Exact Match: average score 0.500" in caplog.text

    def test_csv_reporter(self, result, tmp_path):
        path = tmp_path / "report.csv"
        CsvReporter(path).report(result)
        assert len(pd.read_csv(path)) == 2

    def test_run_tracker_reporter(self, result):
        tracker = RunTracker()
        reporter = RunTrackerReporter(tracker, project="nightly")
        reporter.report(result)

        run = tracker.get_run(reporter.last_run_id)
        assert run.status is RunStatus.SUCCESS
        assert run.total_items == 2
        assert run.passed_items == 1
        assert run.config == {"model": "m1"}
        assert tracker.get_experiment(run.experiment_id).project == "nightly"

    def test_run_tracker_reporter_marks_failed_on_error(self, result):
        tracker = RunTracker()
        reporter = RunTrackerReporter(tracker)

        with patch.object(tracker, "add_items", side_effect=RuntimeError("store offline")):
            with pytest.raises(RuntimeError, match="store offline"):
                reporter.report(result)

        # 作成済みのランは RUNNING のまま残らない
        run = tracker.get_run(reporter.last_run_id)
        assert run.status is RunStatus.FAILED
        assert run.completed_at is not None
