"""
REST ペイロード変換のテスト
"""

from datetime import datetime, timezone

import pytest

from eval_gauge_core.domain.entities import Example, ItemResult
from eval_gauge_core.domain.value_objects import EvalResult, RunStatus
from eval_gauge_core.tracking.payloads import (
    add_items_request,
    create_run_request,
    create_run_response,
    experiment_summary_to_payload,
    item_to_payload,
    parse_run_status,
    run_details_to_payload,
    run_item_from_payload,
    run_to_payload,
    trend_to_payload,
    update_run_request,
)
from eval_gauge_core.tracking.run_tracker import RunTracker

FIXED = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


def _item(passed=True):
    return ItemResult(
        example=Example(input="What is 2+2?", expected_output="4"),
        actual_outputs={"output": "4" if passed else "5"},
        eval_results=[EvalResult.of("Exact Match", 1.0 if passed else 0.0, 1.0, reason="checked")],
    )


@pytest.fixture
def tracker():
    return RunTracker(clock=lambda: FIXED)


class TestParseRunStatus:
    @pytest.mark.parametrize("value", ["success", "SUCCESS", " Success "])
    def test_case_insensitive(self, value):
        assert parse_run_status(value) is RunStatus.SUCCESS

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown run status"):
            parse_run_status("DONE")


class TestRequests:
    def test_create_run_request(self):
        assert create_run_request("qa", {"model": "m1"}) == {
            "experimentName": "qa",
            "metadata": {"model": "m1"},
        }
        assert create_run_request("qa")["metadata"] == {}

    def test_update_run_request(self):
        assert update_run_request("cancelled") == {"status": "CANCELLED"}

    def test_item_to_payload(self):
        payload = item_to_payload(_item())
        assert payload["inputs"] == {"input": "What is 2+2?"}
        assert payload["expectedOutputs"] == {"output": "4"}
        assert payload["actualOutputs"] == {"output": "4"}
        assert payload["success"] is True
        assert payload["evalResults"] == [{
            "name": "Exact Match",
            "score": 1.0,
            "threshold": 1.0,
            "success": True,
            "reason": "checked",
            "metadata": {},
            "error": None,
        }]

    def test_add_items_request(self):
        assert len(add_items_request([_item(), _item(False)])["items"]) == 2


class TestRunItemFromPayload:
    def test_parses_item(self):
        payload = item_to_payload(_item(False))
        run_item = run_item_from_payload(payload, item_id="item-1", created_at=FIXED)
        assert run_item.id == "item-1"
        assert run_item.input == "What is 2+2?"
        assert run_item.actual_output == "5"
        assert run_item.success is False
        assert run_item.eval_results[0].reason == "checked"

    def test_error_survives_payload(self):
        item = ItemResult(
            example=Example(input="What is 2+2?", expected_output="4"),
            actual_outputs={"output": "4"},
            eval_results=[EvalResult.failed("Correctness", 0.5, TimeoutError("judge timed out"))],
        )
        payload = item_to_payload(item)
        assert payload["evalResults"][0]["error"] == "TimeoutError: judge timed out"

        parsed = run_item_from_payload(payload).eval_results[0]
        assert parsed.errored
        assert parsed.error == "TimeoutError: judge timed out"
        assert parsed.success is False

    def test_error_forces_failure(self):
        payload = item_to_payload(_item())
        payload["evalResults"][0]["error"] = "EvaluationError: judge unavailable"
        # success=True のままでもエラー付きの結果は合格にならない
        parsed = run_item_from_payload(payload).eval_results[0]
        assert parsed.success is False
        assert parsed.errored

    def test_success_derived_from_eval_results(self):
        payload = item_to_payload(_item())
        del payload["success"]
        assert run_item_from_payload(payload).success is True

    def test_parsed_items_can_be_appended(self, tracker):
        run = tracker.create_run("proj", "qa")
        items = [run_item_from_payload(p) for p in add_items_request([_item(), _item(False)])["items"]]
        updated = tracker.add_items(run.id, items)
        assert updated.total_items == 2
        assert updated.passed_items == 1


class TestResponses:
    def test_create_run_response(self, tracker):
        run = tracker.create_run("proj", "qa")
        assert create_run_response(run) == {"runId": run.id}

    def test_run_to_payload_running_has_no_pass_rate(self, tracker):
        run = tracker.create_run("proj", "qa", config={"model": "m1"})
        payload = run_to_payload(tracker.add_items(run.id, [_item()]))
        assert payload["status"] == "RUNNING"
        assert payload["itemCount"] == 1
        assert payload["passedCount"] == 1
        assert payload["passRate"] is None
        assert payload["config"] == {"model": "m1"}
        assert payload["startedAt"] == FIXED.isoformat()
        assert payload["completedAt"] is None

    def test_run_to_payload_completed(self, tracker):
        run = tracker.create_run("proj", "qa")
        tracker.add_items(run.id, [_item(), _item(False)])
        payload = run_to_payload(tracker.complete_run(run.id, RunStatus.SUCCESS))
        assert payload["passRate"] == 0.5
        assert payload["completedAt"] == FIXED.isoformat()

    def test_run_details_to_payload(self, tracker):
        run = tracker.create_run("proj", "qa")
        tracker.add_items(run.id, [_item(), _item(False), _item()])
        tracker.complete_run(run.id, "SUCCESS")

        payload = run_details_to_payload(tracker.get_run_details(run.id, page=1, size=2))

        assert payload["experimentName"] == "qa"
        assert payload["projectName"] == "proj"
        assert payload["totalItems"] == 3
        assert payload["passedItems"] == 2
        assert payload["passRate"] == pytest.approx(2 / 3)
        page = payload["items"]
        assert (page["page"], page["size"], page["totalElements"], page["totalPages"]) == (1, 2, 3, 2)
        assert len(page["content"]) == 1
        entry = page["content"][0]
        assert entry["input"] == "What is 2+2?"
        assert entry["evalResults"][0]["evaluatorName"] == "Exact Match"
        assert entry["evalResults"][0]["error"] is None

    def test_trend_to_payload(self, tracker):
        run = tracker.create_run("proj", "qa")
        tracker.add_items(run.id, [_item()])
        tracker.complete_run(run.id, RunStatus.SUCCESS)

        payload = trend_to_payload(tracker.get_trends(run.experiment_id))
        assert payload == {
            "experimentName": "qa",
            "runs": [{
                "runId": run.id,
                "startedAt": FIXED.isoformat(),
                "passRate": 1.0,
                "totalItems": 1,
                "passedItems": 1,
            }],
        }

    def test_experiment_summary_to_payload(self, tracker):
        run = tracker.create_run("proj", "qa")
        payload = experiment_summary_to_payload(tracker.list_experiments()[0])
        assert payload["name"] == "qa"
        assert payload["projectName"] == "proj"
        assert payload["latestRunId"] == run.id
        assert payload["latestStatus"] == "RUNNING"
        assert payload["latestPassRate"] is None
