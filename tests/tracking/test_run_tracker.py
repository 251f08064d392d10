"""
RunTracker のテスト

ラン作成、項目追加とカウンタ、終了遷移、並行追加、ページング、一覧をテストする。
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from eval_gauge_core.domain.entities import Example, ItemResult, RunItem
from eval_gauge_core.domain.exceptions import (
    ExperimentNotFoundError,
    InvalidTransitionError,
    RunClosedError,
    RunNotFoundError,
)
from eval_gauge_core.domain.value_objects import EvalResult, RunStatus
from eval_gauge_core.tracking.run_tracker import RunTracker, to_run_item


def _item(i, passed=True):
    return ItemResult(
        example=Example(input=f"q{i}", expected_output=f"a{i}", metadata={"n": i}),
        actual_outputs={"output": f"a{i}" if passed else "x"},
        eval_results=[EvalResult.of("Exact Match", 1.0 if passed else 0.0, 1.0)],
    )


class FakeClock:
    """呼び出しごとに1分進む時計"""

    def __init__(self):
        self.now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def tracker():
    return RunTracker(clock=FakeClock())


class TestRunLifecycle:
    """ラン作成から完了まで"""

    def test_create_run(self, tracker):
        run = tracker.create_run("proj", "qa", config={"model": "m1"}, total_items=5)
        assert run.status is RunStatus.RUNNING
        assert run.total_items == 0
        assert run.passed_items == 0
        assert run.expected_items == 5
        assert run.config == {"model": "m1"}
        assert run.completed_at is None

    def test_experiment_reused_by_name(self, tracker):
        first = tracker.create_run("proj", "qa")
        second = tracker.create_run("proj", "qa")
        other_project = tracker.create_run("other", "qa")
        assert first.experiment_id == second.experiment_id
        assert other_project.experiment_id != first.experiment_id

    def test_add_items_accumulates_counters(self, tracker):
        run = tracker.create_run("proj", "qa")
        tracker.add_items(run.id, [_item(0), _item(1, passed=False)])
        updated = tracker.add_items(run.id, [_item(2), _item(3, passed=False), _item(4, passed=False)])

        assert updated.total_items == 5
        assert updated.passed_items == 2
        assert updated.pass_rate == pytest.approx(0.4)

    def test_add_items_converts_item_results(self, tracker):
        run = tracker.create_run("proj", "qa")
        tracker.add_items(run.id, [_item(7)])
        stored = tracker.get_run(run.id).items[0]
        assert stored.id
        assert stored.input == "q7"
        assert stored.expected_output == "a7"
        assert stored.actual_output == "a7"
        assert stored.metadata["n"] == 7
        assert stored.created_at is not None

    def test_add_run_items_keeps_payload(self, tracker):
        run = tracker.create_run("proj", "qa")
        item = RunItem(
            id="", inputs={"text": "hello"}, expected_outputs={}, actual_outputs={},
            eval_results=[], success=False,
        )
        tracker.add_items(run.id, [item])
        stored = tracker.get_run(run.id).items[0]
        assert stored.id != ""
        assert stored.input == "hello"
        assert tracker.get_run(run.id).passed_items == 0

    def test_complete_run(self, tracker):
        run = tracker.create_run("proj", "qa")
        tracker.add_items(run.id, [_item(0)])
        completed = tracker.complete_run(run.id, RunStatus.SUCCESS)
        assert completed.status is RunStatus.SUCCESS
        assert completed.completed_at is not None
        assert completed.completed_at > completed.started_at

    def test_complete_run_accepts_string(self, tracker):
        run = tracker.create_run("proj", "qa")
        assert tracker.complete_run(run.id, "FAILED").status is RunStatus.FAILED

    def test_closed_run_rejects_items(self, tracker):
        run = tracker.create_run("proj", "qa")
        tracker.add_items(run.id, [_item(0)])
        tracker.complete_run(run.id, RunStatus.CANCELLED)

        with pytest.raises(RunClosedError):
            tracker.add_items(run.id, [_item(1)])
        # カウンタは変化しない
        assert tracker.get_run(run.id).total_items == 1

    def test_second_completion_rejected(self, tracker):
        run = tracker.create_run("proj", "qa")
        tracker.complete_run(run.id, RunStatus.SUCCESS)
        with pytest.raises(InvalidTransitionError):
            tracker.complete_run(run.id, RunStatus.FAILED)
        assert tracker.get_run(run.id).status is RunStatus.SUCCESS

    def test_complete_to_running_rejected(self, tracker):
        run = tracker.create_run("proj", "qa")
        with pytest.raises(InvalidTransitionError):
            tracker.complete_run(run.id, RunStatus.RUNNING)

    def test_update_run_status(self, tracker):
        run = tracker.create_run("proj", "qa")
        assert tracker.update_run_status(run.id, "RUNNING").status is RunStatus.RUNNING
        assert tracker.update_run_status(run.id, "SUCCESS").status is RunStatus.SUCCESS

    def test_snapshot_is_detached(self, tracker):
        run = tracker.create_run("proj", "qa")
        run.items.append("garbage")
        run.total_items = 99
        assert tracker.get_run(run.id).total_items == 0
        assert tracker.get_run(run.id).items == []

    def test_invalid_arguments(self, tracker):
        with pytest.raises(ValueError):
            tracker.create_run("proj", " ")
        with pytest.raises(ValueError):
            tracker.create_run("proj", "qa", total_items=-1)


class TestConcurrentAppends:
    """並行 add_items でカウンタが失われない"""

    def test_no_lost_updates(self, tracker):
        run = tracker.create_run("proj", "qa")
        threads = [
            threading.Thread(
                target=lambda offset=t: [
                    tracker.add_items(run.id, [_item(offset * 100 + i, passed=i % 2 == 0)])
                    for i in range(25)
                ]
            )
            for t in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        stored = tracker.get_run(run.id)
        assert stored.total_items == 200
        assert stored.passed_items == 8 * 13
        assert len(stored.items) == 200


class TestReads:
    """ページング・一覧・存在しないID"""

    def test_run_details_pagination(self, tracker):
        run = tracker.create_run("proj", "qa")
        tracker.add_items(run.id, [_item(i) for i in range(5)])

        first = tracker.get_run_details(run.id, page=0, size=2)
        last = tracker.get_run_details(run.id, page=2, size=2)
        beyond = tracker.get_run_details(run.id, page=5, size=2)

        assert [item.input for item in first.items] == ["q0", "q1"]
        assert [item.input for item in last.items] == ["q4"]
        assert beyond.items == ()
        assert first.total_elements == 5
        assert first.total_pages == 3
        assert first.experiment_name == "qa"
        assert first.project == "proj"

    @pytest.mark.parametrize("page, size", [(-1, 10), (0, 0)])
    def test_run_details_invalid_paging(self, tracker, page, size):
        run = tracker.create_run("proj", "qa")
        with pytest.raises(ValueError):
            tracker.get_run_details(run.id, page=page, size=size)

    def test_list_runs_newest_first(self, tracker):
        runs = [tracker.create_run("proj", "qa") for _ in range(3)]
        listed = tracker.list_runs(runs[0].experiment_id)
        assert [r.id for r in listed] == [r.id for r in reversed(runs)]

    def test_list_experiments(self, tracker):
        tracker.create_run("proj", "idle-experiment")
        tracker.complete_run(tracker.create_run("proj", "qa").id, RunStatus.SUCCESS)
        running = tracker.create_run("proj", "qa")
        tracker.create_run("other", "elsewhere")

        summaries = {s.experiment.name: s for s in tracker.list_experiments("proj")}
        assert set(summaries) == {"idle-experiment", "qa"}
        assert summaries["qa"].latest_run_id == running.id
        assert summaries["qa"].latest_status is RunStatus.RUNNING
        assert summaries["qa"].latest_pass_rate is None
        assert len(tracker.list_experiments()) == 3

    def test_not_found(self, tracker):
        with pytest.raises(RunNotFoundError):
            tracker.get_run("missing")
        with pytest.raises(RunNotFoundError):
            tracker.add_items("missing", [_item(0)])
        with pytest.raises(RunNotFoundError):
            tracker.complete_run("missing", RunStatus.SUCCESS)
        with pytest.raises(ExperimentNotFoundError):
            tracker.list_runs("missing")
        with pytest.raises(ExperimentNotFoundError):
            tracker.get_experiment("missing")


class TestToRunItem:
    def test_missing_expected_output(self):
        item = ItemResult(example=Example(input="q"), actual_outputs={"output": "a"})
        run_item = to_run_item(item)
        assert dict(run_item.expected_outputs) == {}
        assert run_item.success is True
