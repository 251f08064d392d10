"""
Experiment orchestration

Drives every example of a dataset through the task under evaluation and a set of
evaluators, producing item-level and experiment-level results. Optionally records
the execution as a tracked Run.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence, Union

from eval_gauge_core.datasets.registry import create_default_registry
from eval_gauge_core.domain.constants import DEFAULT_PROJECT, PRIMARY_OUTPUT_KEY
from eval_gauge_core.domain.entities import Dataset, Example, ExperimentResult, ItemResult
from eval_gauge_core.domain.exceptions import (
    EvaluationTimeoutError,
    ExperimentCancelledError,
    TaskExecutionError,
)
from eval_gauge_core.domain.value_objects import EvalResult, RunStatus
from eval_gauge_core.evaluators.base import Evaluator
from eval_gauge_core.harness_config import HarnessConfig, load_config
from eval_gauge_core.reporting.reporters import Reporter
from eval_gauge_core.tracking.run_tracker import RunTracker

logger = logging.getLogger(__name__)

Task = Callable[[Example], Union[Mapping[str, Any], str]]


class _Cancelled(Exception):
    """Raised inside item processing once the cancel event is observed"""


def _evaluator_name(evaluator: Any) -> str:
    return getattr(evaluator, "name", None) or type(evaluator).__name__


@dataclass
class Experiment:
    """
    One evaluation of a task over a dataset

    Args:
        name: Experiment name (also the tracked experiment name)
        dataset: Examples to evaluate, processed in order
        task: Callable producing the named outputs for one example
        evaluators: Evaluators applied to every item, in this order
        description: Free-form description carried to the result
        metadata: Free-form metadata carried to the result and the run config
        reporter: Receives the finished result (failures are logged, never raised)
        max_workers: Number of items processed concurrently (1 = sequential)
        evaluation_timeout_seconds: Per-evaluator-call time budget (None = unbounded)
        primary_output_key: Task output used as the test case's actual output
        tracker: When set, the execution is recorded as a Run
        project: Project of the tracked experiment
    """

    name: str
    dataset: Dataset
    task: Task
    evaluators: Sequence[Evaluator] = ()
    description: str = ""
    metadata: Mapping[str, Any] = field(default_factory=dict)
    reporter: Reporter | None = None
    max_workers: int = 1
    evaluation_timeout_seconds: float | None = None
    primary_output_key: str = PRIMARY_OUTPUT_KEY
    tracker: RunTracker | None = None
    project: str = DEFAULT_PROJECT

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Experiment name must not be blank")
        if self.dataset is None:
            raise ValueError("Experiment requires a dataset")
        if not callable(self.task):
            raise TypeError("Experiment task must be callable")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1: {self.max_workers}")
        if self.evaluation_timeout_seconds is not None and self.evaluation_timeout_seconds <= 0:
            raise ValueError(
                f"evaluation_timeout_seconds must be positive: {self.evaluation_timeout_seconds}"
            )
        self.evaluators = tuple(self.evaluators)
        for evaluator in self.evaluators:
            if not callable(getattr(evaluator, "evaluate", None)):
                raise TypeError(f"Not an evaluator: {evaluator!r}")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self, cancel_event: threading.Event | None = None) -> ExperimentResult:
        """
        Execute the experiment

        Args:
            cancel_event: Once set, no new task or evaluator calls are issued

        Returns:
            ExperimentResult: Items in dataset order

        Raises:
            TaskExecutionError: If the task fails for any example (no partial result)
            ExperimentCancelledError: If cancelled before every example was processed
        """
        total = len(self.dataset)
        logger.info(
            "Starting experiment '%s' (%d examples, %d evaluators, max_workers=%d)",
            self.name, total, len(self.evaluators), self.max_workers,
        )

        run_id = None
        if self.tracker is not None:
            run_id = self.tracker.create_run(
                self.project, self.name, config=dict(self.metadata), total_items=total
            ).id

        def on_item(item: ItemResult) -> None:
            if run_id is not None:
                self.tracker.add_items(run_id, [item])

        try:
            if self.max_workers == 1:
                items = self._run_sequential(cancel_event, on_item)
            else:
                items = self._run_parallel(cancel_event, on_item)
        except ExperimentCancelledError as e:
            logger.info(
                "Experiment '%s' cancelled after %d/%d item(s)",
                self.name, len(e.completed_items), total,
            )
            self._complete_after_error(run_id, RunStatus.CANCELLED)
            raise
        except BaseException:
            self._complete_after_error(run_id, RunStatus.FAILED)
            raise

        if run_id is not None:
            self.tracker.complete_run(run_id, RunStatus.SUCCESS)

        result = ExperimentResult(
            name=self.name,
            item_results=items,
            description=self.description,
            metadata=self.metadata,
            run_id=run_id,
        )
        logger.info(
            "Experiment '%s' finished: %d/%d passed (%.1f%%)",
            self.name, result.pass_count, result.total_count, result.pass_rate * 100,
        )
        self._report(result)
        return result

    # ------------------------------------------------------------------
    # Item processing
    # ------------------------------------------------------------------

    def _run_sequential(self, cancel_event, on_item) -> list[ItemResult]:
        items: list[ItemResult] = []
        for example in self.dataset:
            try:
                item = self._process_example(example, cancel_event)
            except _Cancelled:
                raise ExperimentCancelledError(self.name, items) from None
            items.append(item)
            on_item(item)
        return items

    def _run_parallel(self, cancel_event, on_item) -> list[ItemResult]:
        """At most max_workers items in flight; results re-ordered by dataset index"""
        examples = list(self.dataset)
        completed: dict[int, ItemResult] = {}
        pending: dict[Future, int] = {}
        next_index = 0
        failure: BaseException | None = None

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="eval-gauge-item"
        ) as pool:
            while True:
                while (
                    failure is None
                    and next_index < len(examples)
                    and len(pending) < self.max_workers
                    and not _is_set(cancel_event)
                ):
                    future = pool.submit(
                        self._process_example, examples[next_index], cancel_event
                    )
                    pending[future] = next_index
                    next_index += 1
                if not pending:
                    break

                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    index = pending.pop(future)
                    try:
                        item = future.result()
                    except _Cancelled:
                        continue
                    except Exception as e:
                        # Stop submitting; in-flight items drain before re-raising
                        if failure is None:
                            failure = e
                        continue
                    completed[index] = item
                    if failure is None:
                        on_item(item)

        if failure is not None:
            raise failure
        ordered = [completed[i] for i in sorted(completed)]
        if len(ordered) < len(examples):
            raise ExperimentCancelledError(self.name, ordered)
        return ordered

    def _process_example(self, example: Example, cancel_event) -> ItemResult:
        if _is_set(cancel_event):
            raise _Cancelled()

        try:
            raw = self.task(example)
        except Exception as e:
            raise TaskExecutionError(example, e) from e
        actual_outputs = self._as_outputs(example, raw)

        test_case = example.to_test_case(actual_outputs, self.primary_output_key)
        eval_results = []
        for evaluator in self.evaluators:
            if _is_set(cancel_event):
                raise _Cancelled()
            eval_results.append(self._evaluate(evaluator, example, test_case))

        item = ItemResult(example=example, actual_outputs=actual_outputs, eval_results=eval_results)
        logger.debug(
            "Item %r: %s", example.input[:80], "passed" if item.success else "failed"
        )
        return item

    def _as_outputs(self, example: Example, raw: Any) -> dict[str, Any]:
        if isinstance(raw, str):
            return {self.primary_output_key: raw}
        if isinstance(raw, Mapping):
            return dict(raw)
        raise TaskExecutionError(
            example,
            TypeError(f"Task must return a mapping of outputs or a string, got {type(raw).__name__}"),
        )

    def _evaluate(self, evaluator, example, test_case) -> EvalResult:
        """Run one evaluator; failures and timeouts become errored results"""
        name = _evaluator_name(evaluator)
        try:
            if self.evaluation_timeout_seconds is None:
                return evaluator.evaluate(test_case)
            future = _start_in_thread(evaluator.evaluate, test_case, name)
            try:
                return future.result(timeout=self.evaluation_timeout_seconds)
            except FuturesTimeoutError:
                raise EvaluationTimeoutError(
                    f"{name} did not finish within {self.evaluation_timeout_seconds}s"
                ) from None
        except Exception as e:
            logger.warning(
                "Evaluator '%s' failed for input %r: %s", name, example.input[:80], e
            )
            return EvalResult.failed(name, getattr(evaluator, "threshold", None), e)

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def _complete_after_error(self, run_id: str | None, status: RunStatus) -> None:
        if run_id is None:
            return
        try:
            self.tracker.complete_run(run_id, status)
        except Exception:
            # The original error is being re-raised by the caller
            logger.exception("Failed to mark run %s as %s", run_id, status.value)

    def _report(self, result: ExperimentResult) -> None:
        if self.reporter is None:
            return
        try:
            self.reporter.report(result)
        except Exception as e:
            logger.warning(
                "Reporter %s failed for experiment '%s': %s",
                type(self.reporter).__name__, self.name, e, exc_info=True,
            )


def _is_set(event: threading.Event | None) -> bool:
    return event is not None and event.is_set()


def _start_in_thread(fn: Callable[[Any], Any], arg: Any, name: str) -> Future:
    """
    Run fn(arg) on its own daemon thread

    The timeout clock of the returned future starts when the call starts, so a
    call that never returns only holds its own thread, never a queued sibling.
    """
    future: Future = Future()
    future.set_running_or_notify_cancel()

    def target() -> None:
        try:
            future.set_result(fn(arg))
        except BaseException as e:
            future.set_exception(e)

    threading.Thread(target=target, name=f"eval-gauge-evaluator-{name}", daemon=True).start()
    return future


def run_experiment(
    name: str,
    dataset: Dataset | str,
    task: Task,
    evaluators: Sequence[Evaluator] = (),
    *,
    config: HarnessConfig | None = None,
    cancel_event: threading.Event | None = None,
    **overrides: Any,
) -> ExperimentResult:
    """
    Build an Experiment from configuration and run it

    Args:
        name: Experiment name
        dataset: Dataset, or a locator resolved through the default resolver registry
        task: Task under evaluation
        evaluators: Evaluators applied to each item
        config: HarnessConfig (loads from env if not provided)
        cancel_event: Optional cancellation signal
        **overrides: Experiment fields overriding the configured values

    Returns:
        ExperimentResult
    """
    if config is None:
        config = load_config()
    if isinstance(dataset, str):
        dataset = create_default_registry().resolve(dataset)

    settings = {
        "max_workers": config.experiment.max_workers,
        "evaluation_timeout_seconds": config.experiment.evaluation_timeout_seconds,
        "primary_output_key": config.experiment.primary_output_key,
        "project": config.tracking.project,
    }
    settings.update(overrides)
    experiment = Experiment(
        name=name, dataset=dataset, task=task, evaluators=evaluators, **settings
    )
    return experiment.run(cancel_event)
