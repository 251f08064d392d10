"""
Run Tracker

Owns the persisted lifecycle of runs: creation, item appends, the single terminal
transition, paginated reads, and pass-rate trends across completed runs.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping

from eval_gauge_core.domain.constants import DEFAULT_PAGE_SIZE, DEFAULT_TREND_LIMIT
from eval_gauge_core.domain.entities import (
    ExperimentRecord,
    ExperimentSummary,
    ItemResult,
    Run,
    RunDetails,
    RunItem,
    RunPoint,
    TrendData,
)
from eval_gauge_core.domain.exceptions import (
    ExperimentNotFoundError,
    RunClosedError,
    RunNotFoundError,
)
from eval_gauge_core.domain.value_objects import RunStatus, transition
from eval_gauge_core.tracking.repository import InMemoryRunRepository, RunRepository

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def to_run_item(item: ItemResult | RunItem, created_at: datetime | None = None) -> RunItem:
    """Convert an orchestrator ItemResult into the persisted RunItem shape"""
    if isinstance(item, RunItem):
        # Parsed payload items arrive without an id or timestamp
        return dataclasses.replace(
            item,
            id=item.id or _new_id(),
            created_at=item.created_at or created_at,
        )
    example = item.example
    expected = {} if example.expected_output is None else {"output": example.expected_output}
    return RunItem(
        id=_new_id(),
        inputs={"input": example.input},
        expected_outputs=expected,
        actual_outputs=item.actual_outputs,
        eval_results=item.eval_results,
        success=item.success,
        metadata=example.metadata,
        created_at=created_at,
    )


def _snapshot(run: Run) -> Run:
    """Detached copy of a run so callers never mutate tracker state"""
    return dataclasses.replace(run, config=dict(run.config), items=list(run.items))


def _chronological(runs: Iterable[Run]) -> list[Run]:
    """Sort by started_at ascending; ties keep creation order"""
    indexed = list(enumerate(runs))
    indexed.sort(key=lambda pair: (pair[1].started_at, pair[0]))
    return [run for _, run in indexed]


class RunTracker:
    """
    Thread-safe run lifecycle and trend tracker

    All reads and writes go through one lock, so concurrent add_items calls never
    lose increments and a run can be completed only once.

    Args:
        repository: Storage backend (in-memory by default)
        clock: Callable returning the current time (UTC now by default)
    """

    def __init__(
        self,
        repository: RunRepository | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repository = repository or InMemoryRunRepository()
        self._clock = clock or _utc_now
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Experiments
    # ------------------------------------------------------------------

    def get_or_create_experiment(self, project: str, name: str) -> ExperimentRecord:
        if not name or not name.strip():
            raise ValueError("Experiment name must not be blank")
        with self._lock:
            existing = self._repository.find_experiment(project, name)
            if existing is not None:
                return existing
            record = ExperimentRecord(
                id=_new_id(), project=project, name=name, created_at=self._clock()
            )
            self._repository.add_experiment(record)
            logger.info("Created experiment %s/%s (%s)", project, name, record.id)
            return record

    def get_experiment(self, experiment_id: str) -> ExperimentRecord:
        with self._lock:
            return self._require_experiment(experiment_id)

    def list_experiments(self, project: str | None = None) -> list[ExperimentSummary]:
        """Experiments with information about their most recent run"""
        with self._lock:
            summaries = []
            for experiment in self._repository.list_experiments(project):
                runs = _chronological(self._repository.list_runs(experiment.id))
                if not runs:
                    summaries.append(ExperimentSummary(experiment=experiment))
                    continue
                latest = runs[-1]
                summaries.append(ExperimentSummary(
                    experiment=experiment,
                    latest_run_id=latest.id,
                    latest_status=latest.status,
                    latest_pass_rate=None if latest.status is RunStatus.RUNNING else latest.pass_rate,
                    latest_started_at=latest.started_at,
                ))
            return summaries

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def create_run(
        self,
        project: str,
        experiment_name: str,
        config: Mapping[str, Any] | None = None,
        total_items: int | None = None,
    ) -> Run:
        """
        Create a RUNNING run for the named experiment (created on first use)

        Args:
            project: Project the experiment belongs to
            experiment_name: Experiment name
            config: Free-form run configuration / metadata
            total_items: Expected number of items (dataset size), if known

        Returns:
            Run: Snapshot of the new run (counters start at 0)
        """
        if total_items is not None and total_items < 0:
            raise ValueError(f"total_items must not be negative: {total_items}")
        with self._lock:
            experiment = self.get_or_create_experiment(project, experiment_name)
            run = Run(
                id=_new_id(),
                experiment_id=experiment.id,
                started_at=self._clock(),
                config=dict(config or {}),
                expected_items=total_items,
            )
            self._repository.add_run(run)
            logger.info("Run %s started for experiment %s/%s", run.id, project, experiment_name)
            return _snapshot(run)

    def add_items(self, run_id: str, items: Iterable[ItemResult | RunItem]) -> Run:
        """
        Append items to a RUNNING run and update its counters

        Raises:
            RunNotFoundError: If the run does not exist
            RunClosedError: If the run has reached a terminal status
        """
        with self._lock:
            run = self._require_run(run_id)
            if run.status.is_terminal:
                raise RunClosedError(run_id, run.status.value)
            now = self._clock()
            new_items = [to_run_item(item, created_at=now) for item in items]
            run.items.extend(new_items)
            run.total_items += len(new_items)
            run.passed_items += sum(1 for item in new_items if item.success)
            self._repository.save_run(run)
            logger.debug(
                "Run %s: +%d item(s), %d/%d passed",
                run_id, len(new_items), run.passed_items, run.total_items,
            )
            return _snapshot(run)

    def complete_run(self, run_id: str, final_status: RunStatus | str) -> Run:
        """
        Move a RUNNING run to a terminal status and lock it

        Raises:
            RunNotFoundError: If the run does not exist
            InvalidTransitionError: If the run is already terminal or the target is RUNNING
        """
        status = RunStatus(final_status)
        with self._lock:
            run = self._require_run(run_id)
            run.status = transition(run.status, status)
            run.completed_at = self._clock()
            self._repository.save_run(run)
            logger.info(
                "Run %s completed with status %s (%d/%d passed)",
                run_id, run.status.value, run.passed_items, run.total_items,
            )
            return _snapshot(run)

    def update_run_status(self, run_id: str, status: RunStatus | str) -> Run:
        """PATCH-style status update: RUNNING on a RUNNING run is a no-op"""
        status = RunStatus(status)
        with self._lock:
            run = self._require_run(run_id)
            if status is RunStatus.RUNNING and run.status is RunStatus.RUNNING:
                return _snapshot(run)
            return self.complete_run(run_id, status)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_run(self, run_id: str) -> Run:
        with self._lock:
            return _snapshot(self._require_run(run_id))

    def get_run_details(self, run_id: str, page: int = 0, size: int = DEFAULT_PAGE_SIZE) -> RunDetails:
        """Run metadata with one page (0-based) of its items in append order"""
        if page < 0:
            raise ValueError(f"page must not be negative: {page}")
        if size < 1:
            raise ValueError(f"size must be at least 1: {size}")
        with self._lock:
            run = self._require_run(run_id)
            experiment = self._require_experiment(run.experiment_id)
            start = page * size
            return RunDetails(
                run=_snapshot(run),
                experiment_name=experiment.name,
                project=experiment.project,
                items=tuple(run.items[start:start + size]),
                page=page,
                size=size,
            )

    def list_runs(self, experiment_id: str) -> list[Run]:
        """Runs of an experiment, newest first"""
        with self._lock:
            self._require_experiment(experiment_id)
            runs = _chronological(self._repository.list_runs(experiment_id))
            return [_snapshot(run) for run in reversed(runs)]

    def get_trends(self, experiment_id: str, limit: int = DEFAULT_TREND_LIMIT) -> TrendData:
        """
        Pass-rate trend over the most recent completed runs

        RUNNING runs are excluded. The most recent `limit` runs are returned
        ordered by started_at ascending (oldest first).

        Raises:
            ValueError: If limit is less than 1
            ExperimentNotFoundError: If the experiment does not exist
        """
        if limit < 1:
            raise ValueError(f"limit must be at least 1: {limit}")
        with self._lock:
            experiment = self._require_experiment(experiment_id)
            completed = [
                run for run in _chronological(self._repository.list_runs(experiment_id))
                if run.status.is_terminal
            ]
            points = [
                RunPoint(
                    run_id=run.id,
                    started_at=run.started_at,
                    pass_rate=run.pass_rate,
                    total_items=run.total_items,
                    passed_items=run.passed_items,
                )
                for run in completed[-limit:]
            ]
            return TrendData(experiment_name=experiment.name, runs=points)

    # ------------------------------------------------------------------

    def _require_run(self, run_id: str) -> Run:
        run = self._repository.get_run(run_id)
        if run is None:
            raise RunNotFoundError(f"Run not found: {run_id}")
        return run

    def _require_experiment(self, experiment_id: str) -> ExperimentRecord:
        experiment = self._repository.get_experiment(experiment_id)
        if experiment is None:
            raise ExperimentNotFoundError(f"Experiment not found: {experiment_id}")
        return experiment
