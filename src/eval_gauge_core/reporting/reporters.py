"""
Reporters

Receive the finished ExperimentResult. The orchestrator logs and swallows reporter
failures, so a reporter can never fail an experiment.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod

from eval_gauge_core.domain.constants import DEFAULT_PROJECT, PRIMARY_OUTPUT_KEY
from eval_gauge_core.domain.entities import ExperimentResult
from eval_gauge_core.domain.value_objects import RunStatus
from eval_gauge_core.reporting.exporters import export_csv
from eval_gauge_core.tracking.run_tracker import RunTracker

logger = logging.getLogger(__name__)


class Reporter(ABC):
    """Receives the result of a finished experiment"""

    @abstractmethod
    def report(self, result: ExperimentResult) -> None:
        pass


class NoOpReporter(Reporter):
    """Discards results"""

    def report(self, result: ExperimentResult) -> None:
        pass


class LoggingReporter(Reporter):
    """Logs the pass rate and per-evaluator average scores"""

    def __init__(self, log: logging.Logger | None = None, level: int = logging.INFO):
        self._log = log or logger
        self._level = level

    def report(self, result: ExperimentResult) -> None:
        self._log.log(
            self._level,
            "Experiment '%s': %d/%d passed (pass rate %.2f%%)",
            result.name, result.pass_count, result.total_count, result.pass_rate * 100,
        )
        for name in result.evaluator_names():
            self._log.log(self._level, "  %s: average score %.3f", name, result.average_score(name))


class CsvReporter(Reporter):
    """Writes one CSV row per item"""

    def __init__(self, path: str | os.PathLike, primary_output_key: str = PRIMARY_OUTPUT_KEY):
        self.path = path
        self.primary_output_key = primary_output_key

    def report(self, result: ExperimentResult) -> None:
        written = export_csv(result, self.path, self.primary_output_key)
        logger.info("Wrote %d item(s) of '%s' to %s", result.total_count, result.name, written)


class RunTrackerReporter(Reporter):
    """Persists a finished result as a SUCCESS run (FAILED when its items cannot be recorded)"""

    def __init__(self, tracker: RunTracker, project: str = DEFAULT_PROJECT):
        self.tracker = tracker
        self.project = project
        self.last_run_id: str | None = None

    def report(self, result: ExperimentResult) -> None:
        run = self.tracker.create_run(
            self.project,
            result.name,
            config=dict(result.metadata),
            total_items=result.total_count,
        )
        self.last_run_id = run.id
        try:
            self.tracker.add_items(run.id, result.item_results)
        except Exception:
            logger.warning("Failed to record items of run %s; marking it FAILED", run.id)
            self.tracker.complete_run(run.id, RunStatus.FAILED)
            raise
        self.tracker.complete_run(run.id, RunStatus.SUCCESS)
