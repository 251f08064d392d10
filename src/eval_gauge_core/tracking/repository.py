"""
Run repository

Storage boundary for experiments and runs. The tracker owns all state transitions;
a repository only stores and looks up records.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from eval_gauge_core.domain.entities import ExperimentRecord, Run


class RunRepository(ABC):
    """Abstract storage for experiments and their runs"""

    @abstractmethod
    def add_experiment(self, experiment: ExperimentRecord) -> None:
        pass

    @abstractmethod
    def get_experiment(self, experiment_id: str) -> ExperimentRecord | None:
        pass

    @abstractmethod
    def find_experiment(self, project: str, name: str) -> ExperimentRecord | None:
        pass

    @abstractmethod
    def list_experiments(self, project: str | None = None) -> list[ExperimentRecord]:
        """Experiments in creation order (all projects when project is None)"""
        pass

    @abstractmethod
    def add_run(self, run: Run) -> None:
        pass

    @abstractmethod
    def save_run(self, run: Run) -> None:
        """Persist changes made to an existing run"""
        pass

    @abstractmethod
    def get_run(self, run_id: str) -> Run | None:
        pass

    @abstractmethod
    def list_runs(self, experiment_id: str) -> list[Run]:
        """Runs of one experiment in creation order"""
        pass


class InMemoryRunRepository(RunRepository):
    """Dictionary-backed repository (not thread-safe on its own; RunTracker serialises access)"""

    def __init__(self) -> None:
        self._experiments: dict[str, ExperimentRecord] = {}
        self._runs: dict[str, Run] = {}
        self._runs_by_experiment: dict[str, list[str]] = {}

    def add_experiment(self, experiment: ExperimentRecord) -> None:
        self._experiments[experiment.id] = experiment
        self._runs_by_experiment.setdefault(experiment.id, [])

    def get_experiment(self, experiment_id: str) -> ExperimentRecord | None:
        return self._experiments.get(experiment_id)

    def find_experiment(self, project: str, name: str) -> ExperimentRecord | None:
        for experiment in self._experiments.values():
            if experiment.project == project and experiment.name == name:
                return experiment
        return None

    def list_experiments(self, project: str | None = None) -> list[ExperimentRecord]:
        return [
            e for e in self._experiments.values()
            if project is None or e.project == project
        ]

    def add_run(self, run: Run) -> None:
        self._runs[run.id] = run
        self._runs_by_experiment.setdefault(run.experiment_id, []).append(run.id)

    def save_run(self, run: Run) -> None:
        self._runs[run.id] = run

    def get_run(self, run_id: str) -> Run | None:
        return self._runs.get(run_id)

    def list_runs(self, experiment_id: str) -> list[Run]:
        return [self._runs[run_id] for run_id in self._runs_by_experiment.get(experiment_id, [])]
