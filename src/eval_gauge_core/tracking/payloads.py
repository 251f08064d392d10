"""
REST payload helpers

Builds and parses the camelCase JSON shapes exchanged with a run-tracking server,
so any transport can expose RunTracker without its own DTO layer.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping

from eval_gauge_core.domain.entities import (
    ExperimentSummary,
    ItemResult,
    Run,
    RunDetails,
    RunItem,
    TrendData,
)
from eval_gauge_core.domain.value_objects import EvalResult, RunStatus
from eval_gauge_core.tracking.run_tracker import to_run_item


def _iso(value: datetime | None) -> str | None:
    return None if value is None else value.isoformat()


def parse_run_status(value: str | RunStatus) -> RunStatus:
    """
    Parse a status string case-insensitively

    Raises:
        ValueError: For an unknown status
    """
    if isinstance(value, RunStatus):
        return value
    try:
        return RunStatus(str(value).strip().upper())
    except ValueError:
        valid = [s.value for s in RunStatus]
        raise ValueError(f"Unknown run status '{value}'. Valid values: {valid}") from None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


def create_run_request(experiment_name: str, metadata: Mapping[str, Any] | None = None) -> dict:
    """{experimentName, metadata}"""
    return {"experimentName": experiment_name, "metadata": dict(metadata or {})}


def create_run_response(run: Run) -> dict:
    """{runId}"""
    return {"runId": run.id}


def update_run_request(status: RunStatus | str) -> dict:
    """{status}"""
    return {"status": parse_run_status(status).value}


def eval_result_to_payload(result: EvalResult) -> dict:
    return {
        "name": result.name,
        "score": result.score,
        "threshold": result.threshold,
        "success": result.success,
        "reason": result.reason,
        "metadata": dict(result.metadata),
        "error": result.error,
    }


def item_to_payload(item: ItemResult | RunItem) -> dict:
    """{inputs, expectedOutputs, actualOutputs, evalResults, success}"""
    run_item = to_run_item(item)
    return {
        "inputs": dict(run_item.inputs),
        "expectedOutputs": dict(run_item.expected_outputs),
        "actualOutputs": dict(run_item.actual_outputs),
        "evalResults": [eval_result_to_payload(r) for r in run_item.eval_results],
        "success": run_item.success,
    }


def add_items_request(items: Iterable[ItemResult | RunItem]) -> dict:
    """{items: [...]}"""
    return {"items": [item_to_payload(item) for item in items]}


def eval_result_from_payload(payload: Mapping[str, Any]) -> EvalResult:
    threshold = payload.get("threshold")
    error = payload.get("error")
    return EvalResult(
        name=payload["name"],
        score=float(payload["score"]),
        success=bool(payload["success"]) and error is None,
        threshold=None if threshold is None else float(threshold),
        reason=payload.get("reason"),
        metadata=payload.get("metadata") or {},
        error=None if error is None else str(error),
    )


def run_item_from_payload(
    payload: Mapping[str, Any],
    item_id: str | None = None,
    created_at: datetime | None = None,
) -> RunItem:
    """
    Parse one entry of an append-items request

    Raises:
        KeyError: If a required field (evalResults entries' name/score/success) is missing
    """
    eval_results = [eval_result_from_payload(r) for r in payload.get("evalResults") or []]
    if "success" in payload:
        success = bool(payload["success"])
    else:
        success = all(r.success for r in eval_results)
    return RunItem(
        id=item_id or payload.get("id") or "",
        inputs=payload.get("inputs") or {},
        expected_outputs=payload.get("expectedOutputs") or {},
        actual_outputs=payload.get("actualOutputs") or {},
        eval_results=eval_results,
        success=success,
        metadata=payload.get("metadata") or {},
        created_at=created_at,
    )


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


def run_to_payload(run: Run) -> dict:
    """Run summary: {id, status, config, itemCount, passedCount, passRate, startedAt, completedAt}"""
    return {
        "id": run.id,
        "status": run.status.value,
        "config": dict(run.config),
        "itemCount": run.total_items,
        "passedCount": run.passed_items,
        "passRate": None if run.status is RunStatus.RUNNING else run.pass_rate,
        "startedAt": _iso(run.started_at),
        "completedAt": _iso(run.completed_at),
    }


def _item_summary(item: RunItem) -> dict:
    return {
        "id": item.id,
        "input": item.input,
        "expectedOutput": item.expected_output,
        "actualOutput": item.actual_output,
        "metadata": dict(item.metadata),
        "evalResults": [
            {
                "evaluatorName": r.name,
                "score": r.score,
                "threshold": r.threshold,
                "success": r.success,
                "reason": r.reason,
                "error": r.error,
            }
            for r in item.eval_results
        ],
        "createdAt": _iso(item.created_at),
    }


def run_details_to_payload(details: RunDetails) -> dict:
    """Run metadata plus a page of items: items = {content, page, size, totalElements, totalPages}"""
    run = details.run
    return {
        "id": run.id,
        "experimentName": details.experiment_name,
        "projectName": details.project,
        "status": run.status.value,
        "config": dict(run.config),
        "totalItems": run.total_items,
        "passedItems": run.passed_items,
        "passRate": None if run.status is RunStatus.RUNNING else run.pass_rate,
        "startedAt": _iso(run.started_at),
        "completedAt": _iso(run.completed_at),
        "items": {
            "content": [_item_summary(item) for item in details.items],
            "page": details.page,
            "size": details.size,
            "totalElements": details.total_elements,
            "totalPages": details.total_pages,
        },
    }


def trend_to_payload(trend: TrendData) -> dict:
    """{experimentName, runs: [{runId, startedAt, passRate, totalItems, passedItems}]}"""
    return {
        "experimentName": trend.experiment_name,
        "runs": [
            {
                "runId": point.run_id,
                "startedAt": _iso(point.started_at),
                "passRate": point.pass_rate,
                "totalItems": point.total_items,
                "passedItems": point.passed_items,
            }
            for point in trend.runs
        ],
    }


def experiment_summary_to_payload(summary: ExperimentSummary) -> dict:
    experiment = summary.experiment
    return {
        "id": experiment.id,
        "name": experiment.name,
        "projectName": experiment.project,
        "createdAt": _iso(experiment.created_at),
        "latestRunId": summary.latest_run_id,
        "latestStatus": None if summary.latest_status is None else summary.latest_status.value,
        "latestPassRate": summary.latest_pass_rate,
        "latestStartedAt": _iso(summary.latest_started_at),
    }
