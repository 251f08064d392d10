"""
Run tracking

Run lifecycle, storage boundary, trends, and REST payload helpers.
"""

from eval_gauge_core.tracking.payloads import (
    add_items_request,
    create_run_request,
    create_run_response,
    eval_result_from_payload,
    eval_result_to_payload,
    experiment_summary_to_payload,
    item_to_payload,
    parse_run_status,
    run_details_to_payload,
    run_item_from_payload,
    run_to_payload,
    trend_to_payload,
    update_run_request,
)
from eval_gauge_core.tracking.repository import InMemoryRunRepository, RunRepository
from eval_gauge_core.tracking.run_tracker import RunTracker, to_run_item

__all__ = [
    # tracker
    "RunTracker",
    "to_run_item",
    # repository
    "InMemoryRunRepository",
    "RunRepository",
    # payloads
    "add_items_request",
    "create_run_request",
    "create_run_response",
    "eval_result_from_payload",
    "eval_result_to_payload",
    "experiment_summary_to_payload",
    "item_to_payload",
    "parse_run_status",
    "run_details_to_payload",
    "run_item_from_payload",
    "run_to_payload",
    "trend_to_payload",
    "update_run_request",
]
