"""
Reporting

Reporters that receive finished experiments, and exporters for result files.
"""

from eval_gauge_core.reporting.exporters import (
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
    Reporter,
    RunTrackerReporter,
)

__all__ = [
    # reporters
    "CsvReporter",
    "LoggingReporter",
    "NoOpReporter",
    "Reporter",
    "RunTrackerReporter",
    # exporters
    "evaluator_pass_rate",
    "export_csv",
    "export_html",
    "export_json",
    "export_markdown",
    "to_csv",
    "to_dataframe",
    "to_dict",
    "to_html",
    "to_json",
    "to_markdown",
]
