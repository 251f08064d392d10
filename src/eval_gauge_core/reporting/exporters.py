"""
Experiment result exporters

Serializes an ExperimentResult to dict / JSON / pandas DataFrame / CSV / Markdown / HTML,
and writes those formats to files.
"""

from __future__ import annotations

import html
import json
import os
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd

from eval_gauge_core.domain.entities import ExperimentResult, ItemResult

FORMAT_VERSION = 1

# Fixed leading columns of the item table
BASE_COLUMNS = ["index", "input", "expected_output", "actual_output", "success"]


def _round(value: float) -> float:
    return round(value, 4)


def evaluator_pass_rate(result: ExperimentResult, evaluator_name: str) -> float:
    """Share of successful results for one evaluator (0.0 when it never ran)"""
    evals = [
        r for item in result.item_results for r in item.eval_results
        if r.name == evaluator_name
    ]
    if not evals:
        return 0.0
    return sum(1 for r in evals if r.success) / len(evals)


def _error_count(result: ExperimentResult, evaluator_name: str) -> int:
    return sum(
        1 for item in result.item_results for r in item.eval_results
        if r.name == evaluator_name and r.errored
    )


def _primary_output(item: ItemResult, primary_output_key: str) -> str | None:
    value = item.actual_outputs.get(primary_output_key)
    return None if value is None else str(value)


def to_dict(result: ExperimentResult, timestamp: datetime | None = None) -> dict:
    """
    Convert an experiment result to a JSON-ready dictionary

    Args:
        result: Experiment result
        timestamp: Export time (defaults to now, UTC)

    Returns:
        dict: {version, experimentName, runId, timestamp, description, metadata, summary, items}
    """
    timestamp = timestamp or datetime.now(timezone.utc)
    evaluators = {
        name: {
            "averageScore": _round(result.average_score(name)),
            "passRate": _round(evaluator_pass_rate(result, name)),
            "errorCount": _error_count(result, name),
        }
        for name in result.evaluator_names()
    }
    items = []
    for item in result.item_results:
        items.append({
            "input": item.example.input,
            "expectedOutput": item.example.expected_output,
            "actualOutputs": dict(item.actual_outputs),
            "metadata": dict(item.example.metadata),
            "success": item.success,
            "evaluations": [
                {
                    "evaluator": r.name,
                    "score": r.score,
                    "threshold": r.threshold,
                    "success": r.success,
                    "reason": r.reason or "",
                    "error": r.error,
                }
                for r in item.eval_results
            ],
        })
    return {
        "version": FORMAT_VERSION,
        "experimentName": result.name,
        "runId": result.run_id,
        "timestamp": timestamp.isoformat(),
        "description": result.description,
        "metadata": dict(result.metadata),
        "summary": {
            "totalExamples": result.total_count,
            "passCount": result.pass_count,
            "failCount": result.fail_count,
            "passRate": _round(result.pass_rate),
            "evaluators": evaluators,
        },
        "items": items,
    }


def to_json(result: ExperimentResult, timestamp: datetime | None = None) -> str:
    """Serialize to indented JSON (non-JSON metadata values are stringified)"""
    return json.dumps(to_dict(result, timestamp), ensure_ascii=False, indent=2, default=str)


def to_dataframe(result: ExperimentResult, primary_output_key: str = "output") -> pd.DataFrame:
    """
    One row per item with score / success / reason columns per evaluator

    Column order: index, input, expected_output, actual_output, success,
    then "<evaluator> score", "<evaluator> success", "<evaluator> reason" in first-seen order.
    """
    names = result.evaluator_names()
    columns = list(BASE_COLUMNS)
    for name in names:
        columns += [f"{name} score", f"{name} success", f"{name} reason"]

    rows = []
    for index, item in enumerate(result.item_results):
        row = {
            "index": index,
            "input": item.example.input,
            "expected_output": item.example.expected_output,
            "actual_output": _primary_output(item, primary_output_key),
            "success": item.success,
        }
        for name in names:
            r = item.result_for(name)
            row[f"{name} score"] = None if r is None else r.score
            row[f"{name} success"] = None if r is None else r.success
            row[f"{name} reason"] = None if r is None else r.reason
        rows.append(row)
    return pd.DataFrame(rows, columns=columns)


def to_csv(result: ExperimentResult, primary_output_key: str = "output") -> str:
    """Serialize the item table to CSV text"""
    return to_dataframe(result, primary_output_key).to_csv(index=False)


def _md_cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        return f"{value:.2f}"
    text = str(value).replace("|", "\\|").replace("\n", " ")
    return text if len(text) <= 80 else text[:77] + "..."


def to_markdown(result: ExperimentResult, primary_output_key: str = "output") -> str:
    """Render a Markdown report with summary, evaluator statistics, and item tables"""
    lines = [f"# Experiment: {result.name}", ""]
    if result.description:
        lines += [result.description, ""]
    if result.run_id:
        lines += [f"Run: `{result.run_id}`", ""]

    lines += [
        "## Summary",
        "",
        "| Metric | Value |",
        "|---|---|",
        f"| Total | {result.total_count} |",
        f"| Passed | {result.pass_count} |",
        f"| Failed | {result.fail_count} |",
        f"| Pass rate | {result.pass_rate:.2%} |",
        "",
    ]

    names = result.evaluator_names()
    if names:
        lines += [
            "## Evaluators",
            "",
            "| Evaluator | Average score | Pass rate | Errors |",
            "|---|---|---|---|",
        ]
        for name in names:
            lines.append(
                f"| {_md_cell(name)} | {result.average_score(name):.2f} | "
                f"{evaluator_pass_rate(result, name):.2%} | {_error_count(result, name)} |"
            )
        lines.append("")

    lines += [
        "## Items",
        "",
        "| # | Input | Expected | Actual | Result |",
        "|---|---|---|---|---|",
    ]
    for index, item in enumerate(result.item_results):
        lines.append(
            f"| {index} | {_md_cell(item.example.input)} | {_md_cell(item.example.expected_output)} | "
            f"{_md_cell(_primary_output(item, primary_output_key))} | {'PASS' if item.success else 'FAIL'} |"
        )
    lines.append("")
    return "\n".join(lines)


_HTML_STYLE = """
body { font-family: -apple-system, "Segoe UI", Helvetica, Arial, sans-serif; margin: 2rem; color: #222; }
h1 { margin-bottom: 0.2rem; }
.timestamp, .description { color: #666; margin: 0.2rem 0; }
table { border-collapse: collapse; margin: 1rem 0 2rem; font-size: 0.9rem; }
th, td { border: 1px solid #ddd; padding: 0.35rem 0.6rem; text-align: left; vertical-align: top; }
th { background: #f4f4f4; }
"""


def _html_table(df: pd.DataFrame, css_class: str) -> str:
    return df.to_html(index=False, classes=css_class, border=0, na_rep="", float_format=lambda v: f"{v:.2f}")


def to_html(
    result: ExperimentResult,
    primary_output_key: str = "output",
    timestamp: datetime | None = None,
) -> str:
    """
    Render a self-contained HTML report (summary, evaluator statistics, item table)

    Tables are rendered with DataFrame.to_html, which escapes cell contents.
    """
    timestamp = timestamp or datetime.now(timezone.utc)
    title = html.escape(result.name)
    parts = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '<meta charset="UTF-8">',
        f"<title>Experiment: {title}</title>",
        f"<style>{_HTML_STYLE}</style>",
        "</head>",
        "<body>",
        f"<h1>{title}</h1>",
        f'<p class="timestamp">Generated: {timestamp.isoformat()}</p>',
    ]
    if result.description:
        parts.append(f'<p class="description">{html.escape(result.description)}</p>')
    if result.run_id:
        parts.append(f'<p class="description">Run: {html.escape(result.run_id)}</p>')

    summary = pd.DataFrame(
        [
            ("Total", result.total_count),
            ("Passed", result.pass_count),
            ("Failed", result.fail_count),
            ("Pass rate", f"{result.pass_rate:.2%}"),
        ],
        columns=["Metric", "Value"],
    )
    parts += ["<h2>Summary</h2>", _html_table(summary, "summary")]

    names = result.evaluator_names()
    if names:
        evaluators = pd.DataFrame(
            [
                (name, result.average_score(name), f"{evaluator_pass_rate(result, name):.2%}",
                 _error_count(result, name))
                for name in names
            ],
            columns=["Evaluator", "Average score", "Pass rate", "Errors"],
        )
        parts += ["<h2>Evaluators</h2>", _html_table(evaluators, "evaluators")]

    items = to_dataframe(result, primary_output_key)
    items["success"] = items["success"].map({True: "PASS", False: "FAIL"})
    parts += ["<h2>Items</h2>", _html_table(items, "items"), "</body>", "</html>"]
    return "\n".join(parts)


def _write(path: str | os.PathLike, content: str) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def export_json(result: ExperimentResult, path: str | os.PathLike) -> Path:
    return _write(path, to_json(result))


def export_csv(result: ExperimentResult, path: str | os.PathLike, primary_output_key: str = "output") -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    to_dataframe(result, primary_output_key).to_csv(path, index=False, encoding="utf-8")
    return path


def export_markdown(result: ExperimentResult, path: str | os.PathLike, primary_output_key: str = "output") -> Path:
    return _write(path, to_markdown(result, primary_output_key))


def export_html(result: ExperimentResult, path: str | os.PathLike, primary_output_key: str = "output") -> Path:
    return _write(path, to_html(result, primary_output_key))
