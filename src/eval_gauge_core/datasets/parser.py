"""
Dataset Parser

Turns JSON, JSONL and CSV content (or already-structured records) into Dataset objects.

Record fields:
- input: required (or inputs: {"input": ...})
- expectedOutput / expected_output: required (or expectedOutputs: {"output": ...})
- metadata: optional object merged into the example metadata
- any other key: becomes metadata

CSV headers are matched case-insensitively and "output" is accepted for the
expected output column.
"""

import io
import json
from pathlib import Path
from typing import Any, Iterable, Mapping

import pandas as pd

from eval_gauge_core.domain.constants import PRIMARY_OUTPUT_KEY
from eval_gauge_core.domain.entities import Dataset, Example
from eval_gauge_core.domain.exceptions import DatasetFormatError

INPUT_KEY = "input"
EXPECTED_OUTPUT_KEYS = ("expectedOutput", "expected_output")
METADATA_KEY = "metadata"
INPUTS_KEY = "inputs"
EXPECTED_OUTPUTS_KEY = "expectedOutputs"
CSV_EXPECTED_OUTPUT_HEADERS = (*EXPECTED_OUTPUT_KEYS, "output")

_RESERVED_KEYS = {INPUT_KEY, METADATA_KEY, INPUTS_KEY, EXPECTED_OUTPUTS_KEY, *EXPECTED_OUTPUT_KEYS}
_MISSING = object()


def _expected_output_key(fields: Iterable[str]) -> str | None:
    fields = set(fields)
    for key in EXPECTED_OUTPUT_KEYS:
        if key in fields:
            return key
    return None


def _nested(record: Mapping[str, Any], key: str, where: str) -> dict:
    value = record.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise DatasetFormatError(f"Field '{key}' must be an object{where}")
    return dict(value)


def _take_primary(values: dict, key: str) -> Any:
    """Pop values[key], or the only value when there is exactly one"""
    if key in values:
        return values.pop(key)
    if len(values) == 1:
        return values.pop(next(iter(values)))
    return _MISSING


def example_from_record(record: Mapping[str, Any], position: str = "") -> Example:
    """
    Create an Example from one record

    Nested "inputs" / "expectedOutputs" objects win over the top-level fields.
    Their remaining entries become metadata.

    Args:
        record: Mapping with input / expectedOutput and optional extra fields
        position: Human-readable location used in error messages (e.g. "line 3")

    Returns:
        Example

    Raises:
        DatasetFormatError: If the record is not an object or a required field is missing
    """
    where = f" ({position})" if position else ""
    if not isinstance(record, Mapping):
        raise DatasetFormatError(f"Dataset record must be an object{where}: {record!r}")

    inputs = _nested(record, INPUTS_KEY, where)
    expected_outputs = _nested(record, EXPECTED_OUTPUTS_KEY, where)

    input_value = _take_primary(inputs, INPUT_KEY)
    if input_value is _MISSING:
        input_value = record.get(INPUT_KEY, _MISSING)
    if input_value is _MISSING:
        raise DatasetFormatError(f"Required field '{INPUT_KEY}' is missing{where}")

    expected = _take_primary(expected_outputs, PRIMARY_OUTPUT_KEY)
    if expected is _MISSING:
        expected_key = _expected_output_key(record)
        if expected_key is None:
            raise DatasetFormatError(f"Required field 'expectedOutput' is missing{where}")
        expected = record[expected_key]

    metadata = {k: v for k, v in record.items() if k not in _RESERVED_KEYS}
    metadata.update(inputs)
    metadata.update(expected_outputs)
    explicit = record.get(METADATA_KEY)
    if explicit is not None:
        if not isinstance(explicit, Mapping):
            raise DatasetFormatError(f"Field 'metadata' must be an object{where}")
        metadata.update(explicit)

    return Example(
        input=str(input_value),
        expected_output=None if expected is None else str(expected),
        metadata=metadata,
    )


def dataset_from_records(
    records: Iterable[Mapping[str, Any]],
    name: str = "unnamed",
    description: str = "",
) -> Dataset:
    """Create a Dataset from already-structured records (inline data)"""
    examples = [
        example_from_record(record, f"record {index}")
        for index, record in enumerate(records)
    ]
    return Dataset(name=name, examples=examples, description=description)


def dataset_from_dict(data: Any, default_name: str = "unnamed") -> Dataset:
    """
    Create a Dataset from parsed JSON data

    Accepts either {"name": ..., "description": ..., "examples": [...]} or a bare list of records.
    """
    if isinstance(data, list):
        return dataset_from_records(data, name=default_name)
    if not isinstance(data, Mapping):
        raise DatasetFormatError("Dataset JSON must be an object or an array of records")
    examples = data.get("examples")
    if not isinstance(examples, list):
        raise DatasetFormatError("Dataset JSON object requires an 'examples' array")
    return dataset_from_records(
        examples,
        name=data.get("name") or default_name,
        description=data.get("description") or "",
    )


def parse_json(content: str, default_name: str = "unnamed") -> Dataset:
    """Parse JSON dataset content"""
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise DatasetFormatError(f"Invalid dataset JSON: {e}") from e
    return dataset_from_dict(data, default_name)


def parse_jsonl(content: str, default_name: str = "unnamed") -> Dataset:
    """Parse JSON Lines dataset content (one record per non-blank line)"""
    examples = []
    for line_no, line in enumerate(content.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            raise DatasetFormatError(f"Invalid JSON on line {line_no}: {e}") from e
        examples.append(example_from_record(record, f"line {line_no}"))
    return Dataset(name=default_name, examples=examples)


def _find_column(columns: list[str], candidates: Iterable[str]) -> int | None:
    """Index of the first column matching a candidate (case-insensitive, candidate order wins)"""
    lowered = [c.lower() for c in columns]
    for candidate in candidates:
        if candidate.lower() in lowered:
            return lowered.index(candidate.lower())
    return None


def parse_csv(content: str, default_name: str = "unnamed") -> Dataset:
    """
    Parse CSV dataset content

    The header row declares the field names. All values are read as strings.

    Raises:
        DatasetFormatError: If the content is empty, unparseable, or lacks required columns
    """
    if not content.strip():
        raise DatasetFormatError("CSV dataset is empty")
    try:
        df = pd.read_csv(io.StringIO(content), dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DatasetFormatError(f"Invalid dataset CSV: {e}") from e

    columns = [str(c).strip() for c in df.columns]
    input_column = _find_column(columns, (INPUT_KEY,))
    if input_column is None:
        raise DatasetFormatError(f"CSV dataset requires an '{INPUT_KEY}' column")
    expected_column = _find_column(columns, CSV_EXPECTED_OUTPUT_HEADERS)
    if expected_column is None:
        raise DatasetFormatError(
            "CSV dataset requires an 'expectedOutput' (or 'expected_output', 'output') column"
        )
    columns[input_column] = INPUT_KEY
    columns[expected_column] = EXPECTED_OUTPUT_KEYS[0]
    df.columns = columns

    records = df.to_dict(orient="records")
    examples = [
        # Header is row 1
        example_from_record(record, f"row {index + 2}")
        for index, record in enumerate(records)
    ]
    return Dataset(name=default_name, examples=examples)


_PARSERS = {
    ".json": parse_json,
    ".jsonl": parse_jsonl,
    ".csv": parse_csv,
}


def parse_content(content: str, suffix: str, default_name: str = "unnamed") -> Dataset:
    """Parse dataset content with the parser chosen by file suffix"""
    parser = _PARSERS.get(suffix.lower())
    if parser is None:
        raise DatasetFormatError(
            f"Unsupported dataset format '{suffix}'. Supported: {sorted(_PARSERS)}"
        )
    return parser(content, default_name)


def load_dataset_file(file_path: str | Path) -> Dataset:
    """
    Load a dataset file (JSON / JSONL / CSV)

    Args:
        file_path: Path to the dataset file

    Returns:
        Dataset: Named after the "name" field, or the file stem when absent

    Raises:
        FileNotFoundError: If the file does not exist
        DatasetFormatError: If the content is malformed
    """
    path = Path(file_path)
    with open(path, "r", encoding="utf-8") as f:
        content = f.read()
    return parse_content(content, path.suffix, default_name=path.stem)
