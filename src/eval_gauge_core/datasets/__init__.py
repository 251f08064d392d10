"""
Datasets

Dataset parsing (JSON / JSONL / CSV / inline records) and locator-based resolution.
"""

from eval_gauge_core.datasets.parser import (
    dataset_from_dict,
    dataset_from_records,
    example_from_record,
    load_dataset_file,
    parse_content,
    parse_csv,
    parse_json,
    parse_jsonl,
)
from eval_gauge_core.datasets.registry import DatasetResolverRegistry, create_default_registry
from eval_gauge_core.datasets.resolvers import (
    DatasetResolver,
    FileDatasetResolver,
    PackageResourceDatasetResolver,
)

__all__ = [
    "DatasetResolver",
    "DatasetResolverRegistry",
    "FileDatasetResolver",
    "PackageResourceDatasetResolver",
    "create_default_registry",
    "dataset_from_dict",
    "dataset_from_records",
    "example_from_record",
    "load_dataset_file",
    "parse_content",
    "parse_csv",
    "parse_json",
    "parse_jsonl",
]
