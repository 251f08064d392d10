"""
Dataset Resolvers

A resolver maps a locator string to a Dataset. Built-in variants:
- FileDatasetResolver: bare paths and "file:" locators
- PackageResourceDatasetResolver: "classpath:" / "package:" locators read via importlib.resources
"""

from abc import ABC, abstractmethod
from importlib import resources
from pathlib import PurePosixPath

from eval_gauge_core.datasets.parser import load_dataset_file, parse_content
from eval_gauge_core.domain.entities import Dataset

FILE_PREFIX = "file:"
RESOURCE_PREFIXES = ("classpath:", "package:")


class DatasetResolver(ABC):
    """Strategy that loads datasets for the locators it supports"""

    @abstractmethod
    def supports(self, locator: str) -> bool:
        """Return True if this resolver can handle the locator"""
        pass

    @abstractmethod
    def resolve(self, locator: str) -> Dataset:
        """Load the dataset the locator points to"""
        pass


class FileDatasetResolver(DatasetResolver):
    """
    Resolves datasets from the filesystem

    Supports "file:" locators and bare paths, i.e. any non-blank locator that does
    not carry another known scheme. Register it last as the catch-all.
    """

    def supports(self, locator: str) -> bool:
        if not locator or not locator.strip():
            return False
        return not locator.startswith(RESOURCE_PREFIXES)

    def resolve(self, locator: str) -> Dataset:
        path = locator[len(FILE_PREFIX):] if locator.startswith(FILE_PREFIX) else locator
        # file:///abs/path form
        if path.startswith("//"):
            path = path[2:]
        return load_dataset_file(path)


class PackageResourceDatasetResolver(DatasetResolver):
    """
    Resolves datasets bundled inside an installed Python package

    Locator form: "classpath:<package>/<relative/path.json>" (or "package:" prefix).
    The package may be dotted, e.g. "classpath:eval_gauge_core.datasets/samples/qa.json".
    """

    def supports(self, locator: str) -> bool:
        return bool(locator) and locator.startswith(RESOURCE_PREFIXES)

    def resolve(self, locator: str) -> Dataset:
        _, _, reference = locator.partition(":")
        package, sep, relative = reference.lstrip("/").partition("/")
        if not package or not sep or not relative:
            raise ValueError(
                f"Resource locator must look like 'classpath:<package>/<path>': {locator}"
            )
        resource = resources.files(package)
        for part in PurePosixPath(relative).parts:
            resource = resource.joinpath(part)
        content = resource.read_text(encoding="utf-8")
        suffix = PurePosixPath(relative).suffix
        return parse_content(content, suffix, default_name=PurePosixPath(relative).stem)
