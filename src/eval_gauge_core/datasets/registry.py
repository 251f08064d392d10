"""
Dataset Resolver Registry

Dispatches a locator to the first registered resolver that supports it.
"""

import logging
import threading
from typing import Iterable

from eval_gauge_core.datasets.resolvers import (
    DatasetResolver,
    FileDatasetResolver,
    PackageResourceDatasetResolver,
)
from eval_gauge_core.domain.entities import Dataset
from eval_gauge_core.domain.exceptions import DatasetResolutionError

logger = logging.getLogger(__name__)


class DatasetResolverRegistry:
    """
    Ordered collection of dataset resolvers

    Registration order is priority: for overlapping locators the first resolver wins.
    """

    def __init__(self, resolvers: Iterable[DatasetResolver] = ()):
        self._lock = threading.Lock()
        self._resolvers: tuple[DatasetResolver, ...] = tuple(resolvers)

    @property
    def resolvers(self) -> tuple[DatasetResolver, ...]:
        return self._resolvers

    def register(self, resolver: DatasetResolver) -> "DatasetResolverRegistry":
        """Append a resolver (lowest priority so far)"""
        if resolver is None:
            raise ValueError("resolver must not be None")
        with self._lock:
            self._resolvers = self._resolvers + (resolver,)
        return self

    def resolve(self, locator: str) -> Dataset:
        """
        Resolve a locator to a Dataset

        Args:
            locator: Dataset locator (path, "file:...", "classpath:...", ...)

        Returns:
            Dataset: Fully loaded dataset

        Raises:
            DatasetResolutionError: UNSUPPORTED when no resolver matches,
                LOAD_FAILURE when the matched resolver fails
        """
        for resolver in self._resolvers:
            if not resolver.supports(locator):
                continue
            logger.debug("Resolving dataset %s with %s", locator, type(resolver).__name__)
            try:
                return resolver.resolve(locator)
            except DatasetResolutionError:
                raise
            except Exception as e:
                raise DatasetResolutionError.load_failure(locator, e) from e
        raise DatasetResolutionError.unsupported(locator)


def create_default_registry(
    extra_resolvers: Iterable[DatasetResolver] = (),
) -> DatasetResolverRegistry:
    """
    Create a registry with the built-in resolvers

    Extra resolvers take precedence, then package resources, then the file catch-all.
    """
    registry = DatasetResolverRegistry(extra_resolvers)
    registry.register(PackageResourceDatasetResolver())
    registry.register(FileDatasetResolver())
    return registry
