from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List

from package_registry.domain.models import Package


@dataclass(frozen=True)
class LoadFailure:
    """A package directory that could not be loaded, and why."""

    path: str
    error: str


@dataclass
class LoadResult:
    packages: List[Package] = field(default_factory=list)
    failures: List[LoadFailure] = field(default_factory=list)


class ManifestLoader(ABC):
    """
    Abstract base class for package manifest sources.
    """

    @abstractmethod
    def load_all(self) -> LoadResult:
        """
        Read every package available in storage.

        A malformed package is reported in ``LoadResult.failures`` and must
        not prevent the other packages from loading.
        """
        pass
