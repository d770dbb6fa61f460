"""
Exception hierarchy for the package registry.

Every error raised by the catalog core derives from ``RegistryError`` so the
API layer and the manifest loader can decide, at their own boundary, whether a
failure rejects a request, skips a single package or aborts an index build.
"""

from __future__ import annotations

from typing import List


class RegistryError(Exception):
    """Base class for all registry errors."""


class MalformedVersion(RegistryError, ValueError):
    """A version string could not be parsed as a semantic version."""

    kind = "version"

    def __init__(self, value: str, reason: str = "") -> None:
        self.value = value
        message = f"invalid {self.kind} '{value}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class MalformedConstraint(MalformedVersion):
    """A version range expression could not be parsed."""

    kind = "version constraint"


# ---------------------------------------------------------------------------
# Manifest validation
# ---------------------------------------------------------------------------


class DatasetValidationError(RegistryError):
    """A dataset manifest violates a structural rule."""

    def __init__(self, dataset_id: str, message: str) -> None:
        self.dataset_id = dataset_id
        super().__init__(message)


class InvalidIdentifier(DatasetValidationError):
    def __init__(self, dataset_id: str) -> None:
        super().__init__(
            dataset_id,
            f"dataset name is not allowed to contain `-`: {dataset_id}",
        )


class UnusedPipelines(DatasetValidationError):
    def __init__(self, dataset_id: str, pipelines: List[str]) -> None:
        self.pipelines = sorted(pipelines)
        super().__init__(
            dataset_id,
            f"package contains pipelines which are not used: {self.pipelines}, {dataset_id}",
        )


class MissingPipeline(DatasetValidationError):
    def __init__(self, dataset_id: str, pipeline: str, pipeline_dir: str) -> None:
        self.pipeline = pipeline
        super().__init__(
            dataset_id,
            f"defined ingest_pipeline does not exist: {pipeline_dir}/{pipeline} ({dataset_id})",
        )


class InvalidPackage(RegistryError):
    """Package-level metadata is unusable (bad name, missing fields, ...)."""


# ---------------------------------------------------------------------------
# Index and loading
# ---------------------------------------------------------------------------


class DuplicateVersion(RegistryError):
    """Two manifests claim the same package name and version."""

    def __init__(self, name: str, version: str) -> None:
        self.name = name
        self.version = version
        super().__init__(f"duplicate package version: {name}@{version}")


class PackageLoadError(RegistryError):
    """A single package directory could not be turned into a Package."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")
