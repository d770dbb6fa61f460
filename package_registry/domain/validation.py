"""
Structural validation of package and dataset manifests.

Only packages that pass these checks are ever added to the catalog index.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from .errors import InvalidIdentifier, InvalidPackage, MissingPipeline, UnusedPipelines
from .models import Dataset, Package

logger = logging.getLogger(__name__)

PIPELINE_EXTENSIONS = (".json", ".yml")
DEFAULT_PIPELINE = "default"


def pipeline_dir(dataset: Dataset) -> Optional[Path]:
    if not dataset.base_path:
        return None
    return Path(dataset.base_path) / "elasticsearch" / "ingest-pipeline"


def list_pipeline_files(dataset: Dataset) -> List[str]:
    """
    Return the file names found in the dataset's ingest pipeline directory.
    """
    directory = pipeline_dir(dataset)
    if directory is None or not directory.is_dir():
        return []
    return sorted(p.name for p in directory.iterdir())


def _has_pipeline(name: str, files: Iterable[str]) -> bool:
    candidates = {name + ext for ext in PIPELINE_EXTENSIONS}
    return any(f in candidates for f in files)


def validate_dataset(dataset: Dataset, pipeline_files: Optional[Iterable[str]] = None) -> Dataset:
    """
    Check naming and ingest pipeline consistency for a dataset.

    ``pipeline_files`` are the names present in
    ``<base_path>/elasticsearch/ingest-pipeline``; when omitted the directory
    is listed here. Returns the dataset, with ``ingest_pipeline`` set to
    ``default`` when it was unset and a default pipeline ships with it.
    """
    if "-" in dataset.id:
        raise InvalidIdentifier(dataset.id)

    files = sorted(pipeline_files) if pipeline_files is not None else list_pipeline_files(dataset)

    ingest_pipeline = dataset.ingest_pipeline
    if not ingest_pipeline and _has_pipeline(DEFAULT_PIPELINE, files):
        ingest_pipeline = DEFAULT_PIPELINE

    if not ingest_pipeline and files:
        raise UnusedPipelines(dataset.id, files)

    if ingest_pipeline and not _has_pipeline(ingest_pipeline, files):
        directory = pipeline_dir(dataset)
        raise MissingPipeline(dataset.id, ingest_pipeline, str(directory) if directory else "")

    if ingest_pipeline != dataset.ingest_pipeline:
        logger.debug(f"Dataset {dataset.id} uses implicit ingest pipeline '{ingest_pipeline}'")
        return dataset.model_copy(update={"ingest_pipeline": ingest_pipeline})
    return dataset


def validate_package(package: Package) -> Package:
    """
    Validate every dataset of a package. Any failing dataset fails the package.
    """
    if not package.name.strip():
        raise InvalidPackage("package name must not be empty")

    datasets = [validate_dataset(d) for d in package.datasets]
    if any(new is not old for new, old in zip(datasets, package.datasets)):
        return package.model_copy(update={"datasets": datasets})
    return package
