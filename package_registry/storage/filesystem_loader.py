from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List

import yaml
from pydantic import ValidationError

from package_registry.domain.errors import PackageLoadError, RegistryError
from package_registry.domain.models import DEFAULT_DATASET_RELEASE, Dataset, Package
from package_registry.domain.validation import validate_package
from package_registry.storage.manifest_loader import LoadFailure, LoadResult, ManifestLoader

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.yml"
DATASET_DIR = "dataset"


class FilesystemManifestLoader(ManifestLoader):
    """
    Loads packages laid out on disk as::

        <package_path>/<name>/<version>/manifest.yml
        <package_path>/<name>/<version>/dataset/<dataset>/manifest.yml
        <package_path>/<name>/<version>/dataset/<dataset>/elasticsearch/ingest-pipeline/*
    """

    def __init__(self, package_paths: Iterable[Path]):
        self._package_paths = [Path(p) for p in package_paths]

    def load_all(self) -> LoadResult:
        result = LoadResult()

        for base in self._package_paths:
            if not base.is_dir():
                logger.warning(f"Package path does not exist, skipping: {base}")
                continue

            for version_dir in self._package_dirs(base):
                try:
                    package = self.load_package(version_dir)
                except RegistryError as e:
                    logger.warning(f"Skipping package at {version_dir}: {e}")
                    result.failures.append(LoadFailure(path=str(version_dir), error=str(e)))
                    continue
                result.packages.append(package)

        logger.info(
            f"Loaded {len(result.packages)} packages "
            f"({len(result.failures)} failed) from {len(self._package_paths)} package paths"
        )
        return result

    @staticmethod
    def _package_dirs(base: Path) -> List[Path]:
        dirs: List[Path] = []
        for name_dir in sorted(base.iterdir()):
            if not name_dir.is_dir():
                continue
            for version_dir in sorted(name_dir.iterdir()):
                if version_dir.is_dir() and (version_dir / MANIFEST_FILE).is_file():
                    dirs.append(version_dir)
        return dirs

    def load_package(self, version_dir: Path) -> Package:
        """
        Parse and validate a single package version directory.
        """
        raw = _read_manifest(version_dir / MANIFEST_FILE)
        name = raw.get("name")
        if not name:
            raise PackageLoadError(str(version_dir), "manifest has no name")

        raw["datasets"] = [
            self._load_dataset(dataset_dir, str(name))
            for dataset_dir in self._dataset_dirs(version_dir)
        ]
        raw["base_path"] = str(version_dir)

        try:
            package = Package.model_validate(raw)
        except ValidationError as e:
            raise PackageLoadError(str(version_dir), f"invalid package manifest: {e}") from e

        return validate_package(package)

    @staticmethod
    def _dataset_dirs(version_dir: Path) -> List[Path]:
        root = version_dir / DATASET_DIR
        if not root.is_dir():
            return []
        return [d for d in sorted(root.iterdir()) if d.is_dir()]

    def _load_dataset(self, dataset_dir: Path, package_name: str) -> Dataset:
        manifest_path = dataset_dir / MANIFEST_FILE
        if not manifest_path.is_file():
            raise PackageLoadError(str(dataset_dir), f"manifest does not exist for dataset in package: {package_name}")

        raw = _read_manifest(manifest_path)

        # Defaults derived from the directory the dataset lives in.
        raw["id"] = raw.get("id") or f"{package_name}.{dataset_dir.name}"
        raw["release"] = raw.get("release") or DEFAULT_DATASET_RELEASE
        raw["package"] = package_name
        raw["path"] = dataset_dir.name
        raw["base_path"] = str(dataset_dir)

        try:
            return Dataset.model_validate(raw)
        except ValidationError as e:
            raise PackageLoadError(
                str(dataset_dir),
                f"error building dataset (path: {dataset_dir.name}) in package {package_name}: {e}",
            ) from e


def _read_manifest(path: Path) -> Dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise PackageLoadError(str(path), f"failed to read manifest: {e}") from e

    if not isinstance(raw, dict):
        raise PackageLoadError(str(path), "manifest is not a mapping")
    return raw
