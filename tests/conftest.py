"""Shared fixtures: in-memory packages and on-disk package trees."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import pytest
import yaml

from package_registry.domain.models import Package


def make_package(name: str, version: str, **fields: Any) -> Package:
    return Package(name=name, version=version, description=f"{name} integration", **fields)


def write_yaml(path: Path, data: Dict[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return path


def write_package(
    root: Path,
    name: str,
    version: str,
    datasets: Optional[Dict[str, Dict[str, Any]]] = None,
    pipelines: Optional[Dict[str, Iterable[str]]] = None,
    **manifest: Any,
) -> Path:
    """Create <root>/<name>/<version> with a package manifest and datasets."""

    version_dir = root / name / version
    data = {"name": name, "version": version, "title": name.title(), "description": f"{name} integration"}
    data.update(manifest)
    write_yaml(version_dir / "manifest.yml", data)

    for dataset_name, dataset_manifest in (datasets or {}).items():
        write_yaml(version_dir / "dataset" / dataset_name / "manifest.yml", dataset_manifest)

    for dataset_name, files in (pipelines or {}).items():
        pipeline_dir = version_dir / "dataset" / dataset_name / "elasticsearch" / "ingest-pipeline"
        pipeline_dir.mkdir(parents=True, exist_ok=True)
        for filename in files:
            (pipeline_dir / filename).write_text("{}", encoding="utf-8")

    return version_dir


def dataset_manifest(**overrides: Any) -> Dict[str, Any]:
    data = {
        "title": "Access logs",
        "type": "logs",
        "streams": [{"input": "logs", "vars": [{"name": "paths", "type": "text", "multi": True, "default": ["/var/log/*.log"]}]}],
    }
    data.update(overrides)
    return data


@pytest.fixture()
def packages_root(tmp_path: Path) -> Path:
    root = tmp_path / "packages"
    root.mkdir()
    return root
