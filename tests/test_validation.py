"""Dataset manifest validation rules."""
from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from package_registry.domain.errors import InvalidIdentifier, InvalidPackage, MissingPipeline, UnusedPipelines
from package_registry.domain.models import Dataset, Stream
from package_registry.domain.validation import list_pipeline_files, validate_dataset, validate_package

from conftest import make_package


def make_dataset(dataset_id: str = "nginx.access", base_path: Path = None, **fields) -> Dataset:
    return Dataset(
        id=dataset_id,
        title="Access logs",
        type="logs",
        streams=[Stream(input="logs")],
        base_path=str(base_path) if base_path else None,
        **fields,
    )


def test_hyphen_in_id_is_rejected() -> None:
    with pytest.raises(InvalidIdentifier):
        validate_dataset(make_dataset("my-dataset"), [])


def test_hyphen_is_checked_before_pipelines() -> None:
    with pytest.raises(InvalidIdentifier):
        validate_dataset(make_dataset("my-dataset", ingest_pipeline="missing"), [])


def test_no_pipelines_and_no_reference_is_valid() -> None:
    dataset = make_dataset()
    assert validate_dataset(dataset, []) is dataset


@pytest.mark.parametrize("filename", ["default.json", "default.yml"])
def test_default_pipeline_is_picked_up_implicitly(filename: str) -> None:
    dataset = make_dataset()

    validated = validate_dataset(dataset, [filename])

    assert validated.ingest_pipeline == "default"
    assert dataset.ingest_pipeline is None


def test_unreferenced_pipeline_files_fail() -> None:
    with pytest.raises(UnusedPipelines) as excinfo:
        validate_dataset(make_dataset(), ["custom.json"])
    assert excinfo.value.pipelines == ["custom.json"]


def test_referenced_pipeline_in_yaml_passes() -> None:
    dataset = make_dataset(ingest_pipeline="access")
    assert validate_dataset(dataset, ["access.yml"]).ingest_pipeline == "access"


def test_referenced_pipeline_must_exist() -> None:
    with pytest.raises(MissingPipeline) as excinfo:
        validate_dataset(make_dataset(ingest_pipeline="access"), ["error.json"])
    assert excinfo.value.pipeline == "access"


def test_explicit_pipeline_with_extra_default_file_passes() -> None:
    validated = validate_dataset(make_dataset(ingest_pipeline="access"), ["access.json", "default.json"])
    assert validated.ingest_pipeline == "access"


def test_pipeline_files_are_listed_from_disk(tmp_path: Path) -> None:
    pipeline_dir = tmp_path / "elasticsearch" / "ingest-pipeline"
    pipeline_dir.mkdir(parents=True)
    (pipeline_dir / "default.yml").write_text("processors: []", encoding="utf-8")
    dataset = make_dataset(base_path=tmp_path)

    assert list_pipeline_files(dataset) == ["default.yml"]
    assert validate_dataset(dataset).ingest_pipeline == "default"


def test_missing_pipeline_directory_means_no_pipelines(tmp_path: Path) -> None:
    dataset = make_dataset(base_path=tmp_path)
    assert list_pipeline_files(dataset) == []
    with pytest.raises(MissingPipeline):
        validate_dataset(make_dataset(base_path=tmp_path, ingest_pipeline="default"))


def test_validate_package_propagates_dataset_errors() -> None:
    package = make_package("nginx", "1.0.0", datasets=[make_dataset("nginx-access")])
    with pytest.raises(InvalidIdentifier):
        validate_package(package)


def test_validate_package_rejects_blank_name() -> None:
    with pytest.raises(InvalidPackage):
        validate_package(make_package(" ", "1.0.0"))


def test_validate_package_returns_updated_datasets(tmp_path: Path) -> None:
    pipeline_dir = tmp_path / "elasticsearch" / "ingest-pipeline"
    pipeline_dir.mkdir(parents=True)
    (pipeline_dir / "default.json").write_text("{}", encoding="utf-8")
    package = make_package("nginx", "1.0.0", datasets=[make_dataset(base_path=tmp_path)])

    validated = validate_package(package)

    assert validated.datasets[0].ingest_pipeline == "default"
    assert package.datasets[0].ingest_pipeline is None


def test_package_name_must_not_contain_key_separator() -> None:
    with pytest.raises(ValidationError, match="must not contain '@'"):
        make_package("my@sql", "1.0.0")
