"""Configuration loading and index snapshot management."""
from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from package_registry.data import repository
from package_registry.domain.errors import DuplicateVersion
from package_registry.domain.models import RegistryConfig
from package_registry.storage.filesystem_loader import FilesystemManifestLoader

from conftest import write_package, write_yaml


@pytest.fixture(autouse=True)
def reset_state():
    repository.reset()
    yield
    repository.reset()


def test_missing_config_file_uses_defaults(tmp_path: Path) -> None:
    config = repository.load_config(tmp_path / "config.yml")
    assert config == RegistryConfig()


def test_config_file_is_read(tmp_path: Path) -> None:
    path = write_yaml(tmp_path / "config.yml", {"package_paths": ["./pkgs", "/srv/packages"], "refresh_interval_seconds": 30})

    config = repository.load_config(path)

    assert config.refresh_interval_seconds == 30
    assert repository.resolve_package_paths(config, path) == [
        (tmp_path / "pkgs").resolve(),
        Path("/srv/packages"),
    ]


def test_invalid_config_falls_back_to_defaults(tmp_path: Path) -> None:
    path = write_yaml(tmp_path / "config.yml", {"refresh_interval_seconds": 0})
    assert repository.load_config(path) == RegistryConfig()


def test_config_path_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = write_yaml(tmp_path / "registry.yml", {"service_name": "custom"})
    monkeypatch.setenv(repository.CONFIG_PATH_ENV_VAR, str(path))

    assert repository.get_config_path() == path
    assert repository.get_registry_config().service_name == "custom"


def test_build_index_publishes_snapshot(packages_root: Path) -> None:
    write_package(packages_root, "mysql", "1.0.0")
    write_package(packages_root, "nginx", "1.0.0", datasets={"access-log": {"title": "x", "type": "logs", "streams": [{"input": "logs"}]}})

    before = repository.get_catalog_index()
    built = repository.build_index(FilesystemManifestLoader([packages_root]))

    assert repository.get_catalog_index() is built
    assert len(before) == 0
    assert built.names() == ["mysql"]
    assert len(repository.get_load_failures()) == 1


def test_failed_rebuild_keeps_previous_snapshot(tmp_path: Path) -> None:
    first, second = tmp_path / "a", tmp_path / "b"
    write_package(first, "mysql", "1.0.0")
    loader = FilesystemManifestLoader([first, second])
    good = repository.build_index(loader)

    write_package(second, "mysql", "1.0.0")
    with pytest.raises(DuplicateVersion):
        repository.build_index(loader)

    assert repository.get_catalog_index() is good


def test_loader_uses_configured_paths(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = write_yaml(tmp_path / "config.yml", {"package_paths": ["packages"]})
    monkeypatch.setenv(repository.CONFIG_PATH_ENV_VAR, str(path))
    write_package(tmp_path / "packages", "mysql", "1.0.0")

    index = repository.build_index()

    assert index.names() == ["mysql"]


def test_shutdown_awaits_cancelled_rebuild_task(packages_root: Path) -> None:
    write_package(packages_root, "mysql", "1.0.0")
    repository.reset(config=RegistryConfig(), loader=FilesystemManifestLoader([packages_root]))

    async def start_and_stop():
        await repository.initialize_repository()
        task = repository._INDEX_TASK
        await repository.shutdown_repository()
        return task

    task = asyncio.run(start_and_stop())

    assert task.done() and task.cancelled()
    assert repository._INDEX_TASK is None
    assert repository.get_catalog_index().names() == ["mysql"]
