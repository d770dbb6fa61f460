from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import ValidationError

from package_registry.domain.errors import RegistryError
from package_registry.domain.index import PackageIndex
from package_registry.domain.models import RegistryConfig
from package_registry.storage.filesystem_loader import FilesystemManifestLoader
from package_registry.storage.manifest_loader import LoadFailure, ManifestLoader

logger = logging.getLogger(__name__)


CONFIG_PATH_ENV_VAR = "PACKAGE_REGISTRY_CONFIG"

# Resolve repository root (project root, not the Python package root)
_REPO_ROOT = Path(__file__).resolve().parents[2]
_DEFAULT_CONFIG_PATH = _REPO_ROOT / "config.yml"


_registry_config: Optional[RegistryConfig] = None
_loader: Optional[ManifestLoader] = None
_catalog_index: PackageIndex = PackageIndex.empty()
_load_failures: List[LoadFailure] = []

_INDEX_TASK: Optional[asyncio.Task] = None


def get_config_path() -> Path:
    """
    Determine the configuration file path.

    Priority:
    1. Environment variable PACKAGE_REGISTRY_CONFIG
    2. '<project root>/config.yml'
    """
    env_path = os.environ.get(CONFIG_PATH_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return _DEFAULT_CONFIG_PATH


def load_config(path: Optional[Path] = None) -> RegistryConfig:
    """
    Load the YAML config file. A missing or unreadable file yields the defaults.
    """
    path = path or get_config_path()
    if not path.exists():
        logger.info(f"No config file at {path}, using defaults")
        return RegistryConfig()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        return RegistryConfig(**raw)
    except (OSError, yaml.YAMLError, ValidationError, TypeError) as e:
        logger.warning(f"Failed to parse config file {path}, using defaults: {e}")
        return RegistryConfig()


def resolve_package_paths(config: RegistryConfig, config_path: Optional[Path] = None) -> List[Path]:
    base = (config_path or get_config_path()).resolve().parent
    paths: List[Path] = []
    for p in config.package_paths:
        path = Path(p).expanduser()
        paths.append(path if path.is_absolute() else (base / path).resolve())
    return paths


def get_registry_config() -> RegistryConfig:
    global _registry_config
    if _registry_config is None:
        _registry_config = load_config()
    return _registry_config


def get_loader() -> ManifestLoader:
    global _loader
    if _loader is None:
        config = get_registry_config()
        _loader = FilesystemManifestLoader(resolve_package_paths(config))
    return _loader


def get_catalog_index() -> PackageIndex:
    """
    Return the current catalog snapshot.
    """
    return _catalog_index


def get_load_failures() -> List[LoadFailure]:
    return list(_load_failures)


def build_index(loader: Optional[ManifestLoader] = None) -> PackageIndex:
    """
    Load every package and publish a new index snapshot.

    The new index replaces the previous one in a single assignment, so a
    query holding the old snapshot keeps a consistent view. If the build
    fails (e.g. duplicate versions) the previous snapshot stays live.
    """
    global _catalog_index, _load_failures

    result = (loader or get_loader()).load_all()
    index = PackageIndex.build(result.packages)

    _catalog_index = index
    _load_failures = list(result.failures)
    logger.info(f"Built catalog index: {index!r}")
    return index


def reset(config: Optional[RegistryConfig] = None, loader: Optional[ManifestLoader] = None) -> None:
    """
    Replace the module state. Used on startup and by tests.
    """
    global _registry_config, _loader, _catalog_index, _load_failures
    _registry_config = config
    _loader = loader
    _catalog_index = PackageIndex.empty()
    _load_failures = []


async def _periodic_rebuild_loop() -> None:
    """
    Background task that refreshes the in-memory index every refresh_interval_seconds.
    """
    while True:
        config = get_registry_config()
        await asyncio.sleep(config.refresh_interval_seconds)
        try:
            build_index()
        except RegistryError as e:
            logger.error(f"Catalog rebuild failed, keeping previous index: {e}")
        except Exception as e:
            logger.error(f"Unexpected error rebuilding catalog index: {e}", exc_info=True)


async def initialize_repository() -> None:
    """
    Called by FastAPI on startup.

    Responsibilities:
    * Load the registry configuration.
    * Build the initial in-memory index.
    * Start a background task that rebuilds the index periodically.
    """
    global _INDEX_TASK

    config = get_registry_config()
    logger.info(f"Serving packages from: {[str(p) for p in resolve_package_paths(config)]}")

    try:
        build_index()
    except RegistryError as e:
        logger.error(f"Initial catalog build failed, serving an empty index: {e}")

    if _INDEX_TASK is None:
        _INDEX_TASK = asyncio.create_task(_periodic_rebuild_loop())


async def shutdown_repository() -> None:
    global _INDEX_TASK
    if _INDEX_TASK is None:
        return
    task, _INDEX_TASK = _INDEX_TASK, None
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
