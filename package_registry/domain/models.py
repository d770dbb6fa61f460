"""
Pydantic models for the package registry.

This module defines the data models used throughout the application:
- Registry configuration
- Package, dataset and stream metadata read from manifests
- The per-request catalog query

Catalog records are frozen: once the manifest loader has built and validated
them they are shared, read-only, between every concurrent query.
"""

from __future__ import annotations

import posixpath
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, JsonValue, PrivateAttr, field_validator

from .versions import parse_constraint, parse_version, satisfies


# Separator used to build composite "name@version" keys. Package names must not contain it.
KEY_SEPARATOR = "@"

DEFAULT_DATASET_RELEASE = "beta"


# ---------------------------------------------------------------------------
# Registry Configuration Models
# ---------------------------------------------------------------------------


class RegistryConfig(BaseModel):
    """
    Top-level configuration for the registry service.

    Loaded from: config.yml (path overridable via PACKAGE_REGISTRY_CONFIG)
    """

    service_name: str = Field(
        default="package-registry",
        description="Name reported by the index endpoint.",
    )
    package_paths: List[str] = Field(
        default_factory=lambda: ["./packages"],
        description="Directories holding <name>/<version>/ package trees. Relative paths are resolved against the config file.",
    )
    refresh_interval_seconds: int = Field(
        default=3600,
        ge=1,
        description="How often (in seconds) the in-memory index is rebuilt from disk.",
    )


# ---------------------------------------------------------------------------
# Package Metadata Models
# ---------------------------------------------------------------------------


class Icon(BaseModel):
    model_config = ConfigDict(frozen=True)

    src: str
    title: Optional[str] = None
    size: Optional[str] = None
    type: Optional[str] = None


class KibanaRequirement(BaseModel):
    model_config = ConfigDict(frozen=True)

    versions: Optional[str] = Field(
        default=None,
        description="Version range of Kibana this package is compatible with (e.g. '^7.0.0').",
    )

    _matcher: Any = PrivateAttr(default=None)

    @field_validator("versions")
    @classmethod
    def _check_range(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        parse_constraint(value)
        return value

    def model_post_init(self, __context: Any) -> None:
        # Parsed once per manifest load, reused by every query.
        if self.versions:
            self._matcher = parse_constraint(self.versions)

    @property
    def matcher(self):
        return self._matcher


class Requirement(BaseModel):
    model_config = ConfigDict(frozen=True)

    kibana: KibanaRequirement = Field(default_factory=KibanaRequirement)


class Stream(BaseModel):
    """
    One input configuration of a dataset.

    Variable definitions are loosely typed manifest data; ``JsonValue``
    restricts them to strings, numbers, booleans, null, lists and nested maps.
    """

    model_config = ConfigDict(frozen=True)

    input: str = Field(min_length=1, description="Data collection mechanism (e.g. 'logs', 'mysql/metrics').")
    vars: List[Dict[str, JsonValue]] = Field(default_factory=list)
    dataset: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None


class Dataset(BaseModel):
    """
    A data collection unit owned by exactly one package.

    ``id`` defaults to ``{package}.{path}`` and ``release`` to ``beta``; the
    manifest loader fills those in before validation.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = Field(min_length=1)
    type: str = Field(min_length=1)
    release: str = DEFAULT_DATASET_RELEASE
    ingest_pipeline: Optional[str] = None
    streams: List[Stream] = Field(min_length=1)
    package: Optional[str] = None
    path: Optional[str] = Field(
        default=None,
        description="Name of the dataset directory inside the package.",
    )

    # Local path to the dataset directory, never serialized to callers.
    base_path: Optional[str] = Field(default=None, exclude=True)


class Package(BaseModel):
    """
    One published package at one specific version.

    Persisted in: <package_path>/<name>/<version>/manifest.yml
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    version: str
    title: Optional[str] = None
    description: str = ""
    type: str = "integration"
    categories: List[str] = Field(default_factory=list)
    release: Optional[str] = None
    format_version: Optional[str] = None
    requirement: Requirement = Field(default_factory=Requirement)
    internal: bool = False
    icons: Optional[List[Icon]] = None
    datasets: List[Dataset] = Field(default_factory=list)

    # Local path to the package version directory, never serialized to callers.
    base_path: Optional[str] = Field(default=None, exclude=True)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if KEY_SEPARATOR in value:
            raise ValueError(f"package name must not contain '{KEY_SEPARATOR}': {value}")
        return value

    @field_validator("version")
    @classmethod
    def _check_version(cls, value: str) -> str:
        parse_version(value)
        return value

    @property
    def key(self) -> str:
        return f"{self.name}{KEY_SEPARATOR}{self.version}"

    @property
    def download_path(self) -> str:
        return posixpath.join("/epr", self.name, f"{self.name}-{self.version}.tar.gz")

    @property
    def catalog_path(self) -> str:
        return posixpath.join("/package", self.name, self.version)

    def has_category(self, category: str) -> bool:
        return category in self.categories

    def has_kibana_version(self, kibana_version) -> bool:
        """
        Packages without a Kibana constraint are compatible with every version.
        """
        matcher = self.requirement.kibana.matcher
        if matcher is None:
            return True
        return satisfies(matcher, kibana_version)


# ---------------------------------------------------------------------------
# Query Models
# ---------------------------------------------------------------------------


class CatalogQuery(BaseModel):
    """
    Filter parameters of a single catalog request. Never persisted.
    """

    model_config = ConfigDict(frozen=True)

    kibana_version: Optional[str] = Field(
        default=None,
        description="Only return packages compatible with this Kibana version.",
    )
    category: Optional[str] = None
    package_name: Optional[str] = None
    all_versions: bool = Field(
        default=False,
        description="Return every matching version instead of only the newest one per package.",
    )
    internal: bool = Field(
        default=False,
        description="Include packages flagged as internal.",
    )
