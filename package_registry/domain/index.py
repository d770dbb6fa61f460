"""
Immutable in-memory snapshot of every package version known to the registry.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Set

from .errors import DuplicateVersion
from .models import Package
from .versions import parse_version, release_key


class PackageIndex:
    """
    Mapping of package name -> version string -> Package.

    An index is built once from a full list of packages and never changes
    afterwards; rebuilding the catalog produces a new index object.
    """

    __slots__ = ("_packages",)

    def __init__(self, packages: Mapping[str, Mapping[str, Package]]):
        self._packages = MappingProxyType(
            {name: MappingProxyType(dict(versions)) for name, versions in packages.items()}
        )

    @classmethod
    def build(cls, packages: Iterable[Package]) -> "PackageIndex":
        """
        Build an index, rejecting two packages with the same name and release.

        Versions differing only in build metadata are the same release.
        """
        by_name: Dict[str, Dict[str, Package]] = {}
        releases: Dict[str, Set[str]] = {}
        for package in packages:
            versions = by_name.setdefault(package.name, {})
            seen = releases.setdefault(package.name, set())
            key = release_key(package.version)
            if key in seen:
                raise DuplicateVersion(package.name, package.version)
            seen.add(key)
            versions[package.version] = package
        return cls(by_name)

    @classmethod
    def empty(cls) -> "PackageIndex":
        return cls({})

    def names(self) -> List[str]:
        return sorted(self._packages)

    def versions(self, name: str) -> Mapping[str, Package]:
        return self._packages.get(name, MappingProxyType({}))

    def get(self, name: str, version: str) -> Optional[Package]:
        return self.versions(name).get(version)

    def packages(self) -> List[Package]:
        """
        All packages, ordered by name and then by version precedence.
        """
        result: List[Package] = []
        for name in self.names():
            versions = self._packages[name]
            result.extend(versions[v] for v in sorted(versions, key=parse_version))
        return result

    def __len__(self) -> int:
        return sum(len(v) for v in self._packages.values())

    def __contains__(self, name: object) -> bool:
        return name in self._packages

    def __repr__(self) -> str:
        return f"PackageIndex(names={len(self._packages)}, packages={len(self)})"
