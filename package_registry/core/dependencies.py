from typing import Optional

from fastapi import HTTPException, Query, status

from package_registry.data.repository import get_catalog_index, get_registry_config
from package_registry.domain.errors import MalformedVersion
from package_registry.domain.index import PackageIndex
from package_registry.domain.models import CatalogQuery, RegistryConfig
from package_registry.domain.versions import parse_version

_TRUE_VALUES = {"1", "t", "true"}


def parse_bool(value: Optional[str]) -> bool:
    """
    Lenient flag parsing: anything not recognised as true is false.
    """
    if value is None:
        return False
    return value.strip().lower() in _TRUE_VALUES


def get_config() -> RegistryConfig:
    return get_registry_config()


def get_index() -> PackageIndex:
    # Each request captures the snapshot once and uses it throughout.
    return get_catalog_index()


def decode_query(
    kibana: Optional[str] = Query(default=None, description="Kibana version the packages must be compatible with."),
    category: Optional[str] = Query(default=None),
    package: Optional[str] = Query(default=None, description="Only return versions of this package."),
    all_versions: Optional[str] = Query(default=None, alias="all", description="Return all versions instead of the newest."),
    internal: Optional[str] = Query(default=None, description="Include internal packages."),
) -> CatalogQuery:
    """
    Build a CatalogQuery from the request's query string.
    """
    if kibana:
        try:
            parse_version(kibana)
        except MalformedVersion as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"invalid Kibana version: {e}")

    return CatalogQuery(
        kibana_version=kibana or None,
        category=category or None,
        package_name=package or None,
        all_versions=parse_bool(all_versions),
        internal=parse_bool(internal),
    )
