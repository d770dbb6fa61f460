from __future__ import annotations

from typing import Any, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from package_registry import __version__
from package_registry.core.dependencies import decode_query, get_config, get_index, parse_bool
from package_registry.domain.errors import MalformedVersion
from package_registry.domain.index import PackageIndex
from package_registry.domain.models import CatalogQuery, RegistryConfig
from package_registry.domain.registry_utils import strip_nulls, to_json
from package_registry.domain.search import list_categories, resolve
from package_registry.domain.versions import parse_version

logger = logging.getLogger(__name__)
router = APIRouter()


class IndentedJSONResponse(JSONResponse):
    def render(self, content: Any) -> bytes:
        return to_json(content).encode("utf-8")


# ---------------------------------------------------------------------------
# 1. GET /
# ---------------------------------------------------------------------------

@router.get("/", response_class=IndentedJSONResponse)
async def index_info(config: RegistryConfig = Depends(get_config)) -> IndentedJSONResponse:
    """
    Service identification.
    """
    return IndentedJSONResponse({"service.name": config.service_name, "version": __version__})


# ---------------------------------------------------------------------------
# 2. GET /search
# ---------------------------------------------------------------------------

@router.get("/search", response_class=IndentedJSONResponse)
async def search(
    query: CatalogQuery = Depends(decode_query),
    index: PackageIndex = Depends(get_index),
) -> IndentedJSONResponse:
    """
    List packages matching the query, newest version per package unless `all` is set.
    """
    try:
        results = resolve(index, query)
    except MalformedVersion as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return IndentedJSONResponse(results)


# ---------------------------------------------------------------------------
# 3. GET /categories
# ---------------------------------------------------------------------------

@router.get("/categories", response_class=IndentedJSONResponse)
async def categories(
    internal: Optional[str] = Query(default=None),
    index: PackageIndex = Depends(get_index),
) -> IndentedJSONResponse:
    """
    Category list with the number of packages in each.
    """
    return IndentedJSONResponse(list_categories(index, internal=parse_bool(internal)))


# ---------------------------------------------------------------------------
# 4. GET /package/{name}/{version}
# ---------------------------------------------------------------------------

@router.get("/package/{name}/{version}", response_class=IndentedJSONResponse)
async def get_package(
    name: str,
    version: str,
    index: PackageIndex = Depends(get_index),
) -> IndentedJSONResponse:
    """
    Full package document including its datasets.
    """
    try:
        parse_version(version)
    except MalformedVersion as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    package = index.get(name, version)
    if package is None:
        raise HTTPException(status_code=404, detail="Package not found")

    data = package.model_dump(mode="json")
    data["download"] = package.download_path
    data["path"] = package.catalog_path
    return IndentedJSONResponse(strip_nulls(data))
