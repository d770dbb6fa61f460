"""
Catalog resolution: filter the index, pick the exposed version of every
package and project the result into output records.

Every function here is pure; a query only reads the index it is given.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from .index import PackageIndex
from .models import KEY_SEPARATOR, CatalogQuery, Package
from .versions import Ordering, compare, parse_version

logger = logging.getLogger(__name__)

Predicate = Callable[[Package], bool]


# ---------------------------------------------------------------------------
# Filter pipeline
# ---------------------------------------------------------------------------


def build_predicates(query: CatalogQuery) -> List[Predicate]:
    """
    Turn a query into the ordered list of active predicates.

    Order: visibility, category, Kibana compatibility, name. Category runs
    before any version handling so an older version in the category is still
    found when the newest one left it.
    """
    predicates: List[Predicate] = []

    if not query.internal:
        predicates.append(lambda p: not p.internal)

    if query.category:
        category = query.category
        predicates.append(lambda p: p.has_category(category))

    if query.kibana_version:
        # Parsed once up front so a malformed version rejects the whole query.
        kibana_version = parse_version(query.kibana_version)
        predicates.append(lambda p: p.has_kibana_version(kibana_version))

    if query.package_name:
        package_name = query.package_name
        predicates.append(lambda p: p.name == package_name)

    return predicates


def filter_packages(index: PackageIndex, query: CatalogQuery) -> List[Package]:
    predicates = build_predicates(query)
    return [p for p in index.packages() if all(check(p) for check in predicates)]


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def _traversal_key(package: Package):
    return package.name, parse_version(package.version)


def select_packages(filtered: List[Package], all_versions: bool = False) -> List[Package]:
    """
    Keep only the newest version of each package name unless all versions
    were requested.
    """
    if all_versions:
        seen = set()
        unique: List[Package] = []
        for p in filtered:
            if p.key not in seen:
                seen.add(p.key)
                unique.append(p)
        return unique

    newest: Dict[str, Package] = {}
    for p in sorted(filtered, key=_traversal_key):
        current = newest.get(p.name)
        # Only a strictly newer version replaces the current pick, so ties keep the first one.
        if current is None or compare(p.version, current.version) is Ordering.GREATER:
            newest[p.name] = p
    return list(newest.values())


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def sort_key(package: Package) -> str:
    return package.name + KEY_SEPARATOR + package.version


def package_summary(package: Package) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "name": package.name,
        "description": package.description,
        "version": package.version,
        "type": package.type,
        "download": package.download_path,
        "path": package.catalog_path,
    }
    if package.title is not None:
        data["title"] = package.title
    if package.icons is not None:
        data["icons"] = [icon.model_dump(exclude_none=True) for icon in package.icons]
    if package.internal:
        data["internal"] = True
    return data


def format_results(selected: List[Package]) -> List[Dict[str, Any]]:
    return [package_summary(p) for p in sorted(selected, key=sort_key)]


def resolve(index: PackageIndex, query: Optional[CatalogQuery] = None) -> List[Dict[str, Any]]:
    """
    Run a catalog query end to end: filter, select, format.

    A package name filter still returns only the newest matching version
    unless ``all_versions`` is set as well.
    """
    query = query or CatalogQuery()
    filtered = filter_packages(index, query)
    selected = select_packages(filtered, query.all_versions)
    logger.debug(
        f"Resolved query {query.model_dump(exclude_defaults=True)}: "
        f"{len(filtered)} matching, {len(selected)} selected"
    )
    return format_results(selected)


def list_categories(index: PackageIndex, internal: bool = False) -> List[Dict[str, Any]]:
    """
    Count, per category, the packages whose newest visible version carries it.
    """
    newest = select_packages(filter_packages(index, CatalogQuery(internal=internal)))

    counts: Dict[str, int] = {}
    for p in newest:
        for category in set(p.categories):
            counts[category] = counts.get(category, 0) + 1

    return [
        {"id": category, "title": category, "count": counts[category]}
        for category in sorted(counts)
    ]
