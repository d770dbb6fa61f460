"""
Semantic version parsing and ordering.

Versions are parsed strictly (``major.minor.patch`` with optional pre-release
and build metadata) using ``semantic_version``. Build metadata never affects
precedence, so two versions differing only in build metadata compare EQUAL.
"""

from __future__ import annotations

import enum
from typing import Union

import semantic_version
from semantic_version.base import AllOf, AnyOf, Range

from .errors import MalformedConstraint, MalformedVersion

VersionLike = Union[str, semantic_version.Version]


class Ordering(enum.IntEnum):
    LESS = -1
    EQUAL = 0
    GREATER = 1


def parse_version(value: VersionLike) -> semantic_version.Version:
    """
    Parse a version string, raising MalformedVersion instead of falling back
    to a default.
    """
    if isinstance(value, semantic_version.Version):
        return value
    if not isinstance(value, str) or not value.strip():
        raise MalformedVersion(str(value), "empty version")
    try:
        return semantic_version.Version(value.strip())
    except ValueError as e:
        raise MalformedVersion(value, str(e)) from e


def compare(a: VersionLike, b: VersionLike) -> Ordering:
    left = parse_version(a)
    right = parse_version(b)
    if left < right:
        return Ordering.LESS
    if left > right:
        return Ordering.GREATER
    return Ordering.EQUAL


def is_newer(a: VersionLike, b: VersionLike) -> bool:
    """True when ``a`` takes precedence over ``b``."""
    return compare(a, b) is Ordering.GREATER


def release_key(value: VersionLike) -> str:
    """
    Key under which two versions count as the same release (build metadata dropped).
    """
    return str(parse_version(value).truncate("prerelease"))


def _natural_prereleases(clause):
    """
    Rebuild an npm clause so pre-releases are matched by plain precedence
    instead of only against bounds on the same patch.
    """
    if isinstance(clause, Range) and clause.prerelease_policy == Range.PRERELEASE_SAMEPATCH:
        return Range(
            clause.operator,
            clause.target,
            prerelease_policy=Range.PRERELEASE_NATURAL,
            build_policy=clause.build_policy,
        )
    if isinstance(clause, AllOf):
        return AllOf(*(_natural_prereleases(c) for c in clause.clauses))
    if isinstance(clause, AnyOf):
        return AnyOf(*(_natural_prereleases(c) for c in clause.clauses))
    return clause


def parse_constraint(expression: str):
    """
    Parse a version range such as ``^7.0.0``, ``>=7.2.0 <8.0.0`` or
    ``7.x || 8.x`` (npm range syntax).

    ``7.10.0-SNAPSHOT`` satisfies ``^7.0.0`` while ``7.0.0-SNAPSHOT`` and
    ``8.0.0-SNAPSHOT`` do not.
    """
    if not isinstance(expression, str) or not expression.strip():
        raise MalformedConstraint(str(expression), "empty constraint")
    try:
        spec = semantic_version.NpmSpec(expression.strip())
    except ValueError as e:
        raise MalformedConstraint(expression, str(e)) from e
    return _natural_prereleases(spec.clause)


def satisfies(constraint, version: VersionLike) -> bool:
    matcher = parse_constraint(constraint) if isinstance(constraint, str) else constraint
    return matcher.match(parse_version(version))
