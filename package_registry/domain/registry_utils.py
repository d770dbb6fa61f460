import json
from typing import Any


def strip_nulls(value: Any) -> Any:
    """
    Recursively remove keys with value None from dictionaries.

    Lists are preserved, but their elements are also cleaned.
    """
    if isinstance(value, dict):
        return {k: strip_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [strip_nulls(v) for v in value]
    return value


def to_json(value: Any) -> str:
    """
    Serialize with two-space indentation so identical data yields identical bytes.
    An empty result is always rendered as ``[]``, never ``null``.
    """
    if value is None:
        value = []
    return json.dumps(value, indent=2, ensure_ascii=False)
