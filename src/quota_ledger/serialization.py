"""
Deterministic JSON serialization helpers backed by orjson.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import orjson


def canonicalize(obj: Any) -> Any:
    """
    Convert ledger objects into JSON-friendly, deterministic structures.
    """
    if isinstance(obj, dict):
        return {str(k): canonicalize(obj[k]) for k in sorted(obj, key=str)}
    if isinstance(obj, (list, tuple)):
        return [canonicalize(v) for v in obj]
    if isinstance(obj, (set, frozenset)):
        return sorted(canonicalize(v) for v in obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, bytes):
        return obj.hex()
    if hasattr(obj, "to_dict") and callable(obj.to_dict):
        return canonicalize(obj.to_dict())
    return obj


def stable_json_dumps(obj: Any) -> bytes:
    """
    Dump an object to JSON bytes with stable key ordering.
    """
    return orjson.dumps(canonicalize(obj), option=orjson.OPT_SORT_KEYS)


def fast_json_loads(data: bytes | str) -> Any:
    return orjson.loads(data)


__all__ = [
    "canonicalize",
    "stable_json_dumps",
    "fast_json_loads",
]
