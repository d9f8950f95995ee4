# tpos_sync/sync/components/metadata.py
from __future__ import annotations

from typing import Any

ODATA_PREFIX = "@odata."


def strip_metadata(value: Any, prefix: str = ODATA_PREFIX) -> Any:
    """
    Copy of a JSON-like value with every object key starting with `prefix` removed,
    at any depth (objects inside lists included). Scalars are returned as-is.
    The input is not modified; applying it twice gives the same result as once.
    """
    if isinstance(value, dict):
        return {
            k: strip_metadata(v, prefix)
            for k, v in value.items()
            if not (isinstance(k, str) and k.startswith(prefix))
        }
    if isinstance(value, (list, tuple)):
        return [strip_metadata(v, prefix) for v in value]
    return value


def find_metadata_keys(value: Any, prefix: str = ODATA_PREFIX, path: str = "$") -> list[str]:
    """Paths of keys carrying `prefix` (empty after strip_metadata)."""
    found: list[str] = []
    if isinstance(value, dict):
        for k, v in value.items():
            if isinstance(k, str) and k.startswith(prefix):
                found.append(f"{path}.{k}")
            found.extend(find_metadata_keys(v, prefix, f"{path}.{k}"))
    elif isinstance(value, (list, tuple)):
        for i, v in enumerate(value):
            found.extend(find_metadata_keys(v, prefix, f"{path}[{i}]"))
    return found
