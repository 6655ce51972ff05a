"""
Object helpers shared by the mapping, merge and export code.

The translation engine builds nested documents out of dot-delimited paths
and layers partial objects on top of each other. The rules used everywhere:

- ``deep_merge`` merges mappings recursively, replaces lists wholesale and
  never lets a ``None`` value overwrite (or create) a key.
- ``set_property``/``expand_object`` are the inverse of ``get_property``.
"""

from __future__ import annotations

import copy
import json
import re
from typing import Any, Mapping

_MISSING = object()

# Opaque generated identifiers are appended after the sorted keys on export
_GENERATED_ID_RE = re.compile(r"^[a-z0-9]{20,}$")

COMPENDIUM_UUID_PREFIX = "Compendium."


def get_property(data: Any, path: str, default: Any = None) -> Any:
    """Resolve a dot-delimited path against nested mappings and lists.

    Example:
        >>> get_property({"system": {"description": {"value": "x"}}}, "system.description.value")
        'x'
    """
    if data is None or not path:
        return default
    current = data
    for part in path.split("."):
        if isinstance(current, Mapping):
            current = current.get(part, _MISSING)
        elif isinstance(current, list) and part.isdigit():
            index = int(part)
            current = current[index] if index < len(current) else _MISSING
        else:
            return default
        if current is _MISSING:
            return default
    return current


def set_property(data: dict, path: str, value: Any) -> dict:
    """Set ``value`` at a dot-delimited path, creating intermediate dicts."""
    parts = path.split(".")
    target = data
    for part in parts[:-1]:
        child = target.get(part)
        if not isinstance(child, dict):
            child = {}
            target[part] = child
        target = child
    target[parts[-1]] = value
    return data


def expand_object(flat: Mapping[str, Any]) -> dict:
    """Expand a ``{"a.b.c": value}`` mapping into nested dicts."""
    result: dict = {}
    for path, value in flat.items():
        set_property(result, path, value)
    return result


def flatten_object(data: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested dicts into a ``{"a.b.c": value}`` mapping."""
    flat: dict[str, Any] = {}
    for key, value in data.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping) and value:
            flat.update(flatten_object(value, path))
        else:
            flat[path] = value
    return flat


def deep_merge(original: dict, other: Mapping | None, inplace: bool = True) -> dict:
    """Merge ``other`` into ``original``.

    Mappings merge key by key, lists and scalars replace the existing value,
    ``None`` values are skipped. Values taken from ``other`` are copied so the
    result never aliases the merged-in object.

    Args:
        original: The base object
        other: The object layered on top
        inplace: Whether to modify ``original`` or work on a deep copy

    Returns:
        The merged object
    """
    target = original if inplace else copy.deepcopy(original)
    if not other:
        return target
    for key, value in other.items():
        if value is None:
            continue
        existing = target.get(key)
        if isinstance(value, Mapping):
            if isinstance(existing, dict):
                deep_merge(existing, value, inplace=True)
            else:
                target[key] = deep_merge({}, value)
        else:
            target[key] = copy.deepcopy(value)
    return target


# =========================================================================
# Compendium identity helpers
# =========================================================================


def is_compendium_uuid(uuid: Any) -> bool:
    return isinstance(uuid, str) and uuid.startswith(COMPENDIUM_UUID_PREFIX)


def collection_from_uuid(uuid: Any) -> str | None:
    """Get the pack collection a compendium uuid points to.

    Example:
        >>> collection_from_uuid("Compendium.dnd5e.items.Item.abc123")
        'dnd5e.items'
    """
    if not is_compendium_uuid(uuid):
        return None
    parts = uuid.split(".")
    if len(parts) < 3:
        return None
    return ".".join(parts[1:3])


def document_id_from_uuid(uuid: Any) -> str | None:
    """Get the document id a compendium uuid points to."""
    if not is_compendium_uuid(uuid):
        return None
    parts = uuid.split(".")
    if len(parts) < 4:
        return None
    return parts[-1]


def source_uuid(data: Mapping[str, Any]) -> str:
    """Return the compendium uuid a document was created from, or ``""``.

    Checks ``flags.core.sourceId`` first, then ``_stats.compendiumSource``
    and finally the document's own ``uuid``.
    """
    for path in ("flags.core.sourceId", "_stats.compendiumSource", "uuid"):
        value = get_property(data, path)
        if is_compendium_uuid(value):
            return value
    return ""


# =========================================================================
# Deterministic serialization
# =========================================================================


def _is_removal_key(key: str) -> bool:
    return key.startswith("-=") or ".-=" in key


def _collect_keys(value: Any, names: set[str], ids: dict[str, None]) -> None:
    if isinstance(value, Mapping):
        for key, child in value.items():
            key = str(key)
            if _is_removal_key(key):
                continue
            if _GENERATED_ID_RE.match(key):
                ids.setdefault(key, None)
            else:
                names.add(key)
            _collect_keys(child, names, ids)
    elif isinstance(value, list):
        for child in value:
            _collect_keys(child, names, ids)


def _reorder(value: Any, order: dict[str, int]) -> Any:
    if isinstance(value, Mapping):
        keys = [str(k) for k in value.keys() if not _is_removal_key(str(k))]
        keys.sort(key=lambda k: order[k])
        return {k: _reorder(value[k], order) for k in keys}
    if isinstance(value, list):
        return [_reorder(v, order) for v in value]
    return value


def json_stringify_order(obj: Any) -> str:
    """Serialize to JSON with a stable key order.

    Keys are sorted alphabetically at every level, except generated
    identifiers which follow in order of first appearance. Keys marking
    deletions (``-=key``) are dropped.
    """
    names: set[str] = set()
    ids: dict[str, None] = {}
    _collect_keys(obj, names, ids)
    ordered = sorted(names) + list(ids)
    order = {key: index for index, key in enumerate(ordered)}
    return json.dumps(_reorder(obj, order), indent=4, ensure_ascii=False) + "\n"


__all__ = [
    "get_property",
    "set_property",
    "expand_object",
    "flatten_object",
    "deep_merge",
    "is_compendium_uuid",
    "collection_from_uuid",
    "document_id_from_uuid",
    "source_uuid",
    "json_stringify_order",
]
