"""Remove-if-null pruning and empty container cleanup."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from payload_mapper.mapping.coercion import is_null_like
from payload_mapper.mapping.paths import DELETE, MISSING, update_path
from payload_mapper.schema import FieldMapping

logger = logging.getLogger(__name__)

NULL_PLACEHOLDERS = frozenset({"null", "N/A", "n/a"})


def remove_null_fields(order: dict, mappings: Iterable[FieldMapping]) -> None:
    """Delete every ``remove_if_null`` field whose value is null-like.

    Paths through arrays are pruned per element, never at the array itself.
    """
    for mapping in mappings:
        if not mapping.remove_if_null:
            continue

        def _prune(current: Any, path: str = mapping.field_name) -> Any:
            if current is MISSING:
                return MISSING
            if is_null_like(current):
                logger.debug("Removed %s due to removeIfNull", path)
                return DELETE
            return MISSING

        update_path(order, mapping.field_name, _prune)


def prune_empty_containers(node: Any) -> None:
    """Drop empty-object rows from arrays, then arrays left empty, recursively."""
    if isinstance(node, list):
        for item in node:
            prune_empty_containers(item)
        return
    if not isinstance(node, dict):
        return

    for key in list(node.keys()):
        value = node[key]
        if isinstance(value, dict):
            prune_empty_containers(value)
        elif isinstance(value, list):
            prune_empty_containers(value)
            kept = [item for item in value if not (isinstance(item, dict) and not item)]
            if not kept:
                del node[key]
                logger.debug("Removed empty array %s", key)
            elif len(kept) != len(value):
                node[key] = kept


def blank_null_strings(node: Any, mappings: Iterable[FieldMapping]) -> None:
    """Replace null placeholders with ``""`` except where a mapping declares a non-string type."""
    typed = {
        mapping.field_name.rsplit(".", 1)[-1]
        for mapping in mappings
        if mapping.data_type != "string"
    }
    _blank(node, typed)


def _blank(node: Any, typed_keys: set[str]) -> None:
    if isinstance(node, list):
        for item in node:
            _blank(item, typed_keys)
        return
    if not isinstance(node, dict):
        return
    for key, value in node.items():
        if value is None or (isinstance(value, str) and value in NULL_PLACEHOLDERS):
            if key not in typed_keys:
                node[key] = ""
        elif isinstance(value, (dict, list)):
            _blank(value, typed_keys)
