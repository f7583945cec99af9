"""Construction of array sections from array entry configs."""

from __future__ import annotations

import logging
from typing import Any

from payload_mapper.mapping.coercion import (
    coerce_integer,
    coerce_number,
    coerce_value,
    is_blank,
    is_null_like,
    normalize_datetime,
    truncate_json_escaped,
)
from payload_mapper.mapping.paths import delete_path, set_path
from payload_mapper.mapping.predicates import evaluate_conditions
from payload_mapper.schema import ArrayEntryConfig, ArrayEntryField, DataType

logger = logging.getLogger(__name__)

ENTRY_KEY_PREFIX = "__ARRAY_ENTRY_"
REPEATING_KEY_PREFIX = "__REPEATING_ARRAY_"


def entry_value_key(target: str, entry_order: int, field_name: str) -> str:
    return f"{ENTRY_KEY_PREFIX}{target}_{entry_order}_{field_name}__"


def entry_condition_key(target: str, entry_order: int) -> str:
    return f"{ENTRY_KEY_PREFIX}CONDITION_{target}_{entry_order}__"


def repeating_array_key(target: str) -> str:
    return f"{REPEATING_KEY_PREFIX}{target}__"


def is_internal_key(key: str) -> bool:
    return key.startswith((ENTRY_KEY_PREFIX, REPEATING_KEY_PREFIX))


def coerce_entry_value(value: Any, data_type: DataType | None, max_length: int | None = None) -> Any:
    """Coerce one array-entry field; unlike top-level mappings, blanks stay blank."""
    if data_type == "number":
        return coerce_number(value)
    if data_type == "integer":
        return coerce_integer(value)
    if data_type == "datetime":
        return "" if is_blank(value) else normalize_datetime(value)
    if data_type in ("phone", "boolean", "zip_postal"):
        return "" if is_blank(value) else coerce_value(value, data_type)
    if data_type == "string" and not is_blank(value):
        value = str(value).upper()
    if max_length and isinstance(value, str):
        value = truncate_json_escaped(value, max_length)
    return value


class ArrayEntryAssembler:
    """Builds array sections of an order from static and repeating entries.

    Repeating entries take their rows from the side channel under
    ``__REPEATING_ARRAY_<target>__``. Static entries contribute one row each,
    ordered by ``entry_order``, and are skipped for any target a repeating
    entry already populated.
    """

    def __init__(self, entries: list[ArrayEntryConfig]):
        enabled = [entry for entry in entries if entry.is_enabled]
        self.repeating = [entry for entry in enabled if entry.is_repeating]
        self.static_by_target: dict[str, list[ArrayEntryConfig]] = {}
        for entry in enabled:
            if not entry.is_repeating:
                self.static_by_target.setdefault(entry.target_array_field, []).append(entry)

    def assemble(self, order: dict, workflow_data: dict[str, Any]) -> None:
        populated = self._apply_repeating(order, workflow_data)

        for target, entries in self.static_by_target.items():
            if target in populated:
                logger.debug("Skipping static entries for %s; populated by a repeating entry", target)
                continue
            self._apply_static(order, target, entries, workflow_data)

    def _apply_repeating(self, order: dict, workflow_data: dict[str, Any]) -> set[str]:
        populated: set[str] = set()
        for entry in self.repeating:
            target = entry.target_array_field
            extracted = workflow_data.get(repeating_array_key(target))
            if not isinstance(extracted, list) or not extracted:
                logger.debug("No repeating data found for %s", target)
                continue

            rows = []
            for source in extracted:
                if not isinstance(source, dict):
                    continue
                row = self._build_row(entry.fields, lambda field: source.get(field.field_name))
                if any(_has_content(value) and value != 0 for value in row.values()):
                    rows.append(row)

            if rows:
                set_path(order, target, rows)
                populated.add(target)
                logger.debug("Constructed repeating %s array with %d entries", target, len(rows))
            else:
                delete_path(order, target)
                logger.debug("Removed empty repeating array %s", target)
        return populated

    def _apply_static(
        self,
        order: dict,
        target: str,
        entries: list[ArrayEntryConfig],
        workflow_data: dict[str, Any],
    ) -> None:
        context = {**workflow_data, **order}
        constructed = []
        for entry in sorted(entries, key=lambda item: item.entry_order):
            if entry.ai_condition_instruction:
                verdict = str(workflow_data.get(entry_condition_key(target, entry.entry_order)) or "")
                if verdict.strip().lower() != "true":
                    logger.debug("Skipping %s[%s]; extraction condition not met", target, entry.entry_order)
                    continue
            if not evaluate_conditions(entry.conditions, context):
                logger.debug("Skipping %s[%s]; conditions not met", target, entry.entry_order)
                continue

            row = self._build_row(
                entry.fields,
                lambda field, entry=entry: workflow_data.get(
                    entry_value_key(target, entry.entry_order, field.field_name)
                ),
            )
            if any(_has_content(value) for value in row.values()):
                constructed.append(row)

        if constructed:
            set_path(order, target, constructed)
            logger.debug("Constructed %s array with %d entries", target, len(constructed))
        else:
            delete_path(order, target)
            logger.debug("Removed empty array %s; no entries constructed", target)

    @staticmethod
    def _build_row(fields: list[ArrayEntryField], extracted_value) -> dict[str, Any]:
        row: dict[str, Any] = {}
        for field in fields:
            if field.field_type == "hardcoded":
                value = field.hardcoded_value
            else:
                value = extracted_value(field)
            if value is None:
                value = ""
            value = coerce_entry_value(value, field.data_type, field.max_length)
            if field.remove_if_null and is_null_like(value):
                continue
            row[field.field_name] = value
        return row


def _has_content(value: Any) -> bool:
    return value is not None and value != ""
