"""Normalization engine for extracted documents."""

from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from payload_mapper.mapping.assembler import ArrayEntryAssembler, is_internal_key
from payload_mapper.mapping.cleanup import blank_null_strings, prune_empty_containers, remove_null_fields
from payload_mapper.mapping.coercion import coerce_value, format_postal_codes
from payload_mapper.mapping.functions import FunctionEvaluator
from payload_mapper.mapping.paths import (
    MISSING,
    copy_path,
    delete_path,
    get_path,
    has_path,
    is_field_reference,
    set_path,
    update_path,
)
from payload_mapper.mapping.splitter import apply_split, validate_split
from payload_mapper.mapping.types import NormalizationResult
from payload_mapper.providers.base import BaseLookupProvider
from payload_mapper.schema import FieldMapping, MappingRules

logger = logging.getLogger(__name__)


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclass(frozen=True)
class NormalizationConfig:
    root_key: str = "orders"
    enforce_array_splits: bool = False
    format_postal_codes: bool = True
    blank_null_strings: bool = False

    @classmethod
    def from_env(cls) -> "NormalizationConfig":
        return cls(
            root_key=(os.getenv("PAYLOAD_MAPPER_ROOT_KEY", "orders").strip() or "orders"),
            enforce_array_splits=_parse_bool(os.getenv("PAYLOAD_MAPPER_ENFORCE_SPLITS"), False),
            format_postal_codes=_parse_bool(os.getenv("PAYLOAD_MAPPER_FORMAT_POSTAL_CODES"), True),
            blank_null_strings=_parse_bool(os.getenv("PAYLOAD_MAPPER_BLANK_NULL_STRINGS"), False),
        )


class MappingEngine:
    """Applies a rule bundle to extracted documents.

    The engine holds no per-document state; one instance can normalize any
    number of documents against the same rules.
    """

    def __init__(
        self,
        rules: MappingRules,
        config: NormalizationConfig | None = None,
        lookup_provider: BaseLookupProvider | None = None,
        *,
        now: datetime | None = None,
    ):
        self.rules = rules
        self.config = config or NormalizationConfig()
        self.now = now
        self.functions = FunctionEvaluator(lookup_provider, now=now)
        self.assembler = ArrayEntryAssembler(rules.array_entry_configs)

    def normalize(
        self,
        document: Any,
        workflow_only_data: dict[str, Any] | None = None,
        *,
        source_data: dict[str, Any] | None = None,
    ) -> NormalizationResult:
        """Normalize a copy of ``document``; the inputs are never mutated."""
        warnings: list[str] = []
        root = self.config.root_key

        if isinstance(document, dict):
            data = copy.deepcopy(document)
        else:
            logger.warning("Extracted document is not an object; starting from an empty document")
            warnings.append("document_not_object")
            data = {}

        workflow = copy.deepcopy(workflow_only_data) if isinstance(workflow_only_data, dict) else {}
        side_channel = {key: value for key, value in workflow.items() if not is_internal_key(key)}

        for key in [key for key in data if key != root]:
            logger.debug("Removing unexpected root key %s", key)
            del data[key]
            warnings.append(f"root_key_removed:{key}")

        orders = data.get(root)
        if not isinstance(orders, list):
            if orders is not None:
                warnings.append(f"root_not_array:{root}")
            orders = data[root] = []

        collected: set[str] = set()
        for order in orders:
            if not isinstance(order, dict):
                _warn(warnings, "order_not_object")
                continue
            self.normalize_order(
                order,
                workflow,
                side_channel,
                warnings,
                source_data=source_data,
                collected=collected,
            )

        return NormalizationResult(document=data, workflow_only=side_channel, warnings=warnings)

    def normalize_order(
        self,
        order: dict,
        workflow: dict[str, Any],
        side_channel: dict[str, Any],
        warnings: list[str],
        *,
        source_data: dict[str, Any] | None = None,
        collected: set[str] | None = None,
    ) -> None:
        """Normalize one order in place.

        ``collected`` names the workflow-only fields already taken from earlier
        orders of the same document; pass the same set for every order.
        """
        regular = self.rules.regular_mappings

        self._collect_workflow_only(
            order,
            workflow,
            side_channel,
            set() if collected is None else collected,
            warnings,
        )

        if self.config.blank_null_strings:
            blank_null_strings(order, regular)

        for mapping in regular:
            if mapping.type != "function":
                self._apply_mapping(order, mapping, source_data, warnings)

        if self.config.format_postal_codes:
            format_postal_codes(order)

        for mapping in regular:
            if mapping.type == "function":
                self._apply_function(order, mapping, warnings)

        for split in self.rules.array_split_configs:
            if self.config.enforce_array_splits:
                apply_split(order, split)
            code = validate_split(order, split)
            if code:
                logger.info("Array split contract not met for %s", split.target_array_field)
                _warn(warnings, code)

        self.assembler.assemble(order, workflow)
        remove_null_fields(order, regular)
        prune_empty_containers(order)

    def _collect_workflow_only(
        self,
        order: dict,
        workflow: dict[str, Any],
        side_channel: dict[str, Any],
        collected: set[str],
        warnings: list[str],
    ) -> None:
        for mapping in self.rules.workflow_only_mappings:
            name = mapping.field_name
            if mapping.type == "hardcoded":
                value = mapping.value
            elif mapping.type == "function":
                value = self._evaluate_function(order, mapping, warnings)
                if value in (None, ""):
                    value = MISSING
            else:
                value = workflow.get(name, MISSING)
                if value is None or value is MISSING:
                    value = get_path(order, name, MISSING)

            # Workflow-only values never stay in the main document.
            delete_path(order, name)

            if value is MISSING:
                continue
            if mapping.type != "function":
                value = self._coerce_workflow_value(value, mapping)

            if name in collected:
                # First order wins.
                if side_channel.get(name) != value:
                    logger.info("Orders disagree on workflow-only field %s; keeping the first value", name)
                    _warn(warnings, f"workflow_only_conflict:{name}")
                continue
            collected.add(name)
            side_channel[name] = value

    def _coerce_workflow_value(self, value: Any, mapping: FieldMapping) -> Any:
        def _coerce(item: Any) -> Any:
            return coerce_value(
                item,
                mapping.data_type,
                max_length=mapping.max_length,
                date_only=mapping.date_only,
                now=self.now,
            )

        if isinstance(value, list):
            return [None if item is None else _coerce(item) for item in value]
        return _coerce(value)

    def _apply_mapping(
        self,
        order: dict,
        mapping: FieldMapping,
        source_data: dict[str, Any] | None,
        warnings: list[str],
    ) -> None:
        if self._is_order_reference(mapping, source_data):
            self._copy_reference(order, mapping, warnings)
        else:
            source = self._source_value(mapping, source_data)
            if source is not MISSING:
                set_path(order, mapping.field_name, source)

        fallback = mapping.value if mapping.type == "hardcoded" else None

        def _coerce(current: Any) -> Any:
            if isinstance(current, (dict, list)):
                return MISSING
            if current is MISSING:
                if mapping.data_type != "datetime":
                    return MISSING
                current = None
            return coerce_value(
                current,
                mapping.data_type,
                max_length=mapping.max_length,
                date_only=mapping.date_only,
                fallback=fallback,
                now=self.now,
            )

        update_path(order, mapping.field_name, _coerce, create=mapping.data_type == "datetime")

    @staticmethod
    def _is_order_reference(mapping: FieldMapping, source_data: dict[str, Any] | None) -> bool:
        if mapping.type == "order_entry" and isinstance(source_data, dict):
            return False
        return mapping.type in ("mapped", "ai", "order_entry") and is_field_reference(mapping.value)

    def _copy_reference(self, order: dict, mapping: FieldMapping, warnings: list[str]) -> None:
        if copy_path(order, mapping.value, mapping.field_name):
            return
        if has_path(order, mapping.value):
            logger.warning(
                "Reference %s spans an array that %s is not inside; skipping",
                mapping.value,
                mapping.field_name,
            )
            _warn(warnings, f"reference_unpaired:{mapping.field_name}")
        else:
            logger.debug("Reference %s for %s not found", mapping.value, mapping.field_name)

    def _source_value(self, mapping: FieldMapping, source_data: dict[str, Any] | None) -> Any:
        if mapping.type == "hardcoded":
            return MISSING if mapping.value is None else mapping.value
        if mapping.type == "order_entry" and isinstance(source_data, dict):
            key = mapping.value if isinstance(mapping.value, str) and mapping.value else mapping.field_name
            return get_path(source_data, key, MISSING)
        return MISSING

    def _apply_function(self, order: dict, mapping: FieldMapping, warnings: list[str]) -> None:
        result = self._evaluate_function(order, mapping, warnings)
        if result is None or result == "":
            logger.debug("Function %s produced no value for %s", mapping.function_id, mapping.field_name)
            return
        set_path(order, mapping.field_name, result)

    def _evaluate_function(self, order: dict, mapping: FieldMapping, warnings: list[str]) -> Any:
        function = self.rules.function(mapping.function_id) if mapping.function_id else None
        if function is None:
            logger.warning("Function %s not found for %s", mapping.function_id, mapping.field_name)
            _warn(warnings, f"function_not_found:{mapping.function_id}")
            return None
        return self.functions.evaluate(function, order, warnings)


def _warn(warnings: list[str], code: str) -> None:
    if code not in warnings:
        warnings.append(code)


def normalize_document(
    document: Any,
    rules: MappingRules,
    *,
    workflow_only_data: dict[str, Any] | None = None,
    config: NormalizationConfig | None = None,
    lookup_provider: BaseLookupProvider | None = None,
    source_data: dict[str, Any] | None = None,
) -> NormalizationResult:
    engine = MappingEngine(rules, config=config, lookup_provider=lookup_provider)
    return engine.normalize(document, workflow_only_data, source_data=source_data)
