"""Evaluation of reusable mapping functions."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from payload_mapper.mapping.dates import evaluate_date_function
from payload_mapper.mapping.paths import get_path
from payload_mapper.mapping.predicates import resolve_first_match
from payload_mapper.providers.base import BaseLookupProvider
from payload_mapper.schema import AddressLookupLogic, ConditionalLogic, DateLogic, MappingFunction

logger = logging.getLogger(__name__)


class FunctionEvaluator:
    """Resolves a MappingFunction against one order."""

    def __init__(self, lookup_provider: BaseLookupProvider | None = None, *, now: datetime | None = None):
        self.lookup_provider = lookup_provider
        self.now = now

    def evaluate(
        self,
        function: MappingFunction,
        data: Any,
        warnings: list[str] | None = None,
    ) -> Any:
        logic = function.logic
        if isinstance(logic, DateLogic):
            result = evaluate_date_function(logic, data, now=self.now)
            if result == "" and logic.source == "field" and get_path(data, logic.field_name or ""):
                _warn(warnings, f"date_unparseable:{logic.field_name}")
            return result
        if isinstance(logic, AddressLookupLogic):
            return self.lookup_address(logic, data, warnings)
        if isinstance(logic, ConditionalLogic):
            return resolve_first_match(logic.conditions, logic.default, data)

        logger.warning("Function %s has unsupported logic %r", function.id, logic)
        _warn(warnings, f"function_logic_unsupported:{function.id}")
        return None

    def lookup_address(
        self,
        logic: AddressLookupLogic,
        data: Any,
        warnings: list[str] | None = None,
    ) -> str:
        parts: list[str] = []
        for field in logic.input_fields:
            value = get_path(data, field)
            if isinstance(value, str) and value.strip():
                parts.append(value.strip())
        if not parts:
            return ""
        if self.lookup_provider is None:
            logger.debug("No lookup provider configured; %s lookup skipped", logic.lookup_type)
            return ""

        address = ", ".join(parts)
        try:
            return self.lookup_provider.lookup(address, logic.lookup_type, logic.country_context)
        except Exception:
            # Lookup failures degrade to an empty value for this field only.
            logger.warning("Address lookup failed for %r", address, exc_info=True)
            _warn(warnings, f"address_lookup_failed:{logic.lookup_type}")
            return ""


def _warn(warnings: list[str] | None, code: str) -> None:
    if warnings is not None and code not in warnings:
        warnings.append(code)
