"""Loading of mapping rule bundles."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from payload_mapper.exceptions import ConfigurationError
from payload_mapper.schema import MappingRules

logger = logging.getLogger(__name__)

RulesSource = MappingRules | dict | str | Path


def load_rules(source: RulesSource, *, strict: bool = False) -> MappingRules:
    """Build MappingRules from a dict, a JSON string or a JSON file path.

    Args:
        source: Rule bundle as a parsed dict, JSON text, or path to a JSON file.
        strict: Also reject function mappings whose ``functionId`` does not
            resolve to a declared function.

    Raises:
        ConfigurationError: If the bundle cannot be read or fails validation.
    """
    if isinstance(source, MappingRules):
        if not strict:
            return source
        rules = source
    else:
        payload = _read_payload(source)
        try:
            rules = MappingRules.model_validate(payload)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid mapping rules: {e}") from e

    dangling = unresolved_function_ids(rules)
    if dangling:
        if strict:
            raise ConfigurationError(f"Unknown function ids: {', '.join(dangling)}")
        logger.warning("Mapping rules reference unknown functions: %s", ", ".join(dangling))
    return rules


def unresolved_function_ids(rules: MappingRules) -> list[str]:
    missing: list[str] = []
    for mapping in rules.field_mappings:
        if mapping.type != "function":
            continue
        function_id = mapping.function_id or ""
        if rules.function(function_id) is None and function_id not in missing:
            missing.append(function_id)
    return missing


def _read_payload(source: dict | str | Path) -> Any:
    if isinstance(source, dict):
        return source
    if isinstance(source, Path) or not source.lstrip().startswith(("{", "[")):
        path = Path(source)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Cannot read mapping rules from {path}: {e}") from e
    else:
        text = source
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Mapping rules are not valid JSON: {e}") from e
