"""Predicate evaluation and first-match conditional resolution."""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable

from payload_mapper.mapping.paths import get_path
from payload_mapper.schema import ArrayEntryConditions, ConditionRule, Predicate

logger = logging.getLogger(__name__)


def evaluate_predicate(predicate: Predicate, data: Any) -> bool:
    """Evaluate one comparison against the value at ``predicate.field``.

    Every operator is total: operands of the wrong shape make the comparison
    fail instead of raising.
    """
    actual = get_path(data, predicate.field)
    expected = predicate.value
    operator = predicate.operator

    if operator == "equals":
        return _strict_equals(actual, expected)
    if operator == "not_equals":
        return not _strict_equals(actual, expected)
    if operator == "in":
        if not isinstance(expected, list):
            return False
        return any(_strict_equals(actual, item) for item in expected)
    if operator == "not_in":
        if not isinstance(expected, list):
            return True
        return not any(_strict_equals(actual, item) for item in expected)
    if operator in ("greater_than", "less_than"):
        left, right = _to_number(actual), _to_number(expected)
        if math.isnan(left) or math.isnan(right):
            return False
        return left > right if operator == "greater_than" else left < right
    if operator in ("contains", "starts_with", "ends_with"):
        if not isinstance(actual, str):
            return False
        needle = _to_text(expected)
        if operator == "contains":
            return needle in actual
        if operator == "starts_with":
            return actual.startswith(needle)
        return actual.endswith(needle)
    if operator == "is_empty":
        return _is_empty(actual)
    if operator == "is_not_empty":
        return not _is_empty(actual)

    logger.warning("Unsupported predicate operator %r on field %s", operator, predicate.field)
    return False


def evaluate_all(predicates: Iterable[Predicate], data: Any) -> bool:
    return all(evaluate_predicate(predicate, data) for predicate in predicates)


def evaluate_conditions(conditions: ArrayEntryConditions | None, data: Any) -> bool:
    """Gate for an array entry; disabled or rule-less blocks always pass."""
    if conditions is None or not conditions.enabled or not conditions.rules:
        return True
    results = (evaluate_predicate(rule, data) for rule in conditions.rules)
    if conditions.logic == "OR":
        return any(results)
    return all(results)


def resolve_first_match(rules: Iterable[ConditionRule], default: Any, data: Any) -> Any:
    """Return the ``then`` of the first rule whose conditions all hold, else ``default``."""
    for rule in rules:
        if not evaluate_predicate(rule.if_, data):
            continue
        if rule.additional_conditions and not evaluate_all(rule.additional_conditions, data):
            continue
        return rule.then
    return default


def _strict_equals(actual: Any, expected: Any) -> bool:
    if isinstance(actual, bool) or isinstance(expected, bool):
        return type(actual) is type(expected) and actual == expected
    if _is_number(actual) and _is_number(expected):
        return actual == expected
    if type(actual) is not type(expected):
        return False
    return actual == expected


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    if _is_number(value):
        return float(value)
    if isinstance(value, str) and value.strip():
        try:
            return float(value.strip())
        except ValueError:
            return math.nan
    return math.nan


def _to_text(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, list) and not value)
