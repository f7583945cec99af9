"""Tests for predicate evaluation and conditional resolution."""

import pytest

from payload_mapper.mapping.predicates import evaluate_conditions, evaluate_predicate, resolve_first_match
from payload_mapper.schema import ArrayEntryConditions, ConditionRule, Predicate


def _predicate(field, operator, value=None):
    return Predicate(field=field, operator=operator, value=value)


def test_equals_is_strict():
    data = {"pieces": 3, "flag": True, "code": "3"}

    assert evaluate_predicate(_predicate("pieces", "equals", 3), data)
    assert evaluate_predicate(_predicate("pieces", "equals", 3.0), data)
    assert not evaluate_predicate(_predicate("code", "equals", 3), data)
    assert not evaluate_predicate(_predicate("flag", "equals", 1), data)
    assert evaluate_predicate(_predicate("code", "not_equals", 3), data)


def test_in_requires_list():
    data = {"province": "AB"}

    assert evaluate_predicate(_predicate("province", "in", ["AB", "BC"]), data)
    assert not evaluate_predicate(_predicate("province", "in", "AB"), data)
    assert evaluate_predicate(_predicate("province", "not_in", "AB"), data)
    assert not evaluate_predicate(_predicate("province", "not_in", ["AB"]), data)


@pytest.mark.parametrize(
    ("actual", "operator", "expected", "result"),
    [
        ("10", "greater_than", 5, True),
        (10, "less_than", "5", False),
        ("abc", "greater_than", 1, False),
        ("abc", "less_than", 1, False),
        (None, "greater_than", -1, False),
        ("", "less_than", 1, False),
        (2.5, "greater_than", "2", True),
    ],
)
def test_numeric_comparisons(actual, operator, expected, result):
    assert evaluate_predicate(_predicate("weight", operator, expected), {"weight": actual}) is result


def test_string_operators_require_string_actual():
    data = {"name": "ACME FREIGHT", "count": 12}

    assert evaluate_predicate(_predicate("name", "contains", "FREIGHT"), data)
    assert evaluate_predicate(_predicate("name", "starts_with", "ACME"), data)
    assert evaluate_predicate(_predicate("name", "ends_with", "HT"), data)
    assert not evaluate_predicate(_predicate("count", "contains", "1"), data)
    assert not evaluate_predicate(_predicate("missing", "starts_with", ""), data)


def test_is_empty():
    data = {"a": None, "b": "", "c": [], "d": "x", "e": 0}

    for field in ("a", "b", "c", "missing"):
        assert evaluate_predicate(_predicate(field, "is_empty"), data)
    assert evaluate_predicate(_predicate("d", "is_not_empty"), data)
    assert evaluate_predicate(_predicate("e", "is_not_empty"), data)


def test_nested_field_paths():
    data = {"consignee": {"address": {"province": "QC"}}}

    assert evaluate_predicate(_predicate("consignee.address.province", "equals", "QC"), data)


def test_composite_and_or():
    data = {"pieces": 2, "service": "LTL"}
    rules = [
        {"field": "pieces", "operator": "greater_than", "value": 1},
        {"field": "service", "operator": "equals", "value": "FTL"},
    ]

    both = ArrayEntryConditions.model_validate({"logic": "and", "rules": rules})
    either = ArrayEntryConditions.model_validate({"logic": "OR", "rules": rules})

    assert not evaluate_conditions(both, data)
    assert evaluate_conditions(either, data)


def test_disabled_or_empty_conditions_pass():
    rules = [{"field": "x", "operator": "equals", "value": 1}]

    assert evaluate_conditions(None, {})
    assert evaluate_conditions(ArrayEntryConditions(enabled=False, rules=rules), {})
    assert evaluate_conditions(ArrayEntryConditions(rules=[]), {})


def test_first_match_wins():
    rules = [
        ConditionRule.model_validate({"if": {"field": "a", "operator": "equals", "value": True}, "then": 1}),
        ConditionRule.model_validate({"if": {"field": "b", "operator": "equals", "value": True}, "then": 2}),
    ]

    assert resolve_first_match(rules, "none", {"a": True, "b": True}) == 1
    assert resolve_first_match(rules, "none", {"a": False, "b": True}) == 2
    assert resolve_first_match(rules, "none", {}) == "none"


def test_additional_conditions_must_all_hold():
    rule = ConditionRule.model_validate(
        {
            "if": {"field": "province", "operator": "equals", "value": "AB"},
            "additionalConditions": [{"field": "pieces", "operator": "greater_than", "value": 5}],
            "then": "BULK",
        }
    )

    assert resolve_first_match([rule], None, {"province": "AB", "pieces": 10}) == "BULK"
    assert resolve_first_match([rule], None, {"province": "AB", "pieces": 2}) is None
