"""Tests for array entry assembly."""

from payload_mapper.mapping.assembler import (
    ArrayEntryAssembler,
    coerce_entry_value,
    entry_condition_key,
    entry_value_key,
    is_internal_key,
    repeating_array_key,
)
from payload_mapper.schema import ArrayEntryConfig


def _entry(**kwargs):
    return ArrayEntryConfig.model_validate(kwargs)


def test_side_channel_keys():
    assert entry_value_key("traceNumbers", 1, "traceNumber") == "__ARRAY_ENTRY_traceNumbers_1_traceNumber__"
    assert entry_condition_key("traceNumbers", 2) == "__ARRAY_ENTRY_CONDITION_traceNumbers_2__"
    assert repeating_array_key("items") == "__REPEATING_ARRAY_items__"
    assert is_internal_key("__REPEATING_ARRAY_items__")
    assert not is_internal_key("poNumber")


def test_static_entries_sorted_by_entry_order():
    entries = [
        _entry(
            targetArrayField="traceNumbers",
            entryOrder=2,
            fields=[
                {"fieldName": "traceType", "fieldType": "hardcoded", "hardcodedValue": "PO"},
                {"fieldName": "traceNumber", "fieldType": "extracted", "dataType": "string"},
            ],
        ),
        _entry(
            targetArrayField="traceNumbers",
            entryOrder=1,
            fields=[
                {"fieldName": "traceType", "fieldType": "hardcoded", "hardcodedValue": "BOL"},
                {"fieldName": "traceNumber", "fieldType": "extracted", "dataType": "string"},
            ],
        ),
    ]
    workflow = {
        entry_value_key("traceNumbers", 1, "traceNumber"): "bol-1",
        entry_value_key("traceNumbers", 2, "traceNumber"): "po-9",
    }
    order = {}

    ArrayEntryAssembler(entries).assemble(order, workflow)

    assert order["traceNumbers"] == [
        {"traceType": "BOL", "traceNumber": "BOL-1"},
        {"traceType": "PO", "traceNumber": "PO-9"},
    ]


def test_static_entry_conditions_gate_rows():
    entries = [
        _entry(
            targetArrayField="services",
            entryOrder=1,
            fields=[{"fieldName": "code", "fieldType": "hardcoded", "hardcodedValue": "TAILGATE"}],
            conditions={
                "enabled": True,
                "logic": "AND",
                "rules": [{"field": "liftgate", "operator": "equals", "value": "True"}],
            },
        ),
        _entry(
            targetArrayField="services",
            entryOrder=2,
            fields=[{"fieldName": "code", "fieldType": "hardcoded", "hardcodedValue": "APPT"}],
        ),
    ]
    order = {"liftgate": "False"}

    ArrayEntryAssembler(entries).assemble(order, {})

    assert order["services"] == [{"code": "APPT"}]


def test_ai_condition_gate():
    entry = _entry(
        targetArrayField="traceNumbers",
        entryOrder=3,
        aiConditionInstruction="Only if a PRO number is printed",
        fields=[{"fieldName": "traceNumber", "fieldType": "extracted"}],
    )
    key = entry_value_key("traceNumbers", 3, "traceNumber")

    skipped = {}
    ArrayEntryAssembler([entry]).assemble(skipped, {entry_condition_key("traceNumbers", 3): "false", key: "X1"})
    kept = {}
    ArrayEntryAssembler([entry]).assemble(kept, {entry_condition_key("traceNumbers", 3): "TRUE", key: "x1"})

    assert "traceNumbers" not in skipped
    assert kept["traceNumbers"] == [{"traceNumber": "x1"}]


def test_rows_with_only_empty_values_are_dropped():
    entry = _entry(
        targetArrayField="references",
        fields=[{"fieldName": "value", "fieldType": "extracted", "dataType": "string"}],
    )
    order = {"references": [{"value": "stale"}]}

    ArrayEntryAssembler([entry]).assemble(order, {})

    assert "references" not in order


def test_repeating_entry_builds_rows_and_wins_over_static():
    repeating = _entry(
        targetArrayField="items",
        isRepeating=True,
        fields=[
            {"fieldName": "description", "fieldType": "extracted", "dataType": "string"},
            {"fieldName": "weight", "fieldType": "extracted", "dataType": "number"},
            {"fieldName": "unit", "fieldType": "hardcoded", "hardcodedValue": "LB"},
        ],
    )
    static = _entry(
        targetArrayField="items",
        fields=[{"fieldName": "description", "fieldType": "hardcoded", "hardcodedValue": "STATIC"}],
    )
    workflow = {
        repeating_array_key("items"): [
            {"description": "pallet", "weight": "120.5"},
            {"description": "", "weight": ""},
            "not a row",
        ]
    }
    order = {}

    ArrayEntryAssembler([static, repeating]).assemble(order, workflow)

    assert order["items"] == [
        {"description": "PALLET", "weight": 120.5, "unit": "LB"},
        {"description": "", "weight": 0, "unit": "LB"},
    ]


def test_repeating_entry_without_content_removes_target():
    repeating = _entry(
        targetArrayField="items",
        isRepeating=True,
        fields=[{"fieldName": "weight", "fieldType": "extracted", "dataType": "number"}],
    )
    order = {"items": [{"weight": 3}]}

    ArrayEntryAssembler([repeating]).assemble(order, {repeating_array_key("items"): [{"weight": ""}]})

    assert "items" not in order


def test_disabled_entries_are_ignored():
    entry = _entry(
        targetArrayField="services",
        isEnabled=False,
        fields=[{"fieldName": "code", "fieldType": "hardcoded", "hardcodedValue": "X"}],
    )
    order = {"services": [{"code": "KEEP"}]}

    ArrayEntryAssembler([entry]).assemble(order, {})

    assert order == {"services": [{"code": "KEEP"}]}


def test_field_remove_if_null_drops_key():
    entry = _entry(
        targetArrayField="refs",
        fields=[
            {"fieldName": "type", "fieldType": "hardcoded", "hardcodedValue": "PO"},
            {"fieldName": "number", "fieldType": "extracted", "removeIfNull": True},
        ],
    )
    order = {}

    ArrayEntryAssembler([entry]).assemble(order, {})

    assert order["refs"] == [{"type": "PO"}]


def test_coerce_entry_value():
    assert coerce_entry_value("", "datetime") == ""
    assert coerce_entry_value("2024-01-02T03:04", "datetime") == "2024-01-02T03:04:00"
    assert coerce_entry_value("7 pcs", "integer") == 7
    assert coerce_entry_value("abc", None) == "abc"
    assert coerce_entry_value("abcdef", "string", 3) == "ABC"
    assert coerce_entry_value("", "boolean") == ""
    assert coerce_entry_value(None, "phone") == ""
    assert coerce_entry_value("yes", "boolean") == "True"


def test_repeating_row_with_only_blank_boolean_removes_target():
    repeating = _entry(
        targetArrayField="accessorials",
        isRepeating=True,
        fields=[{"fieldName": "liftgate", "fieldType": "extracted", "dataType": "boolean"}],
    )
    order = {"accessorials": [{"liftgate": "True"}]}

    ArrayEntryAssembler([repeating]).assemble(order, {repeating_array_key("accessorials"): [{"liftgate": ""}]})

    assert "accessorials" not in order
