"""Tests for schema models."""

import pytest
from pydantic import ValidationError

from payload_mapper import FieldMapping, MappingFunction, MappingRules
from payload_mapper.schema import AddressLookupLogic, ConditionalLogic, DateLogic


def test_field_mapping_defaults():
    mapping = FieldMapping(field_name="poNumber")

    assert mapping.type == "ai"
    assert mapping.data_type == "string"
    assert mapping.remove_if_null is False
    assert mapping.is_workflow_only is False


def test_field_mapping_accepts_camel_case_and_null_data_type():
    mapping = FieldMapping.model_validate(
        {"fieldName": "shipper.name", "type": "hardcoded", "value": "X", "dataType": None, "maxLength": 30}
    )

    assert mapping.field_name == "shipper.name"
    assert mapping.data_type == "string"
    assert mapping.max_length == 30


def test_unknown_data_type_rejected():
    with pytest.raises(ValidationError):
        FieldMapping.model_validate({"fieldName": "x", "dataType": "currency"})


def test_function_logic_is_tagged_union():
    date = MappingFunction.model_validate({"id": "a", "logic": {"type": "date", "days": 3}})
    lookup = MappingFunction.model_validate(
        {"id": "b", "functionLogic": {"type": "address_lookup", "inputFields": ["city"], "lookupType": "province"}}
    )
    conditional = MappingFunction.model_validate({"id": "c", "logic": {"conditions": [], "default": "X"}})

    assert isinstance(date.logic, DateLogic)
    assert isinstance(lookup.logic, AddressLookupLogic)
    assert isinstance(conditional.logic, ConditionalLogic)
    assert conditional.logic.default == "X"


def test_unknown_logic_type_rejected():
    with pytest.raises(ValidationError):
        MappingFunction.model_validate({"id": "a", "logic": {"type": "script", "body": "1+1"}})


def test_mapping_rules_partitions_workflow_only():
    rules = MappingRules.model_validate(
        {
            "fieldMappings": [
                {"fieldName": "a"},
                {"fieldName": "b", "isWorkflowOnly": True},
            ],
            "functions": [{"id": "f1", "logic": {"type": "date"}}],
        }
    )

    assert [m.field_name for m in rules.regular_mappings] == ["a"]
    assert [m.field_name for m in rules.workflow_only_mappings] == ["b"]
    assert rules.function("f1").id == "f1"
    assert rules.function("nope") is None
    assert rules.function(None) is None
