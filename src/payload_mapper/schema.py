"""Configuration models for payload-mapper."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

DataType = Literal["string", "number", "integer", "boolean", "datetime", "phone", "zip_postal"]
MappingType = Literal["hardcoded", "mapped", "ai", "function", "order_entry"]
EntryFieldType = Literal["hardcoded", "extracted", "mapped"]
Operator = Literal[
    "equals",
    "not_equals",
    "in",
    "not_in",
    "greater_than",
    "less_than",
    "contains",
    "starts_with",
    "ends_with",
    "is_empty",
    "is_not_empty",
]
LookupType = Literal["postal_code", "city", "province", "country", "full_address"]
SplitStrategy = Literal["one_per_entry", "divide_evenly"]


class _Record(BaseModel):
    """Accepts camelCase keys as stored by the configuration UI."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Predicate(_Record):
    """A single named comparison against a value read at a dotted path."""

    field: str
    operator: Operator
    value: Any = None


class ArrayEntryConditionRule(Predicate):
    """Predicate gating inclusion of a static array entry."""


class ConditionRule(_Record):
    """One ``if -> then`` branch of a conditional function."""

    if_: Predicate = Field(validation_alias=AliasChoices("if", "if_"), serialization_alias="if")
    additional_conditions: list[Predicate] = Field(default_factory=list)
    then: Any = None


class DateLogic(_Record):
    """Date offset from today or from another field's date."""

    type: Literal["date"]
    source: Literal["current_date", "field"] = "current_date"
    field_name: str | None = None
    operation: Literal["add", "subtract"] = "add"
    days: int = 0
    output_format: str | None = None


class ConditionalLogic(_Record):
    """Ordered first-match rules with a fallback value."""

    type: Literal["conditional"] = "conditional"
    conditions: list[ConditionRule] = Field(default_factory=list)
    default: Any = None


class AddressLookupLogic(_Record):
    """Delegates to an external address lookup service."""

    type: Literal["address_lookup"]
    input_fields: list[str] = Field(default_factory=list)
    lookup_type: LookupType = "full_address"
    country_context: str | None = None


FunctionLogic = Annotated[
    Union[DateLogic, ConditionalLogic, AddressLookupLogic],
    Field(discriminator="type"),
]


class MappingFunction(_Record):
    """Named reusable logic referenced by ``FieldMapping.function_id``."""

    id: str
    name: str | None = None
    logic: FunctionLogic = Field(
        validation_alias=AliasChoices("logic", "functionLogic", "function_logic")
    )

    @model_validator(mode="before")
    @classmethod
    def _default_conditional_tag(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        for key in ("logic", "functionLogic", "function_logic"):
            logic = data.get(key)
            if isinstance(logic, dict) and "type" not in logic and "conditions" in logic:
                data = {**data, key: {**logic, "type": "conditional"}}
        return data


class FieldMapping(_Record):
    """Rule that places a typed value at a dotted path of every order."""

    field_name: str
    type: MappingType = "ai"
    value: Any = None
    data_type: DataType = "string"
    max_length: int | None = None
    date_only: bool = False
    remove_if_null: bool = False
    is_workflow_only: bool = False
    function_id: str | None = None

    @field_validator("data_type", mode="before")
    @classmethod
    def _default_data_type(cls, value: Any) -> Any:
        return value or "string"


class ArraySplitConfig(_Record):
    """How a scalar count decides the cardinality of an output array."""

    target_array_field: str
    split_based_on_field: str
    split_strategy: SplitStrategy = "one_per_entry"
    default_to_one_if_missing: bool = False


class ArrayEntryField(_Record):
    field_name: str
    field_type: EntryFieldType = "extracted"
    hardcoded_value: Any = None
    extraction_instruction: str | None = None
    data_type: DataType | None = None
    max_length: int | None = None
    remove_if_null: bool = False


class ArrayEntryConditions(_Record):
    enabled: bool = True
    logic: Literal["AND", "OR"] = "AND"
    rules: list[ArrayEntryConditionRule] = Field(default_factory=list)

    @field_validator("logic", mode="before")
    @classmethod
    def _upper_logic(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class ArrayEntryConfig(_Record):
    """One static or repeating contribution to an output array."""

    target_array_field: str
    entry_order: int = 0
    is_enabled: bool = True
    fields: list[ArrayEntryField] = Field(default_factory=list)
    conditions: ArrayEntryConditions | None = None
    is_repeating: bool = False
    repeat_instruction: str | None = None
    ai_condition_instruction: str | None = None


class MappingRules(_Record):
    """Complete mapping configuration for one extraction type."""

    field_mappings: list[FieldMapping] = Field(default_factory=list)
    functions: list[MappingFunction] = Field(default_factory=list)
    array_split_configs: list[ArraySplitConfig] = Field(default_factory=list)
    array_entry_configs: list[ArrayEntryConfig] = Field(default_factory=list)

    @property
    def regular_mappings(self) -> list[FieldMapping]:
        return [m for m in self.field_mappings if not m.is_workflow_only]

    @property
    def workflow_only_mappings(self) -> list[FieldMapping]:
        return [m for m in self.field_mappings if m.is_workflow_only]

    def function(self, function_id: str | None) -> MappingFunction | None:
        if not function_id:
            return None
        for item in self.functions:
            if item.id == function_id:
                return item
        return None
