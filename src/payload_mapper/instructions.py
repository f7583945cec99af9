"""Extraction guidance generated from mapping rules.

The extraction step is an external model call; these builders turn a
MappingRules bundle into the text guidance that tells it how to shape the
document and which side-channel keys to fill.
"""

from __future__ import annotations

from payload_mapper.mapping.assembler import entry_condition_key, entry_value_key, repeating_array_key
from payload_mapper.mapping.coercion import CANADIAN_PROVINCES, US_STATES
from payload_mapper.mapping.splitter import build_split_instructions
from payload_mapper.schema import ArrayEntryConfig, ArrayEntryField, DataType, FieldMapping, MappingRules

FIELD_TYPE_NOTES: dict[str, str] = {
    "string": " (format as UPPER CASE string)",
    "number": " (format as number)",
    "integer": " (format as integer)",
    "datetime": " (format as datetime in yyyy-MM-ddThh:mm:ss format)",
    "phone": " (format as phone number XXX-XXX-XXXX)",
    "boolean": " (format as True or False)",
    "zip_postal": " (format as US zip code XXXXX or Canadian postal code X1X 1X1)",
}

ENTRY_TYPE_NOTES: dict[str, str] = {
    "string": " (as UPPER CASE string)",
    "number": " (format as number)",
    "integer": " (format as integer)",
    "datetime": " (as datetime string in yyyy-MM-ddThh:mm:ss format)",
}

POSTAL_CODE_RULES = f"""

POSTAL CODE FORMATTING RULES:
- Canadian Postal Codes: Always format as "A1A 1A1" (letter-number-letter, space, number-letter-number)
- US Zip Codes: Always format as "11111" (5 digits, no spaces or dashes)
- If you detect a US zip code pattern, use only the first 5 digits: "90210-1234" becomes "90210"

PROVINCE AND STATE FORMATTING RULES:
- Provinces and states are always 2-letter codes ("BC" not "British Columbia", "WA" not "Washington")
- Valid Canadian province codes: {", ".join(sorted(CANADIAN_PROVINCES))}
- Valid US state codes: {", ".join(sorted(US_STATES))}"""

EXTRACTION_PROMPT = """
You are a data extraction AI. Please analyze the provided document and extract the requested information according to the following instructions:

EXTRACTION INSTRUCTIONS:
{instructions}{guidance}

OUTPUT FORMAT:
{output_format}

IMPORTANT GUIDELINES:
1. Only extract information that is clearly visible in the document
2. Follow the EXACT structure provided in the template. Do not add extra fields at the root level or change the nesting structure
3. If a field is not found, use empty string ("") for text fields, 0 for numbers, null for fields that should be null, or [] for arrays
4. Preserve exact case for all hardcoded values
5. For datetime fields, use the format yyyy-MM-ddThh:mm:ss
6. The ONLY top-level key allowed is "{root_key}"

Please provide only the JSON output without any additional explanation or formatting.
"""

WRAPPER_FORMAT = """You need to extract TWO separate data structures from the document:

1. MAIN TEMPLATE DATA:
Please format the extracted data as JSON following this EXACT structure:
{template}

2. WORKFLOW-ONLY DATA:
Provide the workflow-only fields as a separate JSON object with the field names as keys and their extracted values.

Return BOTH structures in a wrapper object like this:
{{
  "templateData": <your extracted template data here>,
  "workflowOnlyData": {{
    <workflow field name>: <extracted value>,
    ...
  }}
}}

If there are no workflow-only fields, set workflowOnlyData to an empty object {{}}."""


def _mapping_line(mapping: FieldMapping, notes: dict[str, str]) -> str:
    note = notes.get(mapping.data_type, "")
    if mapping.type == "hardcoded":
        return f'- "{mapping.field_name}": Always use the EXACT hardcoded value "{mapping.value}"{note}\n'
    if mapping.type == "mapped":
        return f'- "{mapping.field_name}": Extract data from document coordinates {mapping.value}{note}\n'
    return f'- "{mapping.field_name}": {mapping.value or "Extract from the document"}{note}\n'


def build_field_mapping_instructions(mappings: list[FieldMapping]) -> str:
    regular = [mapping for mapping in mappings if not mapping.is_workflow_only]
    if not regular:
        return ""
    instructions = "\n\nFIELD MAPPING INSTRUCTIONS:\n"
    for mapping in regular:
        instructions += _mapping_line(mapping, FIELD_TYPE_NOTES)
    return instructions


def build_workflow_only_instructions(mappings: list[FieldMapping]) -> str:
    workflow_only = [mapping for mapping in mappings if mapping.is_workflow_only]
    if not workflow_only:
        return ""
    instructions = "\n\nWORKFLOW-ONLY FIELDS (SEPARATE EXTRACTION):\n"
    instructions += (
        "Extract these additional fields as standalone variables for workflow use "
        "(NOT part of the main template structure):\n"
    )
    for mapping in workflow_only:
        instructions += _mapping_line(mapping, FIELD_TYPE_NOTES)
    return instructions


def _extracted_fields(entry: ArrayEntryConfig) -> list[ArrayEntryField]:
    return [
        field
        for field in entry.fields
        if field.field_type in ("extracted", "mapped") and field.extraction_instruction
    ]


def _field_instruction(field: ArrayEntryField) -> str:
    if field.field_type == "mapped":
        return f"Extract the value from document coordinates: {field.extraction_instruction}"
    return field.extraction_instruction or ""


def _entry_note(data_type: DataType | None) -> str:
    return ENTRY_TYPE_NOTES.get(data_type or "string", "")


def build_array_entry_instructions(entries: list[ArrayEntryConfig]) -> str:
    """Guidance for the side-channel keys array entries read back."""
    enabled = [entry for entry in entries if entry.is_enabled]
    if not enabled:
        return ""

    static = [entry for entry in enabled if not entry.is_repeating]
    repeating = [entry for entry in enabled if entry.is_repeating]
    gated = [entry for entry in static if entry.ai_condition_instruction]
    ungated = [entry for entry in static if not entry.ai_condition_instruction]

    instructions = ""
    lines = [
        f'- "{entry_value_key(entry.target_array_field, entry.entry_order, field.field_name)}": '
        f"{_field_instruction(field)}{_entry_note(field.data_type)}\n"
        for entry in ungated
        for field in _extracted_fields(entry)
    ]
    if lines:
        instructions += "\n\nARRAY ENTRY FIELD EXTRACTIONS:\n"
        instructions += "Extract these additional values as standalone fields in the workflow-only data section:\n"
        instructions += "".join(lines)

    if gated:
        instructions += "\n\nCONDITIONAL ARRAY ENTRY EXTRACTIONS:\n"
        instructions += (
            "For each group below, first check the condition on the document. "
            "If the condition is NOT met, return null for ALL fields in that group.\n"
        )
        instructions += "If the condition IS met, extract the values as described.\n\n"
        for entry in gated:
            target = entry.target_array_field
            instructions += f"Condition check for {target}[{entry.entry_order}]: {entry.ai_condition_instruction}\n"
            instructions += (
                f'- "{entry_condition_key(target, entry.entry_order)}": '
                'Set to "true" if the condition is met, "false" if not\n'
            )
            for field in _extracted_fields(entry):
                instructions += (
                    f'- "{entry_value_key(target, entry.entry_order, field.field_name)}": '
                    f"{_field_instruction(field)}{_entry_note(field.data_type)} "
                    "(only if condition is met, otherwise null)\n"
                )
            instructions += "\n"

    if repeating:
        instructions += "\n\nREPEATING ARRAY EXTRACTIONS:\n"
        instructions += "For each of the following, find ALL matching rows in the document and return an ARRAY of objects:\n\n"
        for entry in repeating:
            instructions += (
                f'- "{repeating_array_key(entry.target_array_field)}": '
                f"{entry.repeat_instruction or 'Find all matching rows'}\n"
            )
            instructions += "  Return as an array of objects, where each object has these fields:\n"
            for field in entry.fields:
                note = _entry_note(field.data_type) if field.data_type else ""
                if field.field_type == "hardcoded":
                    instructions += f'    - "{field.field_name}": Always "{field.hardcoded_value}"{note}\n'
                else:
                    instructions += f'    - "{field.field_name}": {field.extraction_instruction or ""}{note}\n'
            instructions += "\n"

    return instructions


def has_side_channel_fields(rules: MappingRules) -> bool:
    """True when the extractor must answer with the templateData/workflowOnlyData wrapper."""
    if rules.workflow_only_mappings:
        return True
    return any(entry.is_enabled for entry in rules.array_entry_configs)


def build_extraction_prompt(
    rules: MappingRules,
    template: str,
    *,
    instructions: str = "",
    root_key: str = "orders",
) -> str:
    """Complete extraction prompt for one document type."""
    guidance = (
        build_field_mapping_instructions(rules.field_mappings)
        + build_split_instructions(rules.array_split_configs)
        + build_array_entry_instructions(rules.array_entry_configs)
        + build_workflow_only_instructions(rules.field_mappings)
        + POSTAL_CODE_RULES
    )
    if has_side_channel_fields(rules):
        output_format = WRAPPER_FORMAT.format(template=template)
    else:
        output_format = f"Please format the extracted data as JSON following this EXACT structure:\n{template}"
    return EXTRACTION_PROMPT.format(
        instructions=instructions,
        guidance=guidance,
        output_format=output_format,
        root_key=root_key,
    )
