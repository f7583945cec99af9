"""Delimited-text rendering of normalized orders."""

from __future__ import annotations

import csv
import io
import math
import re
from typing import Any, Iterable

from payload_mapper.mapping.coercion import normalize_boolean
from payload_mapper.mapping.paths import get_path
from payload_mapper.schema import FieldMapping

_PHONE_NOISE = re.compile(r"[^0-9+\-() ]")


def _writer(buffer: io.StringIO, delimiter: str):
    return csv.writer(buffer, delimiter=delimiter, quotechar='"', quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")


def escape_csv_value(value: Any, delimiter: str = ",") -> str:
    """Quote ``value`` when it holds the delimiter, a quote or a line break."""
    if value is None or value == "":
        return ""
    buffer = io.StringIO()
    _writer(buffer, delimiter).writerow([str(value)])
    return buffer.getvalue()[:-2]


def _format_number(value: Any) -> str:
    if isinstance(value, bool):
        return str(int(value))
    try:
        number = float(value)
    except (TypeError, ValueError):
        return ""
    if math.isnan(number) or math.isinf(number):
        return ""
    return str(int(number)) if number.is_integer() else str(number)


def format_csv_value(value: Any, mapping: FieldMapping) -> str:
    """Render one cell according to the mapping's data type, unescaped."""
    if value is None or isinstance(value, (dict, list)):
        return ""
    if mapping.data_type in ("number", "integer"):
        return _format_number(value)
    if mapping.data_type == "boolean":
        return normalize_boolean(value)
    if mapping.data_type == "phone":
        return _PHONE_NOISE.sub("", str(value))
    text = str(value)
    if mapping.data_type == "string" and mapping.max_length and len(text) > mapping.max_length:
        text = text[: mapping.max_length]
    return text


def generate_csv_header(mappings: list[FieldMapping], delimiter: str = ",") -> str:
    return delimiter.join(escape_csv_value(mapping.field_name, delimiter) for mapping in mappings)


def generate_csv_row(row: dict[str, Any], mappings: list[FieldMapping], delimiter: str = ",") -> str:
    return delimiter.join(
        escape_csv_value(format_csv_value(get_path(row, mapping.field_name), mapping), delimiter)
        for mapping in mappings
    )


def to_csv(
    rows: Iterable[dict[str, Any]],
    mappings: list[FieldMapping],
    *,
    delimiter: str = ",",
    include_headers: bool = True,
) -> str:
    """Render rows as delimited text, one line per row, columns in mapping order."""
    columns = [mapping for mapping in mappings if not mapping.is_workflow_only]
    buffer = io.StringIO()
    writer = _writer(buffer, delimiter)
    if include_headers:
        writer.writerow([mapping.field_name for mapping in columns])
    for row in rows:
        writer.writerow([format_csv_value(get_path(row, mapping.field_name), mapping) for mapping in columns])
    return buffer.getvalue()
