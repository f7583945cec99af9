"""Date offset functions."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from payload_mapper.mapping.paths import get_path
from payload_mapper.schema import DateLogic

DEFAULT_OUTPUT_FORMAT = "YYYY-MM-DD"

OUTPUT_FORMATS = {
    "YYYY-MM-DD": "%Y-%m-%d",
    "MM/DD/YYYY": "%m/%d/%Y",
    "DD/MM/YYYY": "%d/%m/%Y",
    "MM-DD-YYYY": "%m-%d-%Y",
    "YYYY-MM-DDTHH:mm:ss": "%Y-%m-%dT%H:%M:%S",
}

# Accepted field formats besides ISO 8601.
_INPUT_FORMATS = (
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%Y/%m/%d",
    "%m-%d-%Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %b %Y",
    "%d %B %Y",
)


def parse_date(value: Any) -> datetime | None:
    """Parse a field value into a naive datetime, keeping the written wall-clock time."""
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    iso_text = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        return datetime.fromisoformat(iso_text).replace(tzinfo=None)
    except ValueError:
        pass
    for fmt in _INPUT_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def format_date(value: datetime, output_format: str | None = None) -> str:
    pattern = OUTPUT_FORMATS.get(output_format or DEFAULT_OUTPUT_FORMAT, OUTPUT_FORMATS[DEFAULT_OUTPUT_FORMAT])
    return value.strftime(pattern)


def evaluate_date_function(logic: DateLogic, data: Any, *, now: datetime | None = None) -> str:
    """Shift today or a field's date by ``logic.days`` and format it.

    Returns an empty string when the source field is missing or unparseable.
    """
    if logic.source == "current_date":
        base = now or datetime.now()
    else:
        raw = get_path(data, logic.field_name) if logic.field_name else None
        if not raw:
            return ""
        base = parse_date(raw)
        if base is None:
            return ""

    offset = timedelta(days=logic.days or 0)
    result = base - offset if logic.operation == "subtract" else base + offset
    return format_date(result, logic.output_format)
