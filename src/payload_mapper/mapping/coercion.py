"""Type coercion for raw extracted values."""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Any

from payload_mapper.mapping.paths import MISSING
from payload_mapper.schema import DataType

CANADIAN_PROVINCES = frozenset(
    {"AB", "BC", "MB", "NB", "NL", "NS", "NT", "NU", "ON", "PE", "QC", "SK", "YT"}
)
US_STATES = frozenset(
    {
        "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA",
        "HI", "ID", "IL", "IN", "IA", "KS", "KY", "LA", "ME", "MD",
        "MA", "MI", "MN", "MS", "MO", "MT", "NE", "NV", "NH", "NJ",
        "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI", "SC",
        "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY",
        "DC",
    }
)

NULL_TEXT = "null"
TRUTHY_TOKENS = frozenset({"true", "yes", "1"})
DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

_CANADIAN_POSTAL = re.compile(r"^[A-Z]\d[A-Z]\d[A-Z]\d$")
_US_ZIP = re.compile(r"^\d{5,9}$")
_US_ZIP_STRICT = re.compile(r"^\d{5}(\d{4})?$")
_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DATE_WITH_TIME = re.compile(r"^\d{4}-\d{2}-\d{2}T")
_MINUTE_PRECISION = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}$")
_FLOAT_PREFIX = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"^\s*[+-]?\d+")


def is_null_like(value: Any) -> bool:
    """True for values a remove-if-null rule treats as absent."""
    return value is None or value is MISSING or value == "" or value == NULL_TEXT


def is_blank(value: Any) -> bool:
    return value is None or value is MISSING or value == ""


def json_escaped_length(text: str) -> int:
    """Length of ``text`` as it appears inside a JSON string literal."""
    return len(json.dumps(text, ensure_ascii=False)) - 2


def truncate_json_escaped(text: str, max_length: int) -> str:
    """Longest prefix of ``text`` whose JSON-escaped length fits ``max_length``."""
    if not text or max_length <= 0:
        return ""
    if json_escaped_length(text) <= max_length:
        return text

    left, right = 0, len(text)
    result = ""
    while left <= right:
        mid = (left + right) // 2
        prefix = text[:mid]
        if json_escaped_length(prefix) <= max_length:
            result = prefix
            left = mid + 1
        else:
            right = mid - 1
    return result


def coerce_string(value: Any, max_length: int | None = None) -> Any:
    if value is None or value == NULL_TEXT:
        value = ""
    if isinstance(value, str) and value:
        value = value.upper()
    if max_length and max_length > 0 and isinstance(value, str):
        value = truncate_json_escaped(value, max_length)
    return value


def format_phone(value: Any) -> str:
    """Format a North American number as ``XXX-XXX-XXXX``; anything else is blanked."""
    if value is None or isinstance(value, bool):
        return ""
    digits = re.sub(r"\D", "", str(value))
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    if len(digits) == 10:
        return f"{digits[:3]}-{digits[3:6]}-{digits[6:]}"
    return ""


def normalize_boolean(value: Any) -> str:
    if value is None or value is MISSING:
        return "False"
    return "True" if str(value).strip().lower() in TRUTHY_TOKENS else "False"


def current_timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now(timezone.utc)).strftime(DATETIME_FORMAT)


def normalize_datetime(
    value: Any,
    *,
    date_only: bool = False,
    fallback: Any = None,
    now: datetime | None = None,
) -> Any:
    """Complete a datetime string to ``YYYY-MM-DDTHH:mm:ss``.

    Empty values (including ``N/A``) become ``fallback`` when one is given,
    otherwise the current timestamp.
    """
    if is_blank(value) or value == "N/A":
        return fallback if fallback not in (None, "") else current_timestamp(now)

    text = str(value)
    if date_only:
        if _DATE_ONLY.match(text):
            return f"{text}T00:00:00"
        if _DATE_WITH_TIME.match(text):
            return f"{text[:10]}T00:00:00"
        return value
    if _MINUTE_PRECISION.match(text):
        return f"{text}:00"
    return value


def _clean_postal(value: str) -> str:
    return re.sub(r"[\s\-]", "", value).upper()


def format_zip_postal(value: Any) -> Any:
    """Canadian ``A1A 1A1`` or five-digit US ZIP; other input comes back cleaned."""
    if not value or not isinstance(value, str):
        return value
    cleaned = _clean_postal(value)
    if _CANADIAN_POSTAL.match(cleaned):
        return f"{cleaned[:3]} {cleaned[3:]}"
    if _US_ZIP.match(cleaned):
        return cleaned[:5]
    return cleaned


def format_postal_code_for_region(postal_code: Any, province: Any) -> Any:
    """Format ``postal_code`` according to the province or state it belongs to.

    Unrecognised regions fall back to pattern detection. Values that match no
    rule are returned unchanged.
    """
    if not postal_code or not isinstance(postal_code, str):
        return postal_code
    if not province or not isinstance(province, str):
        return postal_code

    region = province.strip().upper()
    cleaned = _clean_postal(postal_code)
    if region in CANADIAN_PROVINCES:
        if _CANADIAN_POSTAL.match(cleaned):
            return f"{cleaned[:3]} {cleaned[3:]}"
        return postal_code
    if region in US_STATES:
        if _US_ZIP_STRICT.match(cleaned):
            return cleaned[:5]
        return postal_code
    return format_zone_postal_code(postal_code)


def format_zone_postal_code(postal_code: Any) -> Any:
    if not postal_code or not isinstance(postal_code, str):
        return postal_code
    cleaned = _clean_postal(postal_code)
    if _CANADIAN_POSTAL.match(cleaned):
        return f"{cleaned[:3]} {cleaned[3:]}"
    if _US_ZIP_STRICT.match(cleaned):
        return cleaned[:5]
    return postal_code


def format_postal_codes(node: Any) -> None:
    """Walk ``node`` and format ``postalCode``/``province`` pairs and zone fields in place."""
    if isinstance(node, list):
        for item in node:
            format_postal_codes(item)
        return
    if not isinstance(node, dict):
        return

    if node.get("postalCode") and node.get("province"):
        node["postalCode"] = format_postal_code_for_region(node["postalCode"], node["province"])
    for key in ("startZone", "endZone"):
        if node.get(key):
            node[key] = format_zone_postal_code(node[key])

    for value in node.values():
        if isinstance(value, (dict, list)):
            format_postal_codes(value)


def _integral(number: float) -> int | float:
    return int(number) if number.is_integer() else number


def coerce_number(value: Any) -> int | float:
    """Leading numeric prefix of ``value``; ``0`` when there is none."""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, (int, float)):
        return _integral(float(value)) if value == value else 0
    match = _FLOAT_PREFIX.match(str(value))
    if not match:
        return 0
    return _integral(float(match.group(0)))


def coerce_integer(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, float):
        return int(value) if value == value and abs(value) != float("inf") else 0
    if isinstance(value, int):
        return value
    match = _INT_PREFIX.match(str(value))
    return int(match.group(0)) if match else 0


def coerce_value(
    value: Any,
    data_type: DataType | None,
    *,
    max_length: int | None = None,
    date_only: bool = False,
    fallback: Any = None,
    now: datetime | None = None,
) -> Any:
    """Normalize ``value`` for the declared ``data_type``."""
    if data_type == "phone":
        return format_phone(value)
    if data_type == "boolean":
        return normalize_boolean(value)
    if data_type == "datetime":
        return normalize_datetime(value, date_only=date_only, fallback=fallback, now=now)
    if data_type == "zip_postal":
        return format_zip_postal(value)
    if data_type == "number":
        return coerce_number(value)
    if data_type == "integer":
        return coerce_integer(value)
    return coerce_string(value, max_length)
