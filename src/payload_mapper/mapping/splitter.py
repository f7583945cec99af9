"""Array split contract.

A split config ties the cardinality of an output array to a scalar count in
the document (``pieces = 3`` means three ``barcodes`` rows). The contract is
primarily honoured by the extraction step, which receives the guidance built
by :func:`build_split_instructions`. The engine can check the resulting shape
and, when asked to, re-split locally with :func:`apply_split`.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from payload_mapper.mapping.coercion import coerce_number
from payload_mapper.mapping.paths import get_path, set_path
from payload_mapper.schema import ArraySplitConfig

logger = logging.getLogger(__name__)


def build_split_instructions(configs: list[ArraySplitConfig]) -> str:
    """Extraction guidance describing how each split array must be produced."""
    if not configs:
        return ""

    instructions = "\n\nARRAY SPLIT INSTRUCTIONS:\n"
    for config in configs:
        field = config.split_based_on_field
        target = config.target_array_field
        if config.split_strategy == "one_per_entry":
            fallback = (
                f' If the "{field}" field is not found, empty, or has a value of 0, create 1 entry '
                f'in the "{target}" array with "{field}" set to 1.'
                if config.default_to_one_if_missing
                else ""
            )
            instructions += (
                f'- For the "{target}" array: Look at the value of the "{field}" field in the document. '
                f'If this field has a value of N (for example, if "{field}" = 3), create N separate entries '
                f'in the "{target}" array. Each entry should have "{field}" set to 1, and all other fields '
                f"should contain the same data from the document.{fallback}\n"
            )
        else:
            fallback = (
                f' If the "{field}" field is not found, empty, or has a value of 0, create 1 entry '
                f'in the "{target}" array.'
                if config.default_to_one_if_missing
                else ""
            )
            instructions += (
                f'- For the "{target}" array: Look at the value of the "{field}" field and create multiple '
                f"entries distributing the value evenly across them based on the data in the document.{fallback}\n"
            )
    return instructions


def read_split_total(order: dict, config: ArraySplitConfig) -> int | float | None:
    """Order-level count, or the sum of the rows' counts when the order has none."""
    total = _count(get_path(order, config.split_based_on_field))
    if total is not None:
        return total

    rows = _rows(order, config)
    counts = [_count(get_path(row, config.split_based_on_field)) for row in rows if isinstance(row, dict)]
    counts = [value for value in counts if value is not None]
    return sum(counts) if counts else None


def expected_entry_count(order: dict, config: ArraySplitConfig) -> int | None:
    """Number of rows the split contract calls for, when it is determinable."""
    total = read_split_total(order, config)
    if total is None or total <= 0:
        return 1 if config.default_to_one_if_missing else None
    if config.split_strategy == "one_per_entry":
        return max(int(total), 1)
    return None


def validate_split(order: dict, config: ArraySplitConfig) -> str | None:
    """Warning code when the extracted array does not match the contract."""
    rows = _rows(order, config)
    if config.split_strategy == "one_per_entry":
        expected = expected_entry_count(order, config)
        if expected is not None and len(rows) != expected:
            return f"split_cardinality_mismatch:{config.target_array_field}"
        for row in rows:
            if isinstance(row, dict) and _count(get_path(row, config.split_based_on_field)) not in (None, 1):
                return f"split_count_not_one:{config.target_array_field}"
    elif not rows and config.default_to_one_if_missing:
        return f"split_cardinality_mismatch:{config.target_array_field}"
    return None


def apply_split(order: dict, config: ArraySplitConfig) -> bool:
    """Re-split ``config.target_array_field`` locally. Returns True when it changed."""
    if config.split_strategy == "one_per_entry":
        rows = _split_one_per_entry(order, config)
    else:
        rows = _divide_evenly(order, config)
    if rows is None:
        return False

    before = get_path(order, config.target_array_field)
    if before == rows:
        return False
    set_path(order, config.target_array_field, rows)
    logger.debug("Re-split %s into %d entries", config.target_array_field, len(rows))
    return True


def _split_one_per_entry(order: dict, config: ArraySplitConfig) -> list | None:
    field = config.split_based_on_field
    rows = _rows(order, config)
    if not rows:
        count = expected_entry_count(order, config)
        if count is None:
            return None
        result = []
        for _ in range(count):
            row: dict[str, Any] = {}
            set_path(row, field, 1)
            result.append(row)
        return result

    result = []
    for row in rows:
        if not isinstance(row, dict):
            result.append(row)
            continue
        count = _count(get_path(row, field))
        if count is None or count <= 0:
            if config.default_to_one_if_missing:
                row = copy.deepcopy(row)
                set_path(row, field, 1)
            result.append(row)
            continue
        for _ in range(max(int(count), 1)):
            piece = copy.deepcopy(row)
            set_path(piece, field, 1)
            result.append(piece)

    # Pad from the order-level count; surplus rows are kept.
    declared = _count(get_path(order, field))
    if declared is not None and result and isinstance(result[-1], dict):
        while len(result) < int(declared):
            piece = copy.deepcopy(result[-1])
            set_path(piece, field, 1)
            result.append(piece)
    return result


def _divide_evenly(order: dict, config: ArraySplitConfig) -> list | None:
    field = config.split_based_on_field
    rows = [copy.deepcopy(row) for row in _rows(order, config)]
    total = read_split_total(order, config)

    if total is None or total <= 0:
        if not rows and config.default_to_one_if_missing:
            return [{}]
        return None
    if not rows:
        rows = [{}]

    dict_rows = [row for row in rows if isinstance(row, dict)]
    if not dict_rows:
        return None
    if float(total).is_integer():
        base, remainder = divmod(int(total), len(dict_rows))
        shares: list[int | float] = [base + (1 if index < remainder else 0) for index in range(len(dict_rows))]
    else:
        shares = [total / len(dict_rows)] * len(dict_rows)
    for row, share in zip(dict_rows, shares):
        set_path(row, field, share)
    return rows


def _rows(order: dict, config: ArraySplitConfig) -> list:
    rows = get_path(order, config.target_array_field)
    return rows if isinstance(rows, list) else []


def _count(value: Any) -> int | float | None:
    if value is None or value == "" or isinstance(value, (list, dict)):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return coerce_number(value)
