"""Tests for the array split contract."""

from payload_mapper.mapping.splitter import (
    apply_split,
    build_split_instructions,
    expected_entry_count,
    validate_split,
)
from payload_mapper.schema import ArraySplitConfig


def _config(strategy="one_per_entry", default_to_one=False):
    return ArraySplitConfig(
        target_array_field="barcodes",
        split_based_on_field="pieces",
        split_strategy=strategy,
        default_to_one_if_missing=default_to_one,
    )


def test_one_per_entry_creates_n_rows_from_order_count():
    order = {"pieces": 3}

    changed = apply_split(order, _config())

    assert changed
    assert order["barcodes"] == [{"pieces": 1}, {"pieces": 1}, {"pieces": 1}]


def test_one_per_entry_expands_row_counts():
    order = {"barcodes": [{"pieces": 2, "ref": "A"}, {"pieces": 1, "ref": "B"}]}

    apply_split(order, _config())

    assert [row["ref"] for row in order["barcodes"]] == ["A", "A", "B"]
    assert all(row["pieces"] == 1 for row in order["barcodes"])


def test_one_per_entry_pads_to_order_count():
    order = {"pieces": 3, "barcodes": [{"pieces": 1, "ref": "A"}]}

    apply_split(order, _config())

    assert len(order["barcodes"]) == 3
    assert all(row == {"pieces": 1, "ref": "A"} for row in order["barcodes"])


def test_missing_count_defaults_to_one():
    order = {}

    apply_split(order, _config(default_to_one=True))

    assert order["barcodes"] == [{"pieces": 1}]
    assert expected_entry_count({"pieces": 0}, _config(default_to_one=True)) == 1


def test_missing_count_without_default_leaves_order():
    order = {"ref": "X"}

    assert not apply_split(order, _config())
    assert order == {"ref": "X"}


def test_divide_evenly_spreads_integer_total():
    order = {"pieces": 7, "barcodes": [{}, {}, {}]}

    apply_split(order, _config("divide_evenly"))

    assert [row["pieces"] for row in order["barcodes"]] == [3, 2, 2]


def test_divide_evenly_fractional_total():
    order = {"pieces": 2.5, "barcodes": [{}, {}]}

    apply_split(order, _config("divide_evenly"))

    assert [row["pieces"] for row in order["barcodes"]] == [1.25, 1.25]


def test_validate_reports_cardinality_mismatch():
    order = {"pieces": 2, "barcodes": [{"pieces": 1}]}

    assert validate_split(order, _config()) == "split_cardinality_mismatch:barcodes"


def test_validate_reports_unsplit_rows():
    order = {"pieces": 1, "barcodes": [{"pieces": 2}]}

    assert validate_split(order, _config()) == "split_count_not_one:barcodes"


def test_validate_accepts_honoured_contract():
    order = {"pieces": 2, "barcodes": [{"pieces": 1}, {"pieces": 1}]}

    assert validate_split(order, _config()) is None


def test_split_instructions_mention_fallback():
    text = build_split_instructions([_config(default_to_one=True)])

    assert "ARRAY SPLIT INSTRUCTIONS" in text
    assert 'create N separate entries in the "barcodes" array' in text
    assert 'with "pieces" set to 1' in text
    assert build_split_instructions([]) == ""
