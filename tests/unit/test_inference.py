from __future__ import annotations

from datetime import datetime

import numpy as np
import pytest

from sheetgrid.engine.inference import (
    analyze_column,
    analyze_columns,
    classify_value,
    coerce_variant,
    infer_column_type,
)
from sheetgrid.models.column import ColumnType
from sheetgrid.models.config_models import EngineConfig
from sheetgrid.models.record import ValueKind, Variant


@pytest.mark.parametrize(
    "values, expected",
    [
        (["1,000", "2,500만원", "43,437 Km", "12"], ColumnType.NUMERIC),
        (["2024-01-15", "2023-12-31 10:00", "2022/03/04"], ColumnType.TEMPORAL),
        (["true", "FALSE", "True"], ColumnType.BOOLEAN),
        (["그랜저", "쏘나타", "아반떼"], ColumnType.TEXTUAL),
        (["1", "2", "a", "b"], ColumnType.MIXED),
        (["", "", None], ColumnType.TEXTUAL),
    ],
)
def test_infer_column_type(values, expected):
    assert infer_column_type(values) is expected


def test_threshold_is_inclusive():
    # 4/5 = 0.8
    assert infer_column_type(["1", "2", "3", "4", "x"]) is ColumnType.NUMERIC
    assert infer_column_type(["1", "2", "3", "x", "y"]) is ColumnType.MIXED


def test_empty_values_do_not_count_toward_threshold():
    assert infer_column_type(["1", "", "2", "", "3", ""]) is ColumnType.NUMERIC


def test_threshold_is_configurable():
    values = ["1", "2", "3", "4", "x"]
    assert infer_column_type(values, EngineConfig(type_threshold=0.9)) is ColumnType.MIXED


def test_native_cells_classify():
    assert infer_column_type([1, 2.5, np.int64(3)]) is ColumnType.NUMERIC
    assert infer_column_type([True, False]) is ColumnType.BOOLEAN
    assert infer_column_type([datetime(2024, 1, 1), datetime(2024, 2, 1)]) is ColumnType.TEMPORAL


def test_words_are_not_dates_or_numbers():
    for word in ("now", "today", "nan", "inf", "Infinity"):
        assert classify_value(word) is ColumnType.TEXTUAL


def test_unit_suffix_only_counts_when_configured():
    assert classify_value("43,437 Km", ("km",)) is ColumnType.NUMERIC
    assert classify_value("43,437 Km") is ColumnType.TEXTUAL


def test_analyze_column_nullable_and_distinct():
    records = [{"c": "a"}, {"c": ""}, {"c": "a"}, {"c": "b"}]
    meta = analyze_column(records, "c")
    assert meta.inferred_type is ColumnType.TEXTUAL
    assert meta.nullable is True
    assert meta.distinct_value_count == 2


def test_analyze_columns_keeps_order():
    records = [{"n": "1", "t": "x"}, {"n": "2", "t": "y"}]
    metas = analyze_columns(records, ["t", "n"])
    assert [m.name for m in metas] == ["t", "n"]
    assert metas[1].inferred_type is ColumnType.NUMERIC
    assert metas[1].nullable is False
    assert metas[1].to_dict() == {"name": "n", "type": "numeric", "nullable": False, "distinct_values": 2}


def test_coerce_variant_numeric():
    assert coerce_variant("1,500", ColumnType.NUMERIC) == Variant.number(1500)
    assert coerce_variant("2.5", ColumnType.NUMERIC) == Variant.number(2.5)
    assert coerce_variant("", ColumnType.NUMERIC).is_empty


def test_coerce_variant_keeps_leading_zero_identifiers():
    assert coerce_variant("0001", ColumnType.NUMERIC) == Variant.text("0001")


def test_coerce_variant_textual_column_stays_text():
    assert coerce_variant("123", ColumnType.TEXTUAL) == Variant.text("123")


def test_coerce_variant_boolean_and_temporal():
    assert coerce_variant("TRUE", ColumnType.BOOLEAN) == Variant.boolean(True)
    v = coerce_variant("2024-01-15", ColumnType.TEMPORAL)
    assert v.kind is ValueKind.TEMPORAL
    assert v.value == datetime(2024, 1, 15)
    assert v.to_json() == "2024-01-15T00:00:00"


def test_coerce_variant_minority_keeps_own_kind():
    v = coerce_variant("n/a", ColumnType.NUMERIC)
    assert v == Variant.text("n/a")
