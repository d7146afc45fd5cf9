from __future__ import annotations

from sheetgrid.engine.header import discover_header
from sheetgrid.engine.materialize import materialize_rows, prune_empty_columns
from sheetgrid.models.column import HeaderRow
from sheetgrid.models.record import Record
from sheetgrid.text.tokenizer import tokenize


def _materialize(grid, skip_empty_rows=True):
    return materialize_rows(grid, discover_header(grid), skip_empty_rows=skip_empty_rows)


def test_leading_blank_line_and_trailing_commas():
    grid = tokenize("\n출품번호,차량명\n0001,그랜저\n0002,,\n")
    result = _materialize(grid)
    assert result.columns == ["출품번호", "차량명"]
    assert [r.to_dict() for r in result.records] == [
        {"출품번호": "0001", "차량명": "그랜저"},
        {"출품번호": "0002", "차량명": ""},
    ]


def test_record_keys_equal_columns():
    grid = [["a", "b", "c"], ["1"], ["1", "2", "3"], ["", "x"]]
    result = _materialize(grid)
    for record in result.records:
        assert tuple(record.keys()) == tuple(result.columns)


def test_short_rows_are_padded():
    result = _materialize([["a", "b", "c"], ["1"], ["x", "y", "z"]])
    assert result.records[0].to_dict() == {"a": "1", "b": "", "c": ""}


def test_cells_are_trimmed_text():
    result = _materialize([["n", "v"], ["  kim ", 12.0], ["lee", 3.5]])
    assert result.records[0].to_dict() == {"n": "kim", "v": "12"}
    assert result.records[1]["v"] == "3.5"


def test_all_empty_column_is_pruned():
    grid = [["a", "b", "c"], ["1", "", "x"], ["2", " ", "y"]]
    result = _materialize(grid)
    assert result.columns == ["a", "c"]
    assert result.pruned_columns == ["b"]
    assert all("b" not in r for r in result.records)


def test_no_column_has_all_empty_values():
    grid = [["a", "b", "c"], ["1", "", ""], ["", "", "z"]]
    result = _materialize(grid)
    for name in result.columns:
        assert any(r[name] != "" for r in result.records)


def test_pruning_never_removes_every_column():
    kept, dropped = prune_empty_columns(
        ["a", "b"], [Record(columns=("a", "b"), values={"a": "", "b": ""})]
    )
    assert kept == ["a", "b"]
    assert dropped == []


def test_header_only_grid_keeps_headers():
    result = _materialize([["a", "b"]])
    assert result.columns == ["a", "b"]
    assert result.records == []


def test_rows_above_header_are_ignored():
    grid = [["title"], ["a", "b"], ["1", "2"]]
    result = _materialize(grid)
    assert len(result.records) == 1
    assert result.records[0].row_index == 2


def test_empty_rows_skipped_by_default():
    grid = [["a", "b"], ["1", "2"], ["", "  "], ["3", "4"]]
    assert len(_materialize(grid).records) == 2
    kept = _materialize(grid, skip_empty_rows=False)
    assert len(kept.records) == 3
    assert kept.records[1].to_dict() == {"a": "", "b": ""}


def test_overlong_rows_with_data_are_reported():
    grid = [["a", "b"], ["1", "2", "extra"], ["3", "4", ""]]
    result = _materialize(grid)
    assert len(result.malformed_rows) == 1
    malformed = result.malformed_rows[0]
    assert malformed.row_index == 1
    assert result.records[0].to_dict() == {"a": "1", "b": "2"}


def test_no_header_returns_empty():
    result = materialize_rows([], HeaderRow(header_row_index=-1, names=()))
    assert result.columns == []
    assert result.records == []
