import pyarrow as pa
import pytest

from nullscope.compute import CSVDataSource, PyArrowTableDataSource
from nullscope.compute.missing import (
    DropNullsNode,
    FillNullsNode,
    MissingSummaryNode,
    missing_mask,
)
from nullscope.errors import ColumnNotFoundError

LOANS = pa.table(
    {
        "loan_age": pa.array([1, 2, None, 4, None]),
        "mths_remng": pa.array([10, None, None, 7, None]),
        "act_endg_upb": pa.array([1.5, float("nan"), None, 3.5, None]),
        "servicer_name": pa.array(["Bank A", "Bank B", None, "", None]),
    }
)


def _run(node):
    return pa.Table.from_batches(list(node.batches()))


def test_missing_mask_includes_nan():
    mask = missing_mask(pa.array([1.0, None, float("nan")]))
    assert mask.to_pylist() == [False, True, True]


def test_missing_mask_empty_strings_are_values():
    mask = missing_mask(pa.array(["", None, "a"]))
    assert mask.to_pylist() == [False, True, False]


@pytest.mark.parametrize(
    "options, expected_loan_age",
    [
        ({"how": "any"}, [1, 4]),
        ({"how": "all"}, [1, 2, 4]),
        ({"subset": ["loan_age"]}, [1, 2, 4]),
        ({"subset": ["mths_remng", "loan_age"], "how": "all"}, [1, 2, 4]),
        ({"min_non_nulls": 2}, [1, 2, 4]),
        ({"min_non_nulls": 4}, [1, 4]),
        ({"min_non_nulls": 0}, [1, 2, None, 4, None]),
        # min_non_nulls takes precedence over how
        ({"how": "any", "min_non_nulls": 1}, [1, 2, 4]),
    ],
)
def test_drop_nulls(options, expected_loan_age):
    result = _run(DropNullsNode(PyArrowTableDataSource(LOANS), **options))
    assert result.column("loan_age").to_pylist() == expected_loan_age


def test_drop_nulls_counts_nan_as_missing():
    result = _run(
        DropNullsNode(PyArrowTableDataSource(LOANS), subset=["act_endg_upb"])
    )
    assert result.column("act_endg_upb").to_pylist() == [1.5, 3.5]


def test_drop_nulls_all_never_drops_complete_rows():
    complete = pa.table({"a": [1, 2], "b": ["x", "y"]})
    assert _run(DropNullsNode(PyArrowTableDataSource(complete), how="all")).num_rows == 2
    assert _run(DropNullsNode(PyArrowTableDataSource(complete), how="any")).num_rows == 2


def test_drop_nulls_empty_subset_keeps_everything():
    result = _run(DropNullsNode(PyArrowTableDataSource(LOANS), subset=[]))
    assert result.num_rows == LOANS.num_rows


@pytest.mark.parametrize(
    "options", [{"how": "some"}, {"min_non_nulls": -1}]
)
def test_drop_nulls_invalid_options(options):
    with pytest.raises(ValueError):
        DropNullsNode(PyArrowTableDataSource(LOANS), **options)


def test_drop_nulls_unknown_column():
    node = DropNullsNode(PyArrowTableDataSource(LOANS), subset=["mths"])
    with pytest.raises(ColumnNotFoundError):
        list(node.batches())


def test_drop_nulls_str():
    node = DropNullsNode(PyArrowTableDataSource(LOANS), subset="loan_age")
    assert str(node) == (
        "DropNullsNode(how='any', subset=['loan_age'], min_non_nulls=None, "
        "child=PyArrowTableDataSource(columns=['loan_age', 'mths_remng', "
        "'act_endg_upb', 'servicer_name'], rows=5))"
    )


def test_fill_nulls_integer_fills_numeric_columns():
    result = _run(FillNullsNode(PyArrowTableDataSource(LOANS), 12345))
    assert result.column("loan_age").to_pylist() == [1, 2, 12345, 4, 12345]
    assert result.column("mths_remng").to_pylist() == [10, 12345, 12345, 7, 12345]
    assert result.column("act_endg_upb").to_pylist() == [1.5, 12345.0, 12345.0, 3.5, 12345.0]
    # Text columns are left untouched
    assert result.column("servicer_name").to_pylist() == ["Bank A", "Bank B", None, "", None]
    assert result.schema == LOANS.schema


def test_fill_nulls_fractional_float_skips_integer_columns():
    result = _run(FillNullsNode(PyArrowTableDataSource(LOANS), 0.5))
    assert result.column("loan_age").null_count == 2
    assert result.column("act_endg_upb").to_pylist() == [1.5, 0.5, 0.5, 3.5, 0.5]


def test_fill_nulls_integral_float_fills_integer_columns():
    result = _run(FillNullsNode(PyArrowTableDataSource(LOANS), 0.0))
    assert result.column("loan_age").to_pylist() == [1, 2, 0, 4, 0]


def test_fill_nulls_string_fills_text_columns():
    result = _run(FillNullsNode(PyArrowTableDataSource(LOANS), "Unknown"))
    assert result.column("servicer_name").to_pylist() == [
        "Bank A", "Bank B", "Unknown", "", "Unknown"
    ]
    assert result.column("loan_age").null_count == 2


def test_fill_nulls_subset():
    result = _run(
        FillNullsNode(PyArrowTableDataSource(LOANS), 0, subset=["mths_remng"])
    )
    assert result.column("mths_remng").null_count == 0
    assert result.column("loan_age").null_count == 2


def test_fill_nulls_per_column_values():
    result = _run(
        FillNullsNode(
            PyArrowTableDataSource(LOANS),
            {"act_endg_upb": 12345, "servicer_name": "Unknown"},
        )
    )
    assert result.column("act_endg_upb").to_pylist() == [1.5, 12345.0, 12345.0, 3.5, 12345.0]
    assert result.column("servicer_name").null_count == 0
    assert result.column("loan_age").null_count == 2


def test_fill_nulls_incompatible_value():
    node = FillNullsNode(PyArrowTableDataSource(LOANS), {"loan_age": "unknown"})
    with pytest.raises(ValueError):
        list(node.batches())


def test_fill_nulls_unknown_column():
    node = FillNullsNode(PyArrowTableDataSource(LOANS), {"mths": 1})
    with pytest.raises(ColumnNotFoundError):
        list(node.batches())


@pytest.mark.parametrize("value", [None, {}, {"loan_age": None}])
def test_fill_nulls_invalid_value(value):
    with pytest.raises(ValueError):
        FillNullsNode(PyArrowTableDataSource(LOANS), value)


def test_fill_nulls_column_of_only_nulls():
    data = pa.table({"zip": pa.nulls(2)})
    result = _run(FillNullsNode(PyArrowTableDataSource(data), {"zip": "00000"}))
    assert result.column("zip").to_pylist() == ["00000", "00000"]


def test_missing_summary():
    result = _run(MissingSummaryNode(PyArrowTableDataSource(LOANS)))
    assert result.to_pylist() == [
        {"column": "loan_age", "type": "int64", "rows": 5, "nulls": 2, "nans": 0, "empty_strings": 0},
        {"column": "mths_remng", "type": "int64", "rows": 5, "nulls": 3, "nans": 0, "empty_strings": 0},
        {"column": "act_endg_upb", "type": "double", "rows": 5, "nulls": 2, "nans": 1, "empty_strings": 0},
        {"column": "servicer_name", "type": "string", "rows": 5, "nulls": 2, "nans": 0, "empty_strings": 1},
    ]


def test_missing_summary_across_batches():
    table = pa.Table.from_batches(LOANS.to_batches(max_chunksize=2))
    result = _run(MissingSummaryNode(PyArrowTableDataSource(table)))
    assert result.column("nulls").to_pylist() == [2, 3, 2, 2]
    assert result.column("rows").to_pylist() == [5, 5, 5, 5]


def test_missing_summary_of_file_without_rows(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("loan_age,servicer_name\n")
    summary = next(MissingSummaryNode(CSVDataSource(str(path))).batches())
    assert summary.column("column").to_pylist() == ["loan_age", "servicer_name"]
    assert summary.column("rows").to_pylist() == [0, 0]
    assert summary.column("nulls").to_pylist() == [0, 0]
