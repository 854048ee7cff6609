import pyarrow as pa
import pytest

from nullscope.compute import PyArrowTableDataSource
from nullscope.compute.aggregate import (
    AggregateNode,
    CountAggregation,
    CountRowsAggregation,
    MaxAggregation,
    MeanAggregation,
    MinAggregation,
    NullCountAggregation,
    StddevAggregation,
    SumAggregation,
)
from nullscope.errors import ColumnNotFoundError

TEST_DATA = pa.record_batch(
    {
        "servicer_name": pa.array(
            ["Bank A", "Bank A", "Bank B", "Bank B", "Bank A"]
        ),
        "state": pa.array(["NY", "CA", "NY", "NY2", "CA"]),
        "mths_remng": pa.array([10, 15, 8, 12, 20]),
    }
)

NULLS_DATA = pa.record_batch(
    {
        "servicer_name": pa.array(["Bank A", None, "Bank B", None, "Bank A"]),
        "mths_remng": pa.array([10, None, None, 4, None]),
    }
)


@pytest.mark.parametrize("keys", [["servicer_name"], ["servicer_name", "state"]])
def test_basic_aggregation(keys):
    aggregate = AggregateNode(
        keys,
        {"total_mths": SumAggregation("mths_remng")},
        PyArrowTableDataSource(TEST_DATA),
    )
    result = next(aggregate.batches())

    if keys == ["servicer_name"]:
        assert result.column_names == ["servicer_name", "total_mths"]
        assert result.column(0).to_pylist() == ["Bank A", "Bank B"]
        assert result.column(1).to_pylist() == [45, 20]
    else:
        assert result.column_names == ["servicer_name", "state", "total_mths"]
        assert result.column(0).to_pylist() == ["Bank A", "Bank A", "Bank B", "Bank B"]
        assert result.column(1).to_pylist() == ["CA", "NY", "NY", "NY2"]
        assert result.column(2).to_pylist() == [35, 10, 8, 12]


@pytest.mark.parametrize("keys", [["servicer_name"], ["servicer_name", "state"]])
def test_aggregate_node_str(keys):
    aggregate = AggregateNode(
        keys,
        {"total_mths": SumAggregation("mths_remng")},
        PyArrowTableDataSource(TEST_DATA),
    )
    assert str(aggregate) == (
        "AggregateNode(keys=%r, aggregations={'total_mths': SumAggregation(mths_remng)}, "
        "PyArrowTableDataSource(columns=['servicer_name', 'state', 'mths_remng'], rows=5))"
        % (keys,)
    )


@pytest.mark.parametrize(
    "aggregation, expected",
    [
        (MinAggregation("mths_remng"), [10, 8]),
        (MaxAggregation("mths_remng"), [20, 12]),
        (CountAggregation("mths_remng"), [3, 2]),
        (MeanAggregation("mths_remng"), [15.0, 10.0]),
    ],
)
def test_single_key_aggregations(aggregation, expected):
    aggregate = AggregateNode(
        ["servicer_name"], {"result": aggregation}, PyArrowTableDataSource(TEST_DATA)
    )
    result = next(aggregate.batches())
    assert result.column(0).to_pylist() == ["Bank A", "Bank B"]
    assert result.column(1).to_pylist() == expected


def test_mean_is_not_truncated():
    aggregate = AggregateNode(
        ["servicer_name", "state"],
        {"mean_mths": MeanAggregation("mths_remng")},
        PyArrowTableDataSource(TEST_DATA),
    )
    result = next(aggregate.batches())
    assert result.column(2).to_pylist() == [17.5, 10.0, 8.0, 12.0]


def test_null_keys_form_their_own_group():
    aggregate = AggregateNode(
        ["servicer_name"],
        {"n": CountRowsAggregation("servicer_name")},
        PyArrowTableDataSource(NULLS_DATA),
    )
    result = next(aggregate.batches()).to_pydict()
    assert dict(zip(result["servicer_name"], result["n"])) == {
        "Bank A": 2,
        None: 2,
        "Bank B": 1,
    }


def test_null_keys_multiple_columns():
    data = pa.record_batch(
        {
            "servicer_name": ["Bank A", None, None, "Bank A"],
            "state": ["NY", "NY", "NY", None],
            "loan_age": [1, 2, 3, 4],
        }
    )
    aggregate = AggregateNode(
        ["servicer_name", "state"],
        {"n": CountRowsAggregation()},
        PyArrowTableDataSource(data),
    )
    result = next(aggregate.batches())
    rows = list(zip(*(result.column(i).to_pylist() for i in range(3))))
    assert sorted(rows, key=str) == sorted(
        [("Bank A", "NY", 1), ("Bank A", None, 1), (None, "NY", 2)], key=str
    )


def test_count_rows_includes_nulls_count_does_not():
    aggregate = AggregateNode(
        ["servicer_name"],
        {
            "rows": CountRowsAggregation(),
            "values": CountAggregation("mths_remng"),
            "nulls": NullCountAggregation("mths_remng"),
        },
        PyArrowTableDataSource(NULLS_DATA),
    )
    result = next(aggregate.batches()).to_pylist()
    by_servicer = {row["servicer_name"]: row for row in result}
    assert by_servicer["Bank A"] == {
        "servicer_name": "Bank A",
        "rows": 2,
        "values": 1,
        "nulls": 1,
    }
    assert by_servicer["Bank B"]["nulls"] == 1
    assert by_servicer[None]["values"] == 1


def test_global_aggregation():
    aggregate = AggregateNode(
        [],
        {
            "rows": CountRowsAggregation(),
            "total": SumAggregation("mths_remng"),
            "mean": MeanAggregation("mths_remng"),
        },
        PyArrowTableDataSource(TEST_DATA),
    )
    result = next(aggregate.batches())
    assert result.to_pylist() == [{"rows": 5, "total": 65, "mean": 13.0}]


def test_global_aggregation_of_null_values():
    data = pa.record_batch({"mths_remng": pa.array([None, None], type=pa.int64())})
    aggregate = AggregateNode(
        [],
        {
            "mean": MeanAggregation("mths_remng"),
            "min": MinAggregation("mths_remng"),
            "stddev": StddevAggregation("mths_remng"),
        },
        PyArrowTableDataSource(data),
    )
    result = next(aggregate.batches())
    assert result.to_pylist() == [{"mean": None, "min": None, "stddev": None}]


def test_stddev_across_batches():
    table = pa.Table.from_batches(
        [
            pa.record_batch({"v": [2.0, 4.0, 4.0, 4.0]}),
            pa.record_batch({"v": [5.0, 5.0, 7.0, 9.0, None]}),
        ]
    )
    aggregate = AggregateNode(
        [], {"stddev": StddevAggregation("v")}, PyArrowTableDataSource(table)
    )
    result = next(aggregate.batches())
    assert result.column(0)[0].as_py() == pytest.approx(2.138089935)


@pytest.mark.parametrize("keys", [["city"], ["city", "shop"]])
def test_count_aggregation_across_batches(keys):
    aggregate = AggregateNode(
        keys,
        {"count_employees": CountAggregation("n_employees")},
        PyArrowTableDataSource(_generate_50rows_test_data()),
    )
    result = next(aggregate.batches())

    if keys == ["city"]:
        assert result.column_names == ["city", "count_employees"]
        assert result.column(0).to_pylist() == [
            "City0",
            "City1",
            "City2",
            "City3",
            "City4",
        ]
        assert result.column(1).to_pylist() == [20, 20, 20, 20, 20]
    else:
        assert result.column_names == ["city", "shop", "count_employees"]
        expected_cities = ["City" + str(i) for i in range(5) for _ in range(10)]
        expected_shops = ["Shop" + str(i) for _ in range(5) for i in range(10)]
        assert result.column(0).to_pylist() == expected_cities
        assert result.column(1).to_pylist() == expected_shops
        assert result.column(2).to_pylist() == [2] * 50


@pytest.mark.parametrize("keys", [[], ["state"], ["servicer_name", "state"]])
def test_unknown_columns(keys):
    aggregate = AggregateNode(
        keys, {"nulls": NullCountAggregation("zip_code")}, PyArrowTableDataSource(TEST_DATA)
    )
    with pytest.raises(ColumnNotFoundError):
        next(aggregate.batches())


def _generate_50rows_test_data():
    cities = ["City" + str(i) for i in range(5)]
    shops = ["Shop" + str(i) for i in range(10)]
    data = {"city": [], "shop": [], "n_employees": []}
    for city in cities:
        for shop in shops:
            for _ in range(2):  # Ensure each combination appears at least twice
                data["city"].append(city)
                data["shop"].append(shop)
                data["n_employees"].append(10)
    # Split in two batches, so that partial results have to be reduced.
    table = pa.table(data)
    return pa.Table.from_batches(table.to_batches(max_chunksize=33))


def test_nan_keys_form_a_single_group():
    nan = float("nan")
    data = pa.record_batch(
        {
            "act_endg_upb": pa.array([nan, nan, 1.5, nan]),
            "servicer_name": pa.array(["x", "x", "x", "x"]),
        }
    )
    aggregate = AggregateNode(
        ["act_endg_upb", "servicer_name"],
        {"n": CountRowsAggregation()},
        PyArrowTableDataSource(data),
    )
    result = next(aggregate.batches())
    assert result.num_rows == 2
    counts = dict(zip(result.column("act_endg_upb").to_pylist(), result.column("n").to_pylist()))
    assert counts[1.5] == 1
    nan_counts = [n for k, n in counts.items() if k != k]
    assert nan_counts == [3]


def test_nan_keys_across_batches():
    nan = float("nan")
    table = pa.Table.from_batches(
        [
            pa.record_batch({"act_endg_upb": pa.array([nan, 1.5])}),
            pa.record_batch({"act_endg_upb": pa.array([nan, nan])}),
        ]
    )
    aggregate = AggregateNode(
        ["act_endg_upb"], {"n": CountRowsAggregation()}, PyArrowTableDataSource(table)
    )
    result = next(aggregate.batches())
    assert sorted(result.column("n").to_pylist()) == [1, 3]
