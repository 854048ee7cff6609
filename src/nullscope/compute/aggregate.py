"""Query plan nodes that compute aggregations.

Frequently when analysing data is necessary
to compute statistics like the min, max, average, etc...
of the data stored in datasets, or to know how many
entries are missing for each group of the data.

The aggregate node is in charge of computing
those aggregations and projecting them as new
columns in a query pipeline.

Typically the aggregate node will group the data
by a set of columns and then compute the aggregations

For example, given the following data::

    servicer_name, mths_remng
    Bank A, 10
    Bank A, null
    Bank B, null
    Bank B, null
    Bank A, 20

We could group by servicer_name and count the missing
values of mths_remng to get::

    servicer_name, nulls
    Bank A, 1
    Bank B, 2

Null values of the grouping keys form a group of their own,
so no row is lost while aggregating.
"""

import abc
import math
from typing import Any

import pyarrow as pa
import pyarrow.compute as pc

from ..errors import ColumnNotFoundError
from .base import QueryPlanNode

__all__ = (
    "AggregateNode",
    "CountAggregation",
    "CountRowsAggregation",
    "NullCountAggregation",
    "SumAggregation",
    "MinAggregation",
    "MaxAggregation",
    "MeanAggregation",
    "StddevAggregation",
)


class AggregateNode(QueryPlanNode):
    """Group data and compute aggregations.

    >>> import pyarrow as pa
    >>> from nullscope.compute import PyArrowTableDataSource
    >>> data = pa.record_batch({
    ...    'servicer_name': pa.array(['Bank A', 'Bank A', 'Bank B', 'Bank B', 'Bank A']),
    ...    'mths_remng': pa.array([10, None, None, None, 20]),
    ... })
    >>> aggregate = AggregateNode(["servicer_name"], {"nulls": NullCountAggregation("mths_remng")},
    ...                           PyArrowTableDataSource(data))
    >>> next(aggregate.batches())
    pyarrow.RecordBatch
    servicer_name: string
    nulls: int64
    ----
    servicer_name: ["Bank A","Bank B"]
    nulls: [1,2]

    When no keys are provided, the aggregations are computed
    over the whole data and a single row is emitted.
    """

    def __init__(
        self,
        keys: list[str],
        aggregations: dict[str, "Aggregation"],
        child: QueryPlanNode,
    ) -> None:
        """
        :param keys: The columns to group by.
        :param aggregations: The aggregations to compute in the form of {"new_col_name": Aggregation}.
        :param child: The child node that will provide the data to aggregate.
        """
        self.keys = keys
        self.aggregations = aggregations
        self.child = child
        self._key_types: list[pa.DataType] = []
        self._checked = False

    def __str__(self) -> str:
        return f"AggregateNode(keys={self.keys}, aggregations={self.aggregations}, {self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Group the data provided by the child node and aggregate it.

        Each batch is split into the groups it contains,
        and for each group intermediate results of the
        aggregations are computed. Once all batches were consumed
        the intermediate results are reduced into the final ones.
        """
        if not self.keys:
            yield from self.global_aggregation()
        elif len(self.keys) == 1:
            yield from self.single_key_aggregation()
        else:
            yield from self.multi_key_aggregation()

    def global_aggregation(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Compute the aggregations over all the rows as a single group."""
        chunks_data: dict[Any, dict[str, list[Any]]] = {(): {}}
        for batch in self.child.batches():
            self._check_columns(batch)
            self._add_chunk(chunks_data, (), batch)
        yield self.reduce_aggregations(chunks_data)

    def single_key_aggregation(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Compute the aggregation for a single key.

        This is an optimized path where we can rely on dictionary encoding
        to find the unique values of the key column and then filter the rows.
        """
        # Compute separate aggregation results for each batch.
        # This makes so that we need to keep in memory only one batch
        # at the time, and the aggregation results, which are far smaller
        #   chunks_data = {key_value: {aggr_name: [aggr_value1, aggr_value2, ...]}}
        chunks_data: dict[Any, dict[str, list[Any]]] = {}
        for batch in self.child.batches():
            self._check_columns(batch)
            # Dictionary Encode the key variable,
            # so we can get the unique values
            # and we can know at which rows each value is.
            # Nulls are encoded too, so that they form their own group.
            key_column = pc.dictionary_encode(
                batch.column(self.keys[0]), null_encoding="encode"
            )
            key_values = [_group_key(v) for v in key_column.dictionary.to_pylist()]
            key_indices = key_column.indices

            # For each unique value, we lookup the rows that have that value
            # Then for the resulting batch of rows filtered by the unique key value
            # we compute the aggregation and add it to the aggregation results for
            # that key value in the current batch.
            for idx, keyval in enumerate(key_values):
                mask = pc.equal(key_indices, idx)
                self._add_chunk(chunks_data, keyval, batch.filter(mask))

        # The chunks_data will contain the partial aggregation results for each key value
        # For example it could look like {"Bank A": {"nulls": [1, 0, 3]}}
        # Now we need to reduce the partial aggregation results to get the final aggregation results
        # Which would lead to {"Bank A": {"nulls": 4}}
        yield self.reduce_aggregations(chunks_data)

    def multi_key_aggregation(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Compute the aggregation for multiple keys.

        In this case we will have to manually implement the grouping
        as we can't rely on dictionary encoding to find the unique values
        """
        # The most simple way to implement multi-key aggregation would be
        # to create a StructArray out of the aggregation keys
        # And then dictionary encode that array to find the unique values.
        # But dictionary encoding is currently not supported for StructArray
        #
        # Instead we will manually implement the aggregation in python,
        # it's much slower, but it shows how aggregation can be implemented.
        sorting_key = [(k, "ascending") for k in self.keys]
        chunks_data: dict[tuple, dict[str, list[Any]]] = {}
        for batch in self.child.batches():
            self._check_columns(batch)
            # First sort the data by the aggregation keys,
            # this makes sure that we can compute the aggregation in a single pass.
            # All the values for the same grouping key will be sequential
            # so until the key changes we can compute the aggregation.
            sorted_batch = batch.sort_by(sorting_key)
            key_rows = [
                tuple(_group_key(v) for v in row)
                for row in zip(*(sorted_batch.column(k).to_pylist() for k in self.keys))
            ]
            current_key = None
            chunk_start = 0
            for row_index, row_key in enumerate(key_rows):
                if row_index == 0:
                    current_key = row_key
                if row_key != current_key:
                    # the key has changed, this means we finished a chunk of
                    # rows with the same key, we can compute the aggregation for this chunk.
                    chunk = sorted_batch.slice(chunk_start, row_index - chunk_start)
                    self._add_chunk(chunks_data, current_key, chunk)
                    current_key = row_key
                    chunk_start = row_index

            # Compute the aggregation for the last chunk
            if key_rows:
                chunk = sorted_batch.slice(chunk_start, len(key_rows) - chunk_start)
                self._add_chunk(chunks_data, current_key, chunk)

        yield self.reduce_aggregations(chunks_data)

    def _check_columns(self, batch: pa.RecordBatch) -> None:
        """Verify the grouping and aggregated columns exist and record the key types."""
        if self._checked:
            return
        names = batch.schema.names
        required = list(self.keys) + [
            a.column for a in self.aggregations.values() if a.column is not None
        ]
        for name in required:
            if name not in names:
                raise ColumnNotFoundError(name, names)
        self._checked = True
        self._key_types = [batch.schema.field(k).type for k in self.keys]

    def _add_chunk(
        self, chunks_data: dict[Any, dict[str, list[Any]]], key: Any, chunk: pa.RecordBatch
    ) -> None:
        group = chunks_data.setdefault(key, {})
        for name, aggregation in self.aggregations.items():
            group.setdefault(name, []).append(aggregation.compute_chunk(chunk))

    def reduce_aggregations(
        self, chunks_data: dict[Any, dict[str, list[Any]]]
    ) -> pa.RecordBatch:
        """Reduce the partial aggregation results to the final aggregation results.

        Every strategy of aggregation will end up computing the aggregations
        for each chunk separately, this method will reduce the partial aggregation
        results to the final aggregation results.

        For example if we had 3 chunks and the chunks_data is::

            {"Bank A": {"nulls": [1, 0, 3]}}

        The result will be::

            {"Bank A": {"nulls": 4}}
        """
        key_data: list[list[Any]] = [[] for _ in self.keys]
        aggr_data: dict[str, list[Any]] = {k: [] for k in self.aggregations.keys()}
        # For each key value, invoke the reduce method of the aggregation.
        # In case of a single key
        #   keyvalue is "Bank A"
        # In case of multiple keys
        #   keyvalue is ("Bank A", 2016)
        for keyvalue, aggregated_values in chunks_data.items():
            if len(self.keys) > 1:
                for i, value in enumerate(keyvalue):
                    key_data[i].append(_key_value(value))
            elif self.keys:
                key_data[0].append(_key_value(keyvalue))
            for aggrname, aggregation in self.aggregations.items():
                aggr_data[aggrname].append(
                    aggregation.reduce(aggregated_values.get(aggrname, []))
                )

        columns = {}
        for i, key in enumerate(self.keys):
            key_type = self._key_types[i] if self._key_types else None
            columns[key] = pa.array(key_data[i], type=key_type)
        for aggrname, values in aggr_data.items():
            columns[aggrname] = _scalars_to_array(values)
        return pa.record_batch(columns)


# NaN is never equal to itself, all the NaN keys are grouped under this marker.
_NAN_KEY = object()


def _group_key(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        return _NAN_KEY
    return value


def _key_value(value: Any) -> Any:
    return math.nan if value is _NAN_KEY else value


def _scalars_to_array(values: list[Any]) -> pa.Array:
    """Build an array out of aggregation results.

    Results can be pyarrow scalars or python values,
    the type of the first non null scalar drives the array type.
    """
    arrow_type = None
    for value in values:
        if isinstance(value, pa.Scalar) and value.is_valid:
            arrow_type = value.type
            break
    pyvalues = [v.as_py() if isinstance(v, pa.Scalar) else v for v in values]
    return pa.array(pyvalues, type=arrow_type)


class Aggregation(abc.ABC):
    """Base class for aggregations.

    Every aggregation is expected to implement
    a method to compute any needed intermediate results
    on a single chunk of data and then provide a reduce method
    to combine the intermediate results into a final result.
    """

    def __init__(self, column: str) -> None:
        self.column = column

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.column})"

    __repr__ = __str__

    @abc.abstractmethod
    def compute_chunk(self, batch: pa.RecordBatch) -> Any: ...

    @abc.abstractmethod
    def reduce(self, chunks: list[Any]) -> pa.Scalar: ...


class SimpleAggregation(Aggregation):
    """Provide a base implementation for simple aggregations like min,max,sum.

    Simple aggregations are those where the function applied to compute
    intermediate results for a single chunk of data is the same as the function
    applied to combine the intermediate results into the final.

    For example ``sum([1, 2, 3])`` is the same as ``sum([sum([1, 2]), 3])``.
    """

    @abc.abstractmethod
    def _aggregate(self, data: Any) -> Any: ...

    def compute_chunk(self, batch: pa.RecordBatch) -> Any:
        return self._aggregate(batch.column(self.column))

    def reduce(self, chunks: list[Any]) -> pa.Scalar:
        valid = [c for c in chunks if c.is_valid]
        if not valid:
            return pa.scalar(None, type=chunks[0].type) if chunks else pa.scalar(None)
        return self._aggregate(pa.array([c.as_py() for c in valid], type=valid[0].type))


class SumAggregation(SimpleAggregation):
    """Compute the sum of an aggregated column."""

    def _aggregate(self, data: Any) -> Any:
        return pc.sum(data)


class MinAggregation(SimpleAggregation):
    """Compute the min of an aggregated column."""

    def _aggregate(self, data: Any) -> Any:
        return pc.min(data)


class MaxAggregation(SimpleAggregation):
    """Compute the max of an aggregated column."""

    def _aggregate(self, data: Any) -> Any:
        return pc.max(data)


class CountAggregation(Aggregation):
    """Compute the count of the non null values of an aggregated column.

    This is based on computing the counts for each intermediate batch
    and then sum them to compute the final result.
    """

    def compute_chunk(self, batch: pa.RecordBatch) -> int:
        """Compute the count of the column in a single batch."""
        return pc.count(batch.column(self.column)).as_py()

    def reduce(self, chunks: list[int]) -> pa.Scalar:
        """Sum the counts of all intermediate results to the final count."""
        return pa.scalar(sum(chunks), type=pa.int64())


class CountRowsAggregation(Aggregation):
    """Count the rows of each group, whatever their values are.

    This is the ``n()`` of the group, unlike :class:`CountAggregation`
    the rows where the column is null are counted too.
    The column is optional and only used for display purposes.
    """

    def __init__(self, column: str | None = None) -> None:
        self.column = column

    def compute_chunk(self, batch: pa.RecordBatch) -> int:
        return batch.num_rows

    def reduce(self, chunks: list[int]) -> pa.Scalar:
        return pa.scalar(sum(chunks), type=pa.int64())


class NullCountAggregation(Aggregation):
    """Count the null values of an aggregated column."""

    def compute_chunk(self, batch: pa.RecordBatch) -> int:
        return batch.column(self.column).null_count

    def reduce(self, chunks: list[int]) -> pa.Scalar:
        return pa.scalar(sum(chunks), type=pa.int64())


class MeanAggregation(Aggregation):
    """Compute the mean of an aggregated column.

    This is based by computing count and sum of the column
    for each intermediate batch and then dividing
    the sum of all intermediate results by the count
    of all intermediate results.

    The mean of a group with only null values is null.
    """

    def compute_chunk(self, batch: pa.RecordBatch) -> tuple[int, float]:
        """Compute the count and sum of the column in a single batch."""
        col = _as_float(batch.column(self.column))
        return (pc.count(col).as_py(), pc.sum(col).as_py() or 0.0)

    def reduce(self, chunks: list[tuple[int, float]]) -> pa.Scalar:
        """Compute the mean of the column from the intermediate sums and counts."""
        count = sum(chunk[0] for chunk in chunks)
        total = sum(chunk[1] for chunk in chunks)
        if count == 0:
            return pa.scalar(None, type=pa.float64())
        return pa.scalar(total / count, type=pa.float64())


class StddevAggregation(Aggregation):
    """Compute the sample standard deviation of an aggregated column.

    Each intermediate batch provides count, sum and sum of squares,
    which are enough to compute the variance of the whole group.
    Groups with less than two values have a null standard deviation.
    """

    def compute_chunk(self, batch: pa.RecordBatch) -> tuple[int, float, float]:
        col = _as_float(batch.column(self.column))
        return (
            pc.count(col).as_py(),
            pc.sum(col).as_py() or 0.0,
            pc.sum(pc.multiply(col, col)).as_py() or 0.0,
        )

    def reduce(self, chunks: list[tuple[int, float, float]]) -> pa.Scalar:
        count = sum(chunk[0] for chunk in chunks)
        if count < 2:
            return pa.scalar(None, type=pa.float64())
        total = sum(chunk[1] for chunk in chunks)
        squares = sum(chunk[2] for chunk in chunks)
        variance = (squares - total * total / count) / (count - 1)
        return pa.scalar(math.sqrt(max(variance, 0.0)), type=pa.float64())


def _as_float(values: pa.Array) -> pa.Array:
    """Cast numeric data to float64, NaN values are treated as missing."""
    values = pc.cast(values, pa.float64())
    return pc.if_else(pc.is_nan(values), pa.scalar(None, pa.float64()), values)
