"""Query plan nodes dealing with missing data.

Real world datasets frequently have missing entries,
once they were located, the common ways to deal with them
are to drop the rows that are incomplete or to replace
the missing entries with a value.

* :class:`DropNullsNode` removes the rows with missing entries.
* :class:`FillNullsNode` replaces the missing entries with a value.
* :class:`MissingSummaryNode` reports how many entries are missing
  for each column, which is usually the first step to decide
  which of the two should be applied.

For floating point columns a ``NaN`` is considered missing
as much as a null, while for text columns only nulls are.
To treat empty strings as missing values, read the data
providing ``""`` as a null token (see :class:`nullscope.compute.CSVDataSource`).

>>> import pyarrow as pa
>>> from nullscope.compute import PyArrowTableDataSource
>>> data = pa.record_batch({"loan_age": [1, None, 3], "mths_remng": [None, None, 7]})
>>> next(DropNullsNode(PyArrowTableDataSource(data), how="all").batches())
pyarrow.RecordBatch
loan_age: int64
mths_remng: int64
----
loan_age: [1,3]
mths_remng: [null,7]
"""

import numbers
from typing import Any

import pyarrow as pa
import pyarrow.compute as pc

from ..errors import ColumnNotFoundError
from .base import QueryPlanNode

__all__ = ("DropNullsNode", "FillNullsNode", "MissingSummaryNode")


def _resolve_columns(batch: pa.RecordBatch, subset: list[str] | None) -> list[str]:
    """Columns of the batch that are part of the subset, all of them when no subset."""
    if subset is None:
        return batch.schema.names
    for name in subset:
        if name not in batch.schema.names:
            raise ColumnNotFoundError(name, batch.schema.names)
    return list(subset)


def missing_mask(values: pa.Array) -> pa.Array:
    """Boolean array that is true where the entry is missing.

    Missing means null, or NaN for floating point values.
    """
    mask = pc.is_null(values)
    if pa.types.is_floating(values.type):
        mask = pc.or_(mask, pc.fill_null(pc.is_nan(values), False))
    return mask


class DropNullsNode(QueryPlanNode):
    """Drop the rows that have missing entries.

    Which rows are dropped depends on the options:

    * ``how="any"`` drops a row if any of the inspected entries is missing.
    * ``how="all"`` drops a row only if all the inspected entries are missing.
    * ``min_non_nulls=N`` drops the rows that have less than ``N``
      entries that are not missing, this takes precedence over ``how``.

    The ``subset`` restricts the inspected entries to a list of columns,
    by default all columns are inspected.
    """

    def __init__(
        self,
        child: QueryPlanNode,
        how: str = "any",
        subset: list[str] | None = None,
        min_non_nulls: int | None = None,
    ) -> None:
        """
        :param child: The node emitting the data to drop rows from.
        :param how: ``"any"`` or ``"all"``.
        :param subset: The columns to inspect, ``None`` means all of them.
        :param min_non_nulls: Minimum number of non missing entries a row needs to be kept.
        """
        if how not in ("any", "all"):
            raise ValueError(f"how must be 'any' or 'all', got {how!r}")
        if min_non_nulls is not None and min_non_nulls < 0:
            raise ValueError(f"min_non_nulls must not be negative, got {min_non_nulls}")
        if isinstance(subset, str):
            subset = [subset]
        self.child = child
        self.how = how
        self.subset = list(subset) if subset is not None else None
        self.min_non_nulls = min_non_nulls

    def __str__(self) -> str:
        return (
            f"DropNullsNode(how={self.how!r}, subset={self.subset}, "
            f"min_non_nulls={self.min_non_nulls}, child={self.child})"
        )

    def poll_schema(self) -> pa.Schema | None:
        return self.child.poll_schema()

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Count the non missing entries of each row and keep the rows that have enough.

        The three policies all boil down to a threshold on how
        many entries of the row are not missing:
        ``any`` requires all of them, ``all`` requires at least one.
        """
        for batch in self.child.batches():
            columns = _resolve_columns(batch, self.subset)
            if not columns:
                yield batch
                continue

            present = pa.array([0] * batch.num_rows, type=pa.int64())
            for name in columns:
                is_present = pc.invert(missing_mask(batch.column(name)))
                present = pc.add(present, pc.cast(is_present, pa.int64()))

            if self.min_non_nulls is not None:
                threshold = self.min_non_nulls
            elif self.how == "any":
                threshold = len(columns)
            else:
                threshold = 1
            yield batch.filter(pc.greater_equal(present, threshold))


class FillNullsNode(QueryPlanNode):
    """Replace missing entries with a value.

    The value can be a single scalar, in which case
    it's used for all the columns whose type is compatible:

    * booleans fill boolean columns.
    * integers fill integer and floating point columns.
    * floats fill floating point columns, and integer
      columns too when the float is an integral number.
    * strings fill text columns.

    Or it can be a dictionary ``{column: value}`` to provide
    a value for each column. In that case the value is converted
    to the type of the column and an error is raised if
    that is not possible.

    >>> import pyarrow as pa
    >>> from nullscope.compute import PyArrowTableDataSource
    >>> data = pa.record_batch({"act_endg_upb": [1.5, None], "servicer_name": ["A", None]})
    >>> next(FillNullsNode(PyArrowTableDataSource(data), 12345).batches())
    pyarrow.RecordBatch
    act_endg_upb: double
    servicer_name: string
    ----
    act_endg_upb: [1.5,12345]
    servicer_name: ["A",null]
    """

    def __init__(
        self,
        child: QueryPlanNode,
        value: Any,
        subset: list[str] | None = None,
    ) -> None:
        """
        :param child: The node emitting the data to fill.
        :param value: The replacement value or a ``{column: value}`` dictionary.
        :param subset: When ``value`` is a scalar, the columns to consider.
        """
        if value is None:
            raise ValueError("A fill value must be provided")
        if isinstance(value, dict):
            if not value:
                raise ValueError("The dictionary of fill values is empty")
            if any(v is None for v in value.values()):
                raise ValueError("Fill values can't be None")
        if isinstance(subset, str):
            subset = [subset]
        self.child = child
        self.value = value
        self.subset = list(subset) if subset is not None else None

    def __str__(self) -> str:
        return f"FillNullsNode(value={self.value!r}, subset={self.subset}, child={self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Replace the missing entries of each batch emitted by the child."""
        for batch in self.child.batches():
            for name, value in self._fill_values(batch).items():
                idx = batch.schema.get_field_index(name)
                batch = batch.set_column(idx, name, self._fill(batch.column(idx), value))
            yield batch

    def _fill_values(self, batch: pa.RecordBatch) -> dict[str, Any]:
        """Which value to use for each column that has to be filled."""
        if isinstance(self.value, dict):
            _resolve_columns(batch, list(self.value.keys()))
            return dict(self.value)
        return {
            name: self.value
            for name in _resolve_columns(batch, self.subset)
            if _is_compatible(batch.schema.field(name).type, self.value)
        }

    def _fill(self, values: pa.Array, value: Any) -> pa.Array:
        if pa.types.is_null(values.type):
            return pa.repeat(pa.scalar(value), len(values))
        if pa.types.is_integer(values.type) and isinstance(value, float) and value.is_integer():
            value = int(value)
        try:
            fill = pa.scalar(value, type=values.type)
        except (pa.ArrowInvalid, pa.ArrowTypeError, TypeError, OverflowError) as e:
            raise ValueError(
                f"Can't fill a column of type {values.type} with {value!r}"
            ) from e
        filled = pc.fill_null(values, fill)
        if pa.types.is_floating(values.type):
            filled = pc.if_else(pc.is_nan(filled), fill, filled)
        return filled


def _is_compatible(arrow_type: pa.DataType, value: Any) -> bool:
    """If a scalar fill value is meant for columns of the given type."""
    if isinstance(value, bool):
        return pa.types.is_boolean(arrow_type)
    if isinstance(value, numbers.Integral):
        return pa.types.is_integer(arrow_type) or pa.types.is_floating(arrow_type)
    if isinstance(value, numbers.Real):
        if pa.types.is_floating(arrow_type):
            return True
        return pa.types.is_integer(arrow_type) and float(value).is_integer()
    if isinstance(value, str):
        return pa.types.is_string(arrow_type) or pa.types.is_large_string(arrow_type)
    return False


SUMMARY_SCHEMA = pa.schema(
    [
        ("column", pa.string()),
        ("type", pa.string()),
        ("rows", pa.int64()),
        ("nulls", pa.int64()),
        ("nans", pa.int64()),
        ("empty_strings", pa.int64()),
    ]
)


class MissingSummaryNode(QueryPlanNode):
    """Report how many entries are missing for each column.

    Consumes all the data of the child and emits a single
    batch with one row for each column of the data::

        column, type, rows, nulls, nans, empty_strings

    ``nans`` can only be non zero for floating point columns
    and ``empty_strings`` only for text columns.
    """

    def __init__(self, child: QueryPlanNode) -> None:
        """
        :param child: The node emitting the data to inspect.
        """
        self.child = child

    def __str__(self) -> str:
        return f"MissingSummaryNode({self.child})"

    def poll_schema(self) -> pa.Schema:
        return SUMMARY_SCHEMA

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Count the missing entries of every column.

        When the child emits no data at all, the columns are
        taken from its schema and reported with zero rows.
        """
        schema = None
        rows = 0
        counts: dict[str, list[int]] = {}
        for batch in self.child.batches():
            if schema is None:
                schema = batch.schema
                counts = {name: [0, 0, 0] for name in schema.names}
            rows += batch.num_rows
            for name in schema.names:
                values = batch.column(name)
                counts[name][0] += values.null_count
                if pa.types.is_floating(values.type):
                    counts[name][1] += pc.sum(pc.is_nan(values)).as_py() or 0
                elif pa.types.is_string(values.type) or pa.types.is_large_string(values.type):
                    counts[name][2] += pc.sum(pc.equal(values, "")).as_py() or 0

        if schema is None:
            schema = self.child.poll_schema()
            counts = {name: [0, 0, 0] for name in schema.names} if schema is not None else {}

        fields = schema if schema is not None else []
        yield pa.record_batch(
            {
                "column": pa.array([f.name for f in fields], type=pa.string()),
                "type": pa.array([str(f.type) for f in fields], type=pa.string()),
                "rows": pa.array([rows] * len(counts), type=pa.int64()),
                "nulls": pa.array([c[0] for c in counts.values()], type=pa.int64()),
                "nans": pa.array([c[1] for c in counts.values()], type=pa.int64()),
                "empty_strings": pa.array([c[2] for c in counts.values()], type=pa.int64()),
            },
            schema=SUMMARY_SCHEMA,
        )
