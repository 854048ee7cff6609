"""Contingency tables of two categorical columns.

A cross tabulation counts how many times each pair
of values of two columns appears in the data, which
is a quick way to see how two categorical variables
relate to each other. For example how missing remaining
months distribute across servicers::

    servicer_name_mths_missing | false | true
    -------------------------- | ----- | ----
    Bank A                     | 10    | 2
    Bank B                     | 7     | 0

Values are converted to text, as they become the names
of the columns of the resulting table, and nulls are
reported as ``"null"`` so that they are counted too.
"""

from collections import Counter

import pyarrow as pa

from .base import ColumnRef, QueryPlanNode


def _label(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class CrossTabNode(QueryPlanNode):
    """Compute the pair-wise frequency table of two columns.

    >>> import pyarrow as pa
    >>> from nullscope.compute import PyArrowTableDataSource
    >>> data = pa.record_batch({"city": ["Rome", "Rome", "Milan", None],
    ...                         "open": [True, False, True, True]})
    >>> next(CrossTabNode("city", "open", PyArrowTableDataSource(data)).batches())
    pyarrow.RecordBatch
    city_open: string
    false: int64
    true: int64
    ----
    city_open: ["Milan","Rome","null"]
    false: [0,1,0]
    true: [1,1,1]
    """

    def __init__(self, row_column: str, col_column: str, child: QueryPlanNode) -> None:
        """
        :param row_column: The column whose distinct values become the rows.
        :param col_column: The column whose distinct values become the columns.
        :param child: The node emitting the data to tabulate.

        :raises ValueError: when a value of ``col_column`` is the name of the label column.
        """
        self.row_column = row_column
        self.col_column = col_column
        self.child = child

    def __str__(self) -> str:
        return f"CrossTabNode({self.row_column}, {self.col_column}, {self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Count the pairs in every batch and emit the whole table at the end."""
        pairs: Counter[tuple[str, str]] = Counter()
        for batch in self.child.batches():
            rows = ColumnRef(self.row_column).apply(batch).to_pylist()
            cols = ColumnRef(self.col_column).apply(batch).to_pylist()
            pairs.update((_label(r), _label(c)) for r, c in zip(rows, cols))

        row_labels = sorted({r for r, _ in pairs})
        col_labels = sorted({c for _, c in pairs})
        label_column = f"{self.row_column}_{self.col_column}"
        if label_column in col_labels:
            raise ValueError(
                f"Can't tabulate {self.col_column!r}, its value {label_column!r} "
                "clashes with the name of the column holding the row labels"
            )
        data = {label_column: pa.array(row_labels, type=pa.string())}
        for c in col_labels:
            data[c] = pa.array([pairs[(r, c)] for r in row_labels], type=pa.int64())
        yield pa.record_batch(data)
