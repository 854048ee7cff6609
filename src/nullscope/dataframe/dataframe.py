"""The Dataframe object itself."""
from typing import Any, Self

import pyarrow as pa

from ..compute import (
  AggregateNode,
  CacheNode,
  CountAggregation,
  CountRowsAggregation,
  CrossTabNode,
  CSVDataSource,
  DropNullsNode,
  FillNullsNode,
  FilterNode,
  MaxAggregation,
  MeanAggregation,
  MinAggregation,
  MissingSummaryNode,
  PaginateNode,
  ParquetDataSource,
  ProjectNode,
  PyArrowTableDataSource,
  SortNode,
  StddevAggregation,
)
from ..compute.aggregate import Aggregation
from ..compute.base import QueryPlanNode
from ..compute.expressions import Expression
from ..config import Settings
from ..errors import ColumnNotFoundError
from ..utils import schema as schema_utils
from ..utils import tabulate


class Dataframe:
  """Data structure that handles data in rows and columns.

  The Dataframe object allows to represent in-memory data
  and perform transformations over it.

  The nullscope dataframe object is lazy, which means that
  any transformation or analysis will be applied only when
  an action like ``.collect()`` or ``.count()`` will be invoked
  and no data is kept in memory until that moment (unless it already was).

  As every action executes the whole plan again, Dataframes
  that are going to be inspected multiple times can be
  cached with ``.cache()``, so that their data is computed only once.
  """
  def __init__(self, node_or_table: QueryPlanNode|pa.Table|pa.RecordBatch) -> None:
    """
    :param node_or_table: A compute engine node expected to emit
                          the data for the dataframe or a `pyarrow.Table`.
    """
    if isinstance(node_or_table, (pa.Table, pa.RecordBatch)):
      node_or_table = PyArrowTableDataSource(node_or_table)

    if not isinstance(node_or_table, QueryPlanNode):
      raise ValueError("Invalid input, expected a QueryPlanNode or a PyArrow Table")

    self.node = node_or_table

  def __str__(self) -> str:
    return f"Dataframe({self.node})"

  __repr__ = __str__

  @classmethod
  def open_csv(
    cls,
    filename: str,
    header: bool = True,
    infer_schema: bool = True,
    null_values: str|list[str]|None = None,
    block_size: int|None = None,
  ) -> Self:
    """Open a CSV file and create a Dataframe out of its data.

    :param filename: The path to a local CSV file.
    :param header: If the first line of the file holds the column names.
    :param infer_schema: Detect the column types, otherwise read them all as text.
    :param null_values: The token, or tokens, that denote a missing entry.
    :param block_size: How big each batch of data read from the file should be.
    """
    return cls(CSVDataSource(filename, block_size=block_size, header=header,
                             infer_schema=infer_schema, null_values=null_values))

  @classmethod
  def open_parquet(cls, filename: str) -> Self:
    """Open a Parquet file and create a Dataframe out of its data."""
    return cls(ParquetDataSource(filename))

  # Transformations

  def filter(self, expression: Expression) -> Self:
    """Apply a filter to the data and return a new Dataframe.

    The returned dataframe will only contain the data that
    matches the filter predicate.

    :param expression: The expression representing the predicate.
                       for example `is_null(col("mths_remng"))`.
    """
    return self.__class__(FilterNode(expression, self.node))

  where = filter

  def select(self, *columns: str) -> Self:
    """Keep only the provided columns."""
    return self.__class__(ProjectNode(list(columns), None, self.node))

  def with_column(self, name: str, expression: Expression) -> Self:
    """Add a column computed by the expression, or replace it if it exists.

    Replacing a column is the way to patch its values, for example
    to replace the empty entries of a text column::

      df.with_column("servicer_name", if_else(is_empty(col("servicer_name")),
                                              lit("Unknown"), col("servicer_name")))
    """
    return self.__class__(ProjectNode(None, {name: expression}, self.node))

  def dropna(
    self,
    how: str = "any",
    subset: list[str]|None = None,
    min_non_nulls: int|None = None,
  ) -> Self:
    """Drop the rows with missing entries.

    :param how: ``"any"`` drops the rows that have a missing entry,
                ``"all"`` drops the rows where every entry is missing.
    :param subset: Only look for missing entries in these columns.
    :param min_non_nulls: Drop the rows with less than this number of
                          non missing entries, overrides ``how``.
    """
    return self.__class__(DropNullsNode(self.node, how=how, subset=subset,
                                        min_non_nulls=min_non_nulls))

  na_omit = dropna

  def fillna(self, value: Any, subset: list[str]|None = None) -> Self:
    """Replace the missing entries with a value.

    :param value: A value used for all the columns of a compatible type,
                  or a ``{column: value}`` dictionary.
    :param subset: Only fill these columns, when value is not a dictionary.
    """
    return self.__class__(FillNullsNode(self.node, value, subset=subset))

  def sort(self, *keys: str, descending: bool|list[bool] = False) -> Self:
    """Sort the rows by the provided columns."""
    if isinstance(descending, bool):
      descending = [descending] * len(keys)
    return self.__class__(SortNode(list(keys), descending, self.node))

  def limit(self, n: int) -> Self:
    """Keep only the first ``n`` rows."""
    return self.__class__(PaginateNode(0, n, self.node))

  def group_by(self, *keys: str) -> "GroupedData":
    """Group the rows by the values of the provided columns.

    The groups can then be aggregated with :meth:`GroupedData.agg`.
    """
    return GroupedData(self, list(keys))

  def crosstab(self, col1: str, col2: str) -> Self:
    """Pair-wise frequency table of two columns.

    The first column of the result holds the values of ``col1``,
    there is then a column with the counts for each value of ``col2``.
    """
    return self.__class__(CrossTabNode(col1, col2, self.node))

  def missing_summary(self) -> Self:
    """How many null, NaN and empty string entries each column has."""
    return self.__class__(MissingSummaryNode(self.node))

  def describe(self, *columns: str) -> Self:
    """Summary statistics of the columns.

    Computes ``count``, ``mean``, ``stddev``, ``min`` and ``max``
    of the provided columns, or of all the numeric columns when none is provided.
    Values are reported as text, so that columns of any type fit in the same table.
    Statistics that can't be computed, like the mean of a text column, are null.
    """
    schema = self.schema
    if not columns:
      columns = [f.name for f in schema if _is_numeric(f.type)]
    summary = ["count", "mean", "stddev", "min", "max"]
    data = {"summary": pa.array(summary, type=pa.string())}
    if not columns:
      return self.__class__(pa.table(data))

    aggregations: dict[str, Aggregation] = {}
    for name in columns:
      if name not in schema.names:
        raise ColumnNotFoundError(name, schema.names)
      aggregations[f"count:{name}"] = CountAggregation(name)
      if _is_numeric(schema.field(name).type):
        aggregations[f"mean:{name}"] = MeanAggregation(name)
        aggregations[f"stddev:{name}"] = StddevAggregation(name)
      aggregations[f"min:{name}"] = MinAggregation(name)
      aggregations[f"max:{name}"] = MaxAggregation(name)

    stats = next(AggregateNode([], aggregations, self.node).batches()).to_pylist()[0]
    for name in columns:
      values = [stats.get(f"{stat}:{name}") for stat in summary]
      data[name] = pa.array([None if v is None else str(v) for v in values], type=pa.string())
    return self.__class__(pa.table(data))

  # Actions

  def collect(self) -> Self:
    """Collect all data of the dataframe in memory.

    Returns a new Dataframe that has all data from the
    previous dataframe eagerly loaded in memory.
    """
    return self.__class__(self.to_arrow())

  def to_arrow(self) -> pa.Table:
    """Collect all the data and return a pyarrow.Table"""
    batches = list(self.node.batches())
    if not batches:
      schema = self.node.poll_schema()
      if schema is None:
        return pa.table({})
      return pa.Table.from_batches([], schema=schema)
    return pa.Table.from_batches(batches)

  def to_pylist(self) -> list[dict[str, Any]]:
    """Collect all the data as a list of rows."""
    return self.to_arrow().to_pylist()

  def count(self) -> int:
    """Number of rows of the Dataframe."""
    return sum(batch.num_rows for batch in self.node.batches())

  def show(self, n: int|None = None) -> None:
    """Print the first ``n`` rows as a text table."""
    if n is None:
      n = _default_max_rows()
    # Take one more row, so that tabulate knows there are more.
    print(tabulate.tabulate(self.limit(n + 1).to_arrow(), max_rows=n))

  @property
  def schema(self) -> pa.Schema:
    """Names and types of the columns.

    Sources, and the plans that keep their columns, know their
    schema upfront. For other plans it's the schema of the first emitted batch.
    """
    schema = self.node.poll_schema()
    if schema is not None:
      return schema
    batches = self.node.batches()
    try:
      first = next(batches, None)
    finally:
      batches.close()
    if first is None:
      return pa.schema([])
    return first.schema

  @property
  def columns(self) -> list[str]:
    """Names of the columns."""
    return self.schema.names

  def print_schema(self) -> None:
    """Print the names and types of the columns as a tree."""
    print(schema_utils.format_schema(self.schema))

  # Caching

  def cache(self) -> Self:
    """Retain the data of the Dataframe after it's computed the first time.

    The data is not computed immediately, it will be retained
    the first time an action consumes all of it. When a session
    is active the Dataframe is tracked by it, see :func:`nullscope.session.clear_cache`.
    """
    if not isinstance(self.node, CacheNode):
      self.node = CacheNode(self.node)
    from .. import session
    active = session.current_session()
    if active is not None:
      active.register_cached(self)
    return self

  persist = cache

  def unpersist(self) -> Self:
    """Release the retained data and stop caching the Dataframe."""
    if isinstance(self.node, CacheNode):
      self.node.release()
      self.node = self.node.child
    return self

  @property
  def is_cached(self) -> bool:
    return isinstance(self.node, CacheNode)


class GroupedData:
  """Rows of a Dataframe grouped by the values of some columns."""
  def __init__(self, df: Dataframe, keys: list[str]) -> None:
    self.df = df
    self.keys = keys

  def __str__(self) -> str:
    return f"GroupedData(keys={self.keys}, {self.df})"

  def agg(self, **aggregations: Aggregation) -> Dataframe:
    """Compute aggregations for each group.

    Each keyword argument provides the name of the
    resulting column and the aggregation to compute::

      df.group_by("servicer_name").agg(nulls=CountRowsAggregation("servicer_name"))
    """
    if not aggregations:
      raise ValueError("At least one aggregation must be provided")
    return self.df.__class__(AggregateNode(self.keys, aggregations, self.df.node))

  def count(self) -> Dataframe:
    """Number of rows of each group, in a column named ``count``."""
    return self.agg(count=CountRowsAggregation())


def _is_numeric(arrow_type: pa.DataType) -> bool:
  return (pa.types.is_integer(arrow_type) or pa.types.is_floating(arrow_type)
          or pa.types.is_decimal(arrow_type))


def _default_max_rows() -> int:
  from .. import session
  active = session.current_session()
  if active is not None:
    return active.settings.max_rows
  return Settings().max_rows
