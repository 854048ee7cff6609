"""The nullscope Compute Engine

The compute engine defines the in-memory
format for query plans and the plan nodes
supported.

The compute engine is tightly bound to Apache Arrow,
thus the engine will expect to always deal with
:class:`pyarrow.RecordBatch` and emit a new RecordBatch
as the result of the node execution.

This allows to easily build compute pipelines like::

    (RecordBatch)-->Node1--(RecordBatch)-->Node2--(RecordBatch)-->...

The query plan nodes themselves are in charge of their execution,
this keeps the behavior near to the node and thus makes easy to
know how a Node is actually executed without having to look around too much.

Building a query plan requires to combine the nodes that we want
to be executed starting with one or more ``DataSource`` nodes as the
leaf nodes of a query:

>>> import pyarrow as pa
>>> data = pa.table({
...    "servicer_name": pa.array(["Bank A", "Bank B", "", "Bank A"]),
...    "mths_remng": pa.array([12, None, 30, None])
... })
>>>
>>> from nullscope.compute import col, is_null, PyArrowTableDataSource, FilterNode
>>> # SELECT * FROM data WHERE mths_remng IS NULL
>>> query = FilterNode(
...     is_null(col("mths_remng")),
...     child=PyArrowTableDataSource(
...         data
...     )
... )
>>> for data in query.batches():
...     print(data)
pyarrow.RecordBatch
servicer_name: string
mths_remng: int64
----
servicer_name: ["Bank B","Bank A"]
mths_remng: [null,null]
"""

from .aggregate import (
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
from .base import ColumnRef, Literal, col, lit
from .cache import CacheNode
from .crosstab import CrossTabNode
from .datasources import CSVDataSource, ParquetDataSource, PyArrowTableDataSource
from .expressions import (
    FunctionCallExpression,
    IfElseExpression,
    IsEmptyExpression,
    IsNaNExpression,
    IsNotNullExpression,
    IsNullExpression,
    if_else,
    is_empty,
    is_nan,
    is_not_null,
    is_null,
)
from .filtering import FilterNode
from .missing import DropNullsNode, FillNullsNode, MissingSummaryNode
from .pagination import PaginateNode
from .selection import ProjectNode
from .sorting import SortNode

__all__ = (
    "CSVDataSource",
    "ParquetDataSource",
    "PyArrowTableDataSource",
    "FilterNode",
    "FunctionCallExpression",
    "IfElseExpression",
    "IsEmptyExpression",
    "IsNaNExpression",
    "IsNotNullExpression",
    "IsNullExpression",
    "if_else",
    "is_empty",
    "is_nan",
    "is_not_null",
    "is_null",
    "col",
    "lit",
    "ColumnRef",
    "Literal",
    "PaginateNode",
    "SortNode",
    "ProjectNode",
    "AggregateNode",
    "CountAggregation",
    "CountRowsAggregation",
    "MaxAggregation",
    "MeanAggregation",
    "MinAggregation",
    "NullCountAggregation",
    "StddevAggregation",
    "SumAggregation",
    "DropNullsNode",
    "FillNullsNode",
    "MissingSummaryNode",
    "CrossTabNode",
    "CacheNode",
)
