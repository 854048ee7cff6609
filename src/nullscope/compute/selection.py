"""Query plan nodes that implement projection of columns.

A common request in queries is to select specific columns
and project new columns based on expressions.
An example is the ``SELECT`` clause in SQL queries.

Projecting a column with the name of an existing one
replaces it, which is how missing entries are usually
patched with a replacement value.

This module implements the basic projection capabilities.
"""

import pyarrow as pa

from .base import QueryPlanNode
from .expressions import Expression


class ProjectNode(QueryPlanNode):
    """Project data by selecting specific columns and computing expressions.

    The projection expects a list of column names to select and a dictionary
    of column names and expressions to project new columns.

    >>> import pyarrow as pa
    >>> from nullscope.compute import col, lit, is_empty, if_else, PyArrowTableDataSource
    >>> data = pa.record_batch({"servicer_name": ["A", "", "B"], "loan_age": [1, 2, 3]})
    >>> next(ProjectNode(None, {"servicer_name": if_else(is_empty(col("servicer_name")),
    ...                                                   lit("Unknown"), col("servicer_name"))},
    ...                  PyArrowTableDataSource(data)).batches())
    pyarrow.RecordBatch
    servicer_name: string
    loan_age: int64
    ----
    servicer_name: ["A","Unknown","B"]
    loan_age: [1,2,3]
    """

    def __init__(
        self,
        select: list[str] | None,
        project: dict[str, Expression] | None,
        child: QueryPlanNode,
    ) -> None:
        """
        :param select: The list of column names to select.
                       ``None`` means select all columns.
                       ``[]`` means select only the projected columns.
        :param project: The dict {name: Expression} to project new columns.
        :param child: The node emitting the data to be projected.
        """
        self.select = select
        self.project = project or {}
        self.child = child

        if self.select is None:
            # No selection was provided, we will select all columns
            self.restrict_columns = None
        else:
            # This is the list of columns we want to keep,
            # in case select=[] it will only provide the project columns.
            self.restrict_columns = self.select + [
                name for name in self.project.keys() if name not in self.select
            ]

    def __str__(self) -> str:
        return f"ProjectNode(select={self.select}, project={self.project}, child={self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Apply the projection to the child node.

        For each recordbatch yielded by the child node,
        sequentially apply the expressions to project new columns
        and then select the requested columns.

        Expressions are applied in order, so each of them
        can refer to the columns projected before it.
        """
        for batch in self.child.batches():
            for name, expr in self.project.items():
                values = expr.apply(batch)
                if isinstance(values, pa.Scalar):
                    values = pa.repeat(values, batch.num_rows)
                if name in batch.schema.names:
                    idx = batch.schema.get_field_index(name)
                    batch = batch.set_column(idx, name, values)
                else:
                    batch = batch.append_column(name, values)

            if self.restrict_columns is not None:
                batch = batch.select(self.restrict_columns)

            yield batch
