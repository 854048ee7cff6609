"""Retain the data computed by a query plan.

Query plans are lazy, every time their data is requested
the whole plan is executed again: files are read again,
filters are applied again and so on.

When the same data is going to be inspected multiple times,
like counting rows after trying multiple filters on the
same loaded dataset, it's convenient to keep in memory
the result of the plan the first time it gets computed
and then reuse it.

The :class:`CacheNode` does so, the first time its
batches are fully consumed they are retained, and the
following executions are served from memory without
involving the child node at all.

Once released, the node forwards the batches of its child
without retaining them anymore.
"""

import logging

import pyarrow as pa

from .base import QueryPlanNode

logger = logging.getLogger(__name__)


class CacheNode(QueryPlanNode):
    """Keep in memory the batches of the child node after their first execution.

    If the batches are only partially consumed, for example
    because only the first rows were requested, nothing is retained
    as the data would be incomplete.

    >>> import pyarrow as pa
    >>> from nullscope.compute import PyArrowTableDataSource
    >>> cached = CacheNode(PyArrowTableDataSource(pa.table({"loan_age": [1, 2]})))
    >>> cached.is_materialized
    False
    >>> sum(b.num_rows for b in cached.batches())
    2
    >>> cached.is_materialized
    True
    >>> cached.release()
    >>> cached.is_materialized
    False
    """

    def __init__(self, child: QueryPlanNode) -> None:
        """
        :param child: The node whose data has to be retained.
        """
        self.child = child
        self._batches = None
        self.released = False

    def __str__(self) -> str:
        return f"CacheNode(materialized={self.is_materialized}, {self.child})"

    def poll_schema(self) -> pa.Schema | None:
        if self._batches:
            return self._batches[0].schema
        return self.child.poll_schema()

    @property
    def is_materialized(self) -> bool:
        """If the data was already computed and is retained in memory."""
        return self._batches is not None

    @property
    def num_rows(self) -> int | None:
        """Number of retained rows, ``None`` when nothing is retained."""
        if self._batches is None:
            return None
        return sum(b.num_rows for b in self._batches)

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Emit the retained batches or compute them from the child.

        Batches are forwarded as soon as the child emits them,
        and only once the child is exhausted they are retained.
        """
        if self._batches is not None:
            logger.debug("Serving %d cached batches", len(self._batches))
            yield from self._batches
            return
        if self.released:
            yield from self.child.batches()
            return

        collected = []
        for batch in self.child.batches():
            collected.append(batch)
            yield batch

        if self.released:
            return
        self._batches = collected
        logger.info("Cached %d rows of %s", self.num_rows, self.child)

    def release(self) -> None:
        """Forget the retained data and stop retaining it.

        Plans built on top of the node before it was released keep
        working, but they recompute the data of the child every time.
        """
        self.released = True
        if self._batches is not None:
            logger.info("Released %d cached rows of %s", self.num_rows, self.child)
        self._batches = None
