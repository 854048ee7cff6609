"""Query Plan nodes that load data

The datasource nodes are expected to fetch the data from some source,
convert it into the format accepted by the compute engine and forward it
to the next node in the plan.

They are used to do things like loading
data from CSV files or equivalent operations.

Missing values in text files are usually represented
by a placeholder, an empty field or a token like ``NA``.
The :class:`CSVDataSource` accepts the tokens that
should be read as nulls, so that the rest of the plan
can deal with actual null values::

    CSVDataSource("loans.csv", null_values="")
"""

import logging
from abc import abstractmethod

import pyarrow as pa
import pyarrow.csv
import pyarrow.parquet

from .base import QueryPlanNode

logger = logging.getLogger(__name__)


class DataSourceNode(QueryPlanNode):
    """Base class for nodes that load data from a source."""

    @abstractmethod
    def poll_schema(self) -> pa.Schema:
        """Poll the schema of the data source without loading its content."""
        ...


class CSVDataSource(DataSourceNode):
    """Load data from a CSV file.

    Given a local CSV file path, load the content,
    convert it into Arrow format, and emit it
    for the next nodes of the query plan to consume.

    When ``null_values`` are provided, every entry matching
    one of them becomes a null, whatever the type of the column.
    Text columns included, so an empty ``servicer_name`` is
    reported by ``IsNullExpression`` like an empty ``loan_age`` would.
    When they are not provided, the default Arrow behaviour applies:
    numeric columns get nulls for the usual tokens (``""``, ``NA``, ``NULL``...)
    while text columns keep them as plain strings.
    """

    def __init__(
        self,
        filename: str,
        block_size: int | None = None,
        header: bool = True,
        infer_schema: bool = True,
        null_values: str | list[str] | None = None,
    ) -> None:
        """
        :param filename: The path of the local CSV file.
        :param block_size: How big to make batches of data,
                           Influences how many batches will be produced
        :param header: If the first line of the file holds the column names,
                       otherwise columns are named ``f0``, ``f1``, ...
        :param infer_schema: Detect the type of the columns,
                             when disabled every column is read as a string.
        :param null_values: The token, or list of tokens, to read as null.
        """
        self.filename = filename
        self.block_size = block_size
        self.header = header
        self.infer_schema = infer_schema
        if isinstance(null_values, str):
            null_values = [null_values]
        self.null_values = null_values

    def __str__(self) -> str:
        options = ""
        if not self.header:
            options += ", header=False"
        if not self.infer_schema:
            options += ", infer_schema=False"
        if self.null_values is not None:
            options += f", null_values={self.null_values}"
        return f"CSVDataSource({self.filename}, block_size={self.block_size}{options})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Open CSV file and emit the batches."""
        logger.debug("Reading %s", self)
        with self._open(self.block_size) as reader:
            for batch in reader:
                yield batch

    def poll_schema(self) -> pa.Schema:
        """Poll the schema of the CSV file."""
        with self._open() as reader:
            return reader.schema

    def _open(self, block_size: int | None = None) -> pa.csv.CSVStreamingReader:
        read_options = pa.csv.ReadOptions(
            block_size=block_size, autogenerate_column_names=not self.header
        )
        return pa.csv.open_csv(
            self.filename,
            read_options=read_options,
            convert_options=self._convert_options(read_options),
        )

    def _convert_options(self, read_options: pa.csv.ReadOptions) -> pa.csv.ConvertOptions:
        options = {}
        if self.null_values is not None:
            options.update(
                null_values=self.null_values,
                strings_can_be_null=True,
                quoted_strings_can_be_null=True,
            )
        if not self.infer_schema:
            # Arrow has no switch to disable inference,
            # so we look up the column names and declare them all as strings.
            with pa.csv.open_csv(self.filename, read_options=read_options) as reader:
                names = reader.schema.names
            options["column_types"] = {name: pa.string() for name in names}
        return pa.csv.ConvertOptions(**options)


class ParquetDataSource(DataSourceNode):
    """Load data from a Parquet file.

    Given a local parquet file path, load the content,
    convert it into Arrow format, and emit it
    for the next nodes of the query plan to consume.
    """

    def __init__(self, filename: str, batch_size: int | None = None) -> None:
        """
        :param filename: The path of the local parquet file.
        :param batch_size: How big to make batches of data,
                           Influences how many batches will be produced
        """
        self.filename = filename
        self.batch_size = batch_size or 65536

    def __str__(self) -> str:
        return f"ParquetDataSource({self.filename}, batch_size={self.batch_size})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Open Parquet file and emit the batches."""
        logger.debug("Reading %s", self)
        with pa.parquet.ParquetFile(self.filename) as reader:
            yield from reader.iter_batches(batch_size=self.batch_size)

    def poll_schema(self) -> pa.Schema:
        """Poll the schema of the Parquet file."""
        with pa.parquet.ParquetFile(self.filename) as reader:
            return reader.schema_arrow


class PyArrowTableDataSource(DataSourceNode):
    """Load data from an in-memory pyarrow.Table or pyarrow.RecordBatch.

    Given a :class:`pyarrow.Table` or `pyarrow.RecordBatch` object,
    allow to use its data in a query plan.
    """

    def __init__(self, table: pa.Table | pa.RecordBatch) -> None:
        """
        :param table: The table or recordbatch with the data to read.
        """
        self.table = table
        self.is_recordbatch = isinstance(table, pa.RecordBatch)

    def __str__(self) -> str:
        return f"PyArrowTableDataSource(columns={self.table.column_names}, rows={self.table.num_rows})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Emit the data contained in the Table for consumption by other node."""
        if self.is_recordbatch:
            yield self.table
        elif self.table.num_rows == 0:
            # Still emit one batch, so consumers know the schema.
            yield pa.RecordBatch.from_pylist([], schema=self.table.schema)
        else:
            yield from self.table.to_batches()

    def poll_schema(self) -> pa.Schema:
        """Poll the schema of the Table."""
        return self.table.schema
