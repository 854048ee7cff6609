"""Format tabular data into a text table for print.

the `tabulate` function takes a `pyarrow.RecordBatch` and formats it into a text table.
It will truncate long strings, format floats to 2 decimal places, show missing
values as ``null`` and limit the number of rows to display.
The function is used to display the content of Dataframes and reports.

Example:

    >>> import pyarrow as pa
    >>> data = {
    ...     "servicer_name": ["Bank A", "", "Bank B"],
    ...     "loan_age": [8, None, 7],
    ...     "act_endg_upb": [66.5, 38.72, None],
    ... }
    >>> table = pa.RecordBatch.from_pydict(data)
    >>> print(tabulate(table))
    servicer_name | loan_age | act_endg_upb
    ------------- | -------- | ------------
    Bank A        | 8        | 66.50
                  | null     | 38.72
    Bank B        | 7        | null
"""

from typing import Any

from pyarrow import RecordBatch, Table


def tabulate(recordbatch: RecordBatch | Table, max_rows: int = 20) -> str:
    """Format a RecordBatch into a text table.

    Will produce a string like::

        servicer_name | nulls
        ------------- | -----
        Bank A        | 12
        Bank B        | 3
    """
    cols = recordbatch.column_names
    rows = [
        [format_value(row[c]) for c in cols]
        for row in recordbatch.slice(length=max_rows).to_pylist()
    ]

    colsizes = compute_max_colsize(cols, rows)
    header = [maketablerow(cols, colsizes=colsizes)]
    separator = [maketablerow(["-"] * len(cols), colsizes=colsizes, fillvalue="-")]
    textrows = [maketablerow(row, colsizes=colsizes) for row in rows]

    table = "\n".join(row.rstrip() for row in header + separator + textrows)
    if recordbatch.num_rows > max_rows:
        table += f"\n... and {recordbatch.num_rows - max_rows} more rows"
    return table


def compute_max_colsize(cols: list[str], rows: list[list[str]]) -> list[int]:
    """Compute the maximum size of each column in a table."""
    return [
        max([len(row[colidx]) for row in rows] + [len(cols[colidx])])
        for colidx, _ in enumerate(cols)
    ]


def maketablerow(cols: list[str], colsizes: list[int], fillvalue: str = " ") -> str:
    """Make a table row with the given column sizes."""
    return " | ".join(
        [col.ljust(colsizes[idx], fillvalue) for idx, col in enumerate(cols)]
    )


def format_value(v: Any) -> str:
    """Format a value to be printed in the table.

    This function will format floats to 2 decimal places,
    show nulls as ``null`` and truncate long strings.
    """
    if v is None:
        return "null"
    elif isinstance(v, bool):
        return "true" if v else "false"
    elif isinstance(v, float):
        return f"{v:.2f}"

    v = str(v)
    if len(v) > 30:
        v = v[:27] + "..."
    return v
