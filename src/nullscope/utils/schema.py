"""Render the schema of tabular data as a tree.

>>> import pyarrow as pa
>>> print(format_schema(pa.schema([("loan_age", pa.int64()), ("servicer_name", pa.string())])))
root
 |-- loan_age: int64 (nullable = true)
 |-- servicer_name: string (nullable = true)
"""

import pyarrow as pa


def format_schema(schema: pa.Schema) -> str:
    """One line for each field with its type and nullability."""
    lines = ["root"]
    for field in schema:
        nullable = "true" if field.nullable else "false"
        lines.append(f" |-- {field.name}: {field.type} (nullable = {nullable})")
    return "\n".join(lines)
