"""Dataframe library built on top of the nullscope compute engine.

A dataframe library is a tool designed to handle and manipulate structured data,
typically in the form of tables (i.e., rows and columns).
It allows users to load data from various sources (like CSV files),
explore it, apply transformations, and analyze it.

The nullscope Dataframe focuses on the exploration and treatment
of missing data, a typical analysis looks like::

    from nullscope.dataframe import Dataframe, col, is_null

    df = Dataframe.open_csv("loans.csv", null_values="").cache()
    df.print_schema()
    df.count()

    # How many entries are missing and where
    df.filter(is_null(col("mths_remng"))).count()
    df.filter(is_null(col("mths_remng"))).group_by("servicer_name").count().show()

    # Drop or fill them
    df.dropna(subset=["mths_remng", "aj_mths_remng"]).count()
    df.dropna(min_non_nulls=12).count()
    df.fillna({"act_endg_upb": 12345}).show()

Transformations, like ``filter`` or ``dropna``, only describe
the new Dataframe, and the data is computed when an action
like ``count``, ``collect`` or ``show`` is invoked.
"""

from ..compute import (
    FunctionCallExpression,
    col,
    if_else,
    is_empty,
    is_nan,
    is_not_null,
    is_null,
    lit,
)
from .dataframe import Dataframe, GroupedData

__all__ = (
    "Dataframe",
    "GroupedData",
    "FunctionCallExpression",
    "col",
    "lit",
    "if_else",
    "is_empty",
    "is_nan",
    "is_not_null",
    "is_null",
)
