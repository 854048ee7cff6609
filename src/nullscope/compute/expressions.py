"""Expressions executed by compute engine nodes.

The Compute Engine will sometimes need to filter data
or emit new data. This will be performed by nodes that
need to know how the data must be filtered or emitted.

Filters will need a ``predicate``, so an expression that
returns ``true`` or ``false`` for each row that has to be
filtered.

Projections will need an expression that computes the rows
for the projection, for example ``A + B``.

When looking for missing data, the most frequent predicates
are about the entry itself being missing, this module
provides them alongside the generic :class:`FunctionCallExpression`:

* :class:`IsNullExpression` -- the entry is null.
* :class:`IsNotNullExpression` -- the entry has a value.
* :class:`IsNaNExpression` -- the entry is a floating point ``NaN``.
  A null is *not* a NaN, a column can have nulls and no NaNs at all.
* :class:`IsEmptyExpression` -- the entry is an empty string,
  which is how empty fields of text columns usually look like
  when no null token was provided while reading the data.

>>> import pyarrow as pa
>>> batch = pa.record_batch({"mths_remng": pa.array([1.0, None, float("nan")])})
>>> is_null(col("mths_remng")).apply(batch).to_pylist()
[False, True, False]
>>> is_nan(col("mths_remng")).apply(batch).to_pylist()
[False, False, True]
"""

import abc

import pyarrow as pa
import pyarrow.compute as pc

from .. import utils
from .base import ColumnRef, Expression, col


def apply_expression_if_needed(batch: pa.RecordBatch, o: Expression|pa.Array) -> pa.Array:
    """Invoke Apply on expressions when needed

    If the provided object is an Expression,
    it will be applied to the target batch.

    Otherwise it will treat it as if it's
    already the result of an expression
    or a literal value.

    This allows us to apply all arguments
    we receive without having to care if
    they are the data we need or if they
    are the expression resulting in that data.
    """
    if isinstance(o, Expression):
        o = o.apply(batch)
    return o


class FunctionCallExpression(Expression):
    """Call a compute function on its arguments.

    Given a compute function, and a set of arguments
    (other expressions, literals or data), execute
    the function on the provided arguments and return
    the resulting data.

    For example to check that two columns are both provided::

        FunctionCallExpression(pyarrow.compute.and_,
                               IsNotNullExpression(ColumnRef("mths_remng")),
                               IsNotNullExpression(ColumnRef("aj_mths_remng")))

    """
    def __init__(self, func: callable, *args: Expression) -> None:
        """
        :param func: The function accepting the arguments.
        :param *args: The arguments for the function.
        """
        self.func = func
        self.args = args

    def __str__(self) -> str:
        func_qualname = utils.inspect.get_qualname(self.func)
        return f"{func_qualname}({','.join(map(str, self.args))})"

    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        """Invoke the function resolving all arguments on the recordbatch.

        When the function arguments are expressions themselves,
        this will apply the expressions on the provided recordbatch
        and the resulting data will be used as the arguments for the
        function.
        """
        args = tuple(
            apply_expression_if_needed(batch, arg) for arg in self.args
        )
        return self.func(*args)


class UnaryPredicate(Expression):
    """Base class for predicates that inspect a single value per row.

    The predicates never return nulls, a row either
    matches them or not, so they can be safely combined
    with ``and``/``or`` and used in filters.
    """

    def __init__(self, expr: Expression | str) -> None:
        """
        :param expr: The expression to check, a string is read as a column name.
        """
        if isinstance(expr, str):
            expr = col(expr)
        self.expr = expr

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.expr})"

    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        return self._check(apply_expression_if_needed(batch, self.expr))

    @abc.abstractmethod
    def _check(self, values: pa.Array) -> pa.Array: ...


def _all_false(values: pa.Array) -> pa.Array:
    return pa.array([False] * len(values), type=pa.bool_())


class IsNullExpression(UnaryPredicate):
    """True for the rows where the value is null."""

    def _check(self, values: pa.Array) -> pa.Array:
        return pc.is_null(values)


class IsNotNullExpression(UnaryPredicate):
    """True for the rows where the value is not null."""

    def _check(self, values: pa.Array) -> pa.Array:
        return pc.is_valid(values)


class IsNaNExpression(UnaryPredicate):
    """True for the rows where a floating point value is NaN.

    Columns that are not of a floating point type
    can't hold NaN values, so they never match.
    """

    def _check(self, values: pa.Array) -> pa.Array:
        if not pa.types.is_floating(values.type):
            return _all_false(values)
        return pc.fill_null(pc.is_nan(values), False)


class IsEmptyExpression(UnaryPredicate):
    """True for the rows where a text value is the empty string."""

    def _check(self, values: pa.Array) -> pa.Array:
        if not (pa.types.is_string(values.type) or pa.types.is_large_string(values.type)):
            return _all_false(values)
        return pc.fill_null(pc.equal(values, ""), False)


class IfElseExpression(Expression):
    """Pick a value from ``then`` or ``otherwise`` depending on a condition.

    Rows where the condition is null pick the ``otherwise`` value.
    Typically used to replace empty entries of text columns::

        IfElseExpression(IsEmptyExpression(col("servicer_name")),
                         lit("Unknown"), col("servicer_name"))
    """

    def __init__(
        self, condition: Expression, then: Expression, otherwise: Expression
    ) -> None:
        self.condition = condition
        self.then = then
        self.otherwise = otherwise

    def __str__(self) -> str:
        return f"IfElseExpression({self.condition}, {self.then}, {self.otherwise})"

    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        condition = pc.fill_null(apply_expression_if_needed(batch, self.condition), False)
        return pc.if_else(
            condition,
            apply_expression_if_needed(batch, self.then),
            apply_expression_if_needed(batch, self.otherwise),
        )


is_null = IsNullExpression
is_not_null = IsNotNullExpression
is_nan = IsNaNExpression
is_empty = IsEmptyExpression
if_else = IfElseExpression

__all__ = (
    "ColumnRef",
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
)
