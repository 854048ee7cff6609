"""Generic utilities and helpers.

This is a collection of generic utilities and helpers
that can be helpful in the other parts of the codebase
and are not specifically bound or related to any component.

Usually this will be generic Python utilities that could work
in any Python project, or helpers to present data to users.
"""

from . import inspect, schema, tabulate

__all__ = ("inspect", "schema", "tabulate")
