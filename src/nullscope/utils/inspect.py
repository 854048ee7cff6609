"""Provide insights about Python objects.

Used to render query plans in a readable way,
as plans contain references to the compute functions
they invoke.
"""

import functools
import inspect
from typing import Any


def get_qualname(obj: Any) -> str:
    """Get the qualified name of the given object.

    Will return the name of the object and the
    name of the module and class it belongs to.

    For functions or methods, this will return
    something like `module.class.method` or
    `module.function`. Partially applied functions
    are rendered with the arguments they were bound to.

    >>> import pyarrow.compute as pc
    >>> get_qualname(pc.is_null)
    'pyarrow.compute.is_null'
    >>> get_qualname(functools.partial(pc.is_null, nan_is_null=True))
    'pyarrow.compute.is_null[nan_is_null=True]'
    """
    if isinstance(obj, functools.partial):
        bound = [repr(a) for a in obj.args]
        bound += [f"{k}={v!r}" for k, v in obj.keywords.items()]
        return f"{get_qualname(obj.func)}[{','.join(bound)}]"

    module = inspect.getmodule(obj).__name__
    if inspect.ismethod(obj) or inspect.isfunction(obj):
        if hasattr(obj, "__self__") and obj.__self__:
            class_name = obj.__self__.__class__.__name__
            return f"{module}.{class_name}.{obj.__name__}"
        return f"{module}.{obj.__qualname__}"
    elif inspect.isclass(obj):
        return f"{module}.{obj.__name__}"
    elif inspect.ismodule(obj):
        return obj.__name__
    elif isinstance(obj, object):
        return f"{module}.{obj.__class__.__name__}"
    raise ValueError(f"Unable to detect path for object of type {type(obj)}")
