"""nullscope

Explore and treat missing data in tabular datasets.

nullscope is a lazy Dataframe toolkit built on top of Apache Arrow,
meant for analysts that need to find out where values are missing
in a dataset and decide what to do about them.

The project is constituted by multiple components, each isolated within its own
package and each self documented in literate programming style.

The primary components are:

* The Compute Engine, in charge of executing analyses on the data.
* The Dataframe API, which provides an high level API for the compute engine.
* The Session, which provides the readers and tracks cached Dataframes.
* The ``nullscope-report`` command, which prints a missing data report of a file.

For the user guide and code documentation of each component, refer to the
component itself.
"""

from . import compute, dataframe, session
from .dataframe import Dataframe

__all__ = ("compute", "dataframe", "session", "Dataframe")
