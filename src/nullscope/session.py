"""Analysis sessions.

A session holds the settings used to load data
and keeps track of the Dataframes that were cached,
so that their memory can be released all at once.

A session has to be started before data can be loaded
through the session readers::

    >>> from nullscope import session
    >>> session.read_csv("loans.csv")
    Traceback (most recent call last):
    ...
    nullscope.errors.SessionNotInitializedError: Session not initialized, call nullscope.session.start() first

    >>> s = session.start()
    >>> df = session.read_csv("loans.csv", null_value="")  # doctest: +SKIP
    >>> session.stop()

By default the session reads empty entries as nulls in every column,
which can be changed through the ``NULLSCOPE_NULL_VALUE`` setting
or by providing the ``null_value`` argument to :func:`read_csv`.
"""

import logging
import weakref

from .compute import CSVDataSource, ParquetDataSource
from .config import Settings
from .dataframe import Dataframe
from .errors import SessionNotInitializedError

logger = logging.getLogger(__name__)

_active_session: "Session | None" = None


class Session:
    """Settings and cached Dataframes of an analysis."""

    def __init__(self, settings: Settings | None = None) -> None:
        """
        :param settings: The settings of the session, read from the environment when omitted.
        """
        self.settings = settings or Settings()
        self._cached = weakref.WeakSet()

    def read_csv(
        self,
        path: str,
        header: bool = True,
        infer_schema: bool = True,
        null_value: str | list[str] | None = None,
    ) -> Dataframe:
        """Load a CSV file as a Dataframe.

        :param path: The path of the local CSV file.
        :param header: If the first line of the file holds the column names.
        :param infer_schema: Detect the type of the columns, otherwise read them as text.
        :param null_value: The token that denotes a missing entry,
                           the session ``null_value`` setting when omitted.
        """
        if null_value is None:
            null_value = self.settings.null_value
        return Dataframe(
            CSVDataSource(
                path,
                block_size=self.settings.block_size,
                header=header,
                infer_schema=infer_schema,
                null_values=null_value,
            )
        )

    def read_parquet(self, path: str) -> Dataframe:
        """Load a Parquet file as a Dataframe."""
        return Dataframe(ParquetDataSource(path))

    def register_cached(self, df: Dataframe) -> None:
        """Track a cached Dataframe, so that :meth:`clear_cache` can release it."""
        self._cached.add(df)

    @property
    def cached(self) -> list[Dataframe]:
        """The Dataframes that are currently cached."""
        return [df for df in self._cached if df.is_cached]

    def clear_cache(self) -> None:
        """Release the data of all the cached Dataframes."""
        for df in list(self._cached):
            df.unpersist()
        self._cached.clear()


def start(settings: Settings | None = None) -> Session:
    """Start the active session, or return it if it was already started."""
    global _active_session
    if _active_session is None:
        _active_session = Session(settings)
        logger.info("Session started")
    return _active_session


def stop() -> None:
    """Release every cached Dataframe and forget the active session."""
    global _active_session
    if _active_session is not None:
        _active_session.clear_cache()
        _active_session = None
        logger.info("Session stopped")


def current_session() -> Session | None:
    """The active session, or None when no session was started."""
    return _active_session


def get_active_session() -> Session:
    """The session started by :func:`start`.

    :raises SessionNotInitializedError: when no session was started.
    """
    if _active_session is None:
        raise SessionNotInitializedError()
    return _active_session


def read_csv(
    path: str,
    header: bool = True,
    infer_schema: bool = True,
    null_value: str | list[str] | None = None,
) -> Dataframe:
    """Load a CSV file through the active session, see :meth:`Session.read_csv`."""
    return get_active_session().read_csv(
        path, header=header, infer_schema=infer_schema, null_value=null_value
    )


def read_parquet(path: str) -> Dataframe:
    """Load a Parquet file through the active session."""
    return get_active_session().read_parquet(path)


def clear_cache() -> None:
    """Release the data of all the Dataframes cached in the active session."""
    get_active_session().clear_cache()
