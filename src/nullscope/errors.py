"""Exceptions raised by nullscope.

Errors are raised where the problem is detected and
propagated up to the caller, only the command line tools
turn them into a printed message.
"""


class NullscopeError(Exception):
    """Base class for all nullscope errors."""

    pass


class SessionNotInitializedError(NullscopeError):
    """Raised when a session scoped operation runs before a session was started."""

    def __init__(self) -> None:
        super().__init__(
            "Session not initialized, call nullscope.session.start() first"
        )


class ColumnNotFoundError(NullscopeError, KeyError):
    """Raised when an expression or node references a column that does not exist."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = list(available)
        super().__init__(f"Column {name!r} not found, available columns: {self.available}")

    def __str__(self) -> str:
        return self.args[0]
