"""Errors raised while executing queries."""


class QueryError(Exception):
    """A query could not be executed or its results could not be read."""


class ParameterCountError(QueryError):
    """The number of bound parameters does not match the placeholders."""

    def __init__(self, expected: int, received: int):
        self.expected = expected
        self.received = received
        super().__init__(
            f"Query expects {expected} parameter(s) but {received} were given"
        )


class ConnectionUnavailableError(QueryError):
    """The database connection is closed or could not be established."""


class MissingColumnError(QueryError, KeyError):
    """A column was requested that the result set does not contain."""

    def __init__(self, column: str, available):
        self.column = column
        self.available = list(available)
        QueryError.__init__(
            self,
            f"Column '{column}' not found in result set (columns: {', '.join(self.available)})"
        )

    def __str__(self) -> str:
        return self.args[0]


class ResultConsumedError(QueryError):
    """The rows of an execution were already iterated."""


class UnsupportedPlaceholderError(QueryError):
    """The SQL uses pyformat markers instead of positional "?" placeholders."""

    def __init__(self, markers):
        self.markers = list(markers)
        super().__init__(
            f"Use ? placeholders instead of {', '.join(sorted(set(self.markers)))}"
        )
