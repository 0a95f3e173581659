"""Database connection and query execution module."""

from .connection import DatabaseConnection, get_db_connection, open_connection, ping
from .exceptions import (
    ConnectionUnavailableError,
    MissingColumnError,
    ParameterCountError,
    QueryError,
    ResultConsumedError,
    UnsupportedPlaceholderError,
)
from .models import QueryDescriptor, RowProjection
from .runner import QueryRunner, RowStream

__all__ = [
    "DatabaseConnection",
    "get_db_connection",
    "open_connection",
    "ping",
    "QueryError",
    "ParameterCountError",
    "ConnectionUnavailableError",
    "MissingColumnError",
    "ResultConsumedError",
    "UnsupportedPlaceholderError",
    "QueryDescriptor",
    "RowProjection",
    "QueryRunner",
    "RowStream",
]
