"""Database connection management."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

import mysql.connector
from mysql.connector import Error as MySQLError

from ..config.settings import Settings, get_settings
from .exceptions import ConnectionUnavailableError, QueryError
from .models import QueryDescriptor
from .runner import QueryRunner

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Opens single MySQL sessions from the application settings."""

    def __init__(self, settings: Optional[Settings] = None, runner: Optional[QueryRunner] = None):
        """Initialize the connection factory."""
        self.settings = settings or get_settings()
        self.runner = runner or QueryRunner()

    def connection_config(self) -> Dict[str, Any]:
        """Keyword arguments passed to ``mysql.connector.connect``."""
        return {
            'host': self.settings.db_host,
            'port': self.settings.db_port,
            'database': self.settings.db_name,
            'user': self.settings.db_user,
            'password': self.settings.db_password,
            'charset': self.settings.db_charset,
            'connection_timeout': self.settings.db_connect_timeout,
            'autocommit': True
        }

    @contextmanager
    def get_connection(self):
        """Open a connection and close it on every exit path."""
        try:
            connection = mysql.connector.connect(**self.connection_config())
        except MySQLError as e:
            logger.error(f"Database connection error: {e}")
            raise ConnectionUnavailableError(
                f"Could not connect to {self.settings.db_host}:{self.settings.db_port}/{self.settings.db_name}: {e}"
            ) from e

        logger.info(f"Connection established with MySQL database '{self.settings.db_name}'")
        try:
            yield connection
        finally:
            try:
                connection.close()
                logger.debug("Database connection closed")
            except MySQLError as e:
                logger.warning(f"Error while closing connection: {e}")

    def test_connection(self) -> bool:
        """Test the database connection."""
        try:
            with self.get_connection() as connection:
                return ping(connection, self.runner)
        except QueryError as e:
            logger.error(f"Connection test failed: {e}")
            return False


def ping(connection, runner: Optional[QueryRunner] = None) -> bool:
    """Run ``SELECT 1`` over ``connection``; raises QueryError on failure."""
    runner = runner or QueryRunner()
    return runner.scalar(connection, QueryDescriptor("SELECT 1")) is not None


@contextmanager
def open_connection(settings: Optional[Settings] = None):
    """Open one connection from ``settings`` for the duration of a block."""
    with DatabaseConnection(settings).get_connection() as connection:
        yield connection


# Global database connection instance
_db_connection: Optional[DatabaseConnection] = None


def get_db_connection() -> DatabaseConnection:
    """Get the global database connection instance."""
    global _db_connection
    if _db_connection is None:
        _db_connection = DatabaseConnection()
    return _db_connection
