"""Tests for database connection module."""

from unittest.mock import Mock, patch

import pytest
from mysql.connector import Error as MySQLError
from mysql.connector import errors as mysql_errors

from employees_sql.database.connection import DatabaseConnection, get_db_connection, open_connection, ping
from employees_sql.database.exceptions import ConnectionUnavailableError, QueryError


class TestDatabaseConnection:
    """Test cases for DatabaseConnection class."""

    @patch('employees_sql.database.connection.mysql.connector.connect')
    def test_connection_config(self, mock_connect, mock_settings):
        """Test that settings are passed to the driver."""
        db = DatabaseConnection(mock_settings)

        with db.get_connection():
            pass

        mock_connect.assert_called_once()
        call_args = mock_connect.call_args[1]
        assert call_args['host'] == 'localhost'
        assert call_args['port'] == 3306
        assert call_args['database'] == 'employees'
        assert call_args['user'] == 'test_user'
        assert call_args['password'] == 'test_password'
        assert call_args['charset'] == 'utf8mb4'
        assert call_args['connection_timeout'] == 10
        assert call_args['autocommit'] is True

    @patch('employees_sql.database.connection.mysql.connector.connect')
    def test_connection_closed_after_block(self, mock_connect, mock_settings):
        """Test that the connection is released on normal exit."""
        mock_connection = Mock()
        mock_connect.return_value = mock_connection

        with DatabaseConnection(mock_settings).get_connection() as connection:
            assert connection is mock_connection
            mock_connection.close.assert_not_called()

        mock_connection.close.assert_called_once()

    @patch('employees_sql.database.connection.mysql.connector.connect')
    def test_connection_closed_after_error(self, mock_connect, mock_settings):
        """Test that the connection is released when the block fails."""
        mock_connection = Mock()
        mock_connect.return_value = mock_connection

        with pytest.raises(QueryError):
            with DatabaseConnection(mock_settings).get_connection():
                raise QueryError("report failed")

        mock_connection.close.assert_called_once()

    @patch('employees_sql.database.connection.mysql.connector.connect')
    def test_connect_failure(self, mock_connect, mock_settings):
        """Test that driver connection errors become ConnectionUnavailableError."""
        mock_connect.side_effect = mysql_errors.InterfaceError("Can't connect to MySQL server on 'localhost:3306'")

        with pytest.raises(ConnectionUnavailableError) as exc_info:
            with DatabaseConnection(mock_settings).get_connection():
                pass

        assert "localhost:3306/employees" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, MySQLError)

    @patch('employees_sql.database.connection.mysql.connector.connect')
    def test_close_error_is_not_raised(self, mock_connect, mock_settings):
        mock_connection = Mock()
        mock_connection.close.side_effect = mysql_errors.OperationalError("Connection already closed")
        mock_connect.return_value = mock_connection

        with DatabaseConnection(mock_settings).get_connection():
            pass

        mock_connection.close.assert_called_once()

    @patch('employees_sql.database.connection.mysql.connector.connect')
    def test_test_connection_success(self, mock_connect, mock_settings, mock_mysql_connection, cursor_factory):
        """Test successful connection test."""
        mock_connection, _ = mock_mysql_connection
        mock_cursor = cursor_factory(['1'], [(1,)])
        mock_connection.cursor.return_value = mock_cursor
        mock_connect.return_value = mock_connection

        db = DatabaseConnection(mock_settings)

        assert db.test_connection() is True
        mock_cursor.execute.assert_called_with("SELECT 1", ())
        mock_connection.close.assert_called_once()

    @patch('employees_sql.database.connection.mysql.connector.connect')
    def test_test_connection_failure(self, mock_connect, mock_settings):
        """Test failed connection test."""
        mock_connect.side_effect = mysql_errors.InterfaceError("Can't connect")

        assert DatabaseConnection(mock_settings).test_connection() is False


def test_ping_raises_on_closed_connection():
    connection = Mock()
    connection.cursor.side_effect = mysql_errors.OperationalError("MySQL Connection not available.")

    with pytest.raises(ConnectionUnavailableError):
        ping(connection)


@patch('employees_sql.database.connection.mysql.connector.connect')
def test_open_connection_uses_given_settings(mock_connect, mock_settings):
    with open_connection(mock_settings) as connection:
        assert connection is mock_connect.return_value

    assert mock_connect.call_args[1]['database'] == 'employees'
    mock_connect.return_value.close.assert_called_once()


@patch('employees_sql.database.connection.get_settings')
def test_get_db_connection_singleton(mock_get_settings, mock_settings):
    mock_get_settings.return_value = mock_settings

    first = get_db_connection()
    second = get_db_connection()

    assert first is second
    assert first.settings is mock_settings
