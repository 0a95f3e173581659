"""Parameterized query execution with streamed row projections."""

import logging
import time
from typing import Any, Iterator, List, Optional

from mysql.connector import Error as MySQLError
from mysql.connector import errors as mysql_errors

from .exceptions import ConnectionUnavailableError, QueryError, ResultConsumedError
from .models import QueryDescriptor, RowProjection

logger = logging.getLogger(__name__)


def _translate_error(error: MySQLError, descriptor: QueryDescriptor) -> QueryError:
    """Map a driver error onto the QueryError hierarchy."""
    if isinstance(error, (mysql_errors.OperationalError, mysql_errors.InterfaceError)):
        return ConnectionUnavailableError(f"Database connection unavailable: {error}")
    return QueryError(f"Query failed: {error} [{_summarize(descriptor.sql)}]")


def _summarize(sql: str, width: int = 80) -> str:
    text = " ".join(sql.split())
    return text if len(text) <= width else text[: width - 3] + "..."


class RowStream:
    """Rows of one execution, pulled from the cursor as they are iterated.

    A stream can be iterated once. The cursor is closed when the rows are
    exhausted, when reading fails, or when ``close()`` is called; using the
    stream as a context manager guarantees the latter.
    """

    def __init__(self, cursor, descriptor: QueryDescriptor, started_at: Optional[float] = None):
        self._cursor = cursor
        self.descriptor = descriptor
        self.columns: List[str] = [desc[0] for desc in cursor.description] if cursor.description else []
        self.rows_read = 0
        self._started_at = started_at if started_at is not None else time.time()
        self._iterated = False
        self._exhausted = not cursor.description
        self._failed = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> Iterator[RowProjection]:
        if self._iterated:
            raise ResultConsumedError(
                "Rows were already iterated; execute the query again to re-read them"
            )
        if self._closed:
            raise ResultConsumedError("Result stream is closed")
        self._iterated = True
        return self._generate()

    def _generate(self) -> Iterator[RowProjection]:
        try:
            while not self._exhausted:
                try:
                    row = self._cursor.fetchone()
                except MySQLError as e:
                    self._failed = True
                    logger.error(f"Reading rows failed after {self.rows_read} row(s): {e}")
                    raise _translate_error(e, self.descriptor) from e

                if row is None:
                    self._exhausted = True
                    break

                self.rows_read += 1
                yield RowProjection(self.columns, row)
        except GeneratorExit:
            # Abandoned before exhaustion
            self.close(raise_errors=False)
            raise
        finally:
            self.close()

    def close(self, raise_errors: bool = True) -> None:
        """Release the cursor, discarding any rows not yet read.

        With ``raise_errors`` off a failure to release is only logged.
        """
        if self._closed:
            return
        self._closed = True

        if self._failed:
            try:
                self._cursor.close()
            except MySQLError as e:
                logger.warning(f"Failed to close cursor after read error: {e}")
            return

        try:
            if not self._exhausted:
                # Unread rows must be drained before the statement is closed
                self._cursor.fetchall()
            self._cursor.close()
        except MySQLError as e:
            logger.error(f"Failed to close cursor: {e}")
            if not raise_errors:
                return
            raise _translate_error(e, self.descriptor) from e

        elapsed = time.time() - self._started_at
        logger.info(f"Query returned {self.rows_read} row(s) in {elapsed:.3f}s")

    def __enter__(self) -> "RowStream":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        # Keep the exception already propagating
        self.close(raise_errors=exc_type is None)


class QueryRunner:
    """Executes parameterized statements over a borrowed connection.

    The runner never opens or closes the connection; it only scopes the
    cursor used by each execution.
    """

    def __init__(self, prepared: bool = True):
        self.prepared = prepared

    def execute(self, connection, descriptor: QueryDescriptor) -> RowStream:
        """Execute ``descriptor`` and return its rows as a lazy stream.

        Placeholder and parameter counts are checked before the connection
        is used. Driver failures surface as QueryError.
        """
        descriptor.validate()

        logger.debug(
            f"Executing query with {len(descriptor.params)} parameter(s): {_summarize(descriptor.sql)}"
        )
        started_at = time.time()

        if connection is None:
            raise ConnectionUnavailableError("No database connection")

        try:
            cursor = connection.cursor(prepared=self.prepared)
        except MySQLError as e:
            logger.error(f"Could not open cursor: {e}")
            raise ConnectionUnavailableError(f"Database connection unavailable: {e}") from e

        try:
            cursor.execute(descriptor.sql, descriptor.params)
        except MySQLError as e:
            logger.error(f"Query execution failed: {e}")
            try:
                cursor.close()
            except MySQLError as close_error:
                logger.warning(f"Failed to close cursor after execution error: {close_error}")
            raise _translate_error(e, descriptor) from e

        return RowStream(cursor, descriptor, started_at)

    def first(self, connection, descriptor: QueryDescriptor) -> Optional[RowProjection]:
        """Execute and return the first row, or None when there are none."""
        with self.execute(connection, descriptor) as rows:
            return next(iter(rows), None)

    def scalar(self, connection, descriptor: QueryDescriptor, column: Optional[str] = None) -> Any:
        """Return one column of the first row (the first column by default)."""
        row = self.first(connection, descriptor)
        if row is None:
            return None
        if column is None:
            return next(iter(row.values()), None)
        return row[column]
