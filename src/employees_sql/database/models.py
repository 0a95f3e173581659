"""Query descriptors and row projections."""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from .exceptions import MissingColumnError, ParameterCountError, UnsupportedPlaceholderError

PLACEHOLDER = "?"

# The prepared cursor rewrites these into "?", even inside literals
FORMAT_MARKER = re.compile(r"%(\(\w+\))?s")


def count_placeholders(sql: str) -> int:
    """Count the positional placeholders in a SQL statement.

    Question marks inside quoted strings, quoted identifiers and comments
    are not placeholders and are skipped.
    """
    count = 0
    i = 0
    length = len(sql)

    while i < length:
        char = sql[i]

        if char in ("'", '"', "`"):
            # Quoted literal or identifier; backslash escapes and doubled quotes
            i += 1
            while i < length:
                if sql[i] == "\\" and char != "`":
                    i += 2
                    continue
                if sql[i] == char:
                    if i + 1 < length and sql[i + 1] == char:
                        i += 2
                        continue
                    break
                i += 1
        elif char == "#" or (
            sql.startswith("--", i) and (i + 2 >= length or sql[i + 2].isspace())
        ):
            newline = sql.find("\n", i)
            i = length if newline == -1 else newline
        elif char == "/" and sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            i = length if end == -1 else end + 1
        elif char == PLACEHOLDER:
            count += 1

        i += 1

    return count


def find_format_markers(sql: str) -> List[str]:
    """Pyformat markers anywhere in ``sql``, quoted literals included."""
    return [match.group(0) for match in FORMAT_MARKER.finditer(sql)]


def to_string(value: Any) -> Optional[str]:
    """Render a driver value the way a result-set string getter would."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


@dataclass(frozen=True)
class QueryDescriptor:
    """SQL text plus the positional parameters bound to its placeholders."""

    sql: str
    params: Tuple[Any, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Accept any sequence but store an immutable tuple
        object.__setattr__(self, "params", tuple(self.params))

    @classmethod
    def of(cls, sql: str, *params: Any) -> "QueryDescriptor":
        return cls(sql, params)

    @property
    def placeholder_count(self) -> int:
        return count_placeholders(self.sql)

    def validate(self) -> None:
        """Check the markers against the bound parameters.

        Only "?" placeholders are supported; pyformat markers raise
        UnsupportedPlaceholderError and a count mismatch raises
        ParameterCountError.
        """
        format_markers = find_format_markers(self.sql)
        if format_markers:
            raise UnsupportedPlaceholderError(format_markers)
        expected = self.placeholder_count
        if expected != len(self.params):
            raise ParameterCountError(expected, len(self.params))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sql": self.sql,
            "params": list(self.params),
        }


class RowProjection(Mapping):
    """A single result row as a read-only column name to string mapping."""

    __slots__ = ("_values", "_folded")

    def __init__(self, columns: Sequence[str], values: Sequence[Any]):
        self._values: Dict[str, Optional[str]] = {}
        self._folded: Dict[str, str] = {}

        for column, value in zip(columns, values):
            # First occurrence of a repeated label wins
            if column in self._values:
                continue
            self._values[column] = to_string(value)
            self._folded.setdefault(column.lower(), column)

    def __getitem__(self, column: str) -> Optional[str]:
        if column in self._values:
            return self._values[column]

        actual = self._folded.get(column.lower()) if isinstance(column, str) else None
        if actual is None:
            raise MissingColumnError(column, self._values)
        return self._values[actual]

    def __contains__(self, column: object) -> bool:
        if column in self._values:
            return True
        return isinstance(column, str) and column.lower() in self._folded

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"RowProjection({self._values!r})"

    @property
    def columns(self) -> List[str]:
        return list(self._values)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return dict(self._values)
