"""
Database backend for replaying table rows as events.

Provides the BackendConnector contract used by the database event generator,
a PostgreSQL implementation on top of psycopg, and the row cursor that exposes
query results one row at a time with typed column accessors.

Rows are streamed through a named (server-side) cursor with fetchmany
batching so large tables never load into memory at once. Connection attempts
are retried for transient failures using tenacity.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Protocol, Sequence

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from event_simulator.config import get_settings
from event_simulator.domain.models import AttributeType
from event_simulator.exceptions import (
    EventGenerationError,
    RowDecodeError,
    SimulatorInitializationError,
)
from event_simulator.utils.logging import get_logger

log = get_logger(__name__)

_INT_MIN, _INT_MAX = -(2**31), 2**31 - 1
_LONG_MIN, _LONG_MAX = -(2**63), 2**63 - 1


class Row:
    """
    A single result row with typed column accessors.

    Accessors never coerce across type families: asking for an int from a text
    column raises RowDecodeError rather than parsing the text. SQL NULL reads
    as None for every type.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any]) -> None:
        self._values = values

    def _raw(self, column: str) -> Any:
        try:
            return self._values[column]
        except KeyError:
            raise RowDecodeError(f"Column '{column}' is not present in the row", column) from None

    def get_string(self, column: str) -> Optional[str]:
        value = self._raw(column)
        if value is None or isinstance(value, str):
            return value
        raise RowDecodeError(
            f"Column '{column}' holds {type(value).__name__} value {value!r}, expected STRING",
            column,
            value,
        )

    def _get_integer(self, column: str, low: int, high: int, label: str) -> Optional[int]:
        value = self._raw(column)
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            raise RowDecodeError(
                f"Column '{column}' holds {type(value).__name__} value {value!r}, expected {label}",
                column,
                value,
            )
        if not low <= value <= high:
            raise RowDecodeError(f"Column '{column}' value {value} is out of {label} range", column, value)
        return value

    def get_int(self, column: str) -> Optional[int]:
        return self._get_integer(column, _INT_MIN, _INT_MAX, "INT")

    def get_long(self, column: str) -> Optional[int]:
        return self._get_integer(column, _LONG_MIN, _LONG_MAX, "LONG")

    def _get_real(self, column: str, label: str) -> Optional[float]:
        value = self._raw(column)
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
            raise RowDecodeError(
                f"Column '{column}' holds {type(value).__name__} value {value!r}, expected {label}",
                column,
                value,
            )
        return float(value)

    def get_float(self, column: str) -> Optional[float]:
        return self._get_real(column, "FLOAT")

    def get_double(self, column: str) -> Optional[float]:
        return self._get_real(column, "DOUBLE")

    def get_bool(self, column: str) -> Optional[bool]:
        value = self._raw(column)
        if value is None or isinstance(value, bool):
            return value
        raise RowDecodeError(
            f"Column '{column}' holds {type(value).__name__} value {value!r}, expected BOOL",
            column,
            value,
        )

    def get(self, column: str, attribute_type: AttributeType) -> Any:
        """Read a column using the accessor for the attribute's declared type."""
        return _ACCESSORS[attribute_type](self, column)

    def __repr__(self) -> str:
        return f"Row({dict(self._values)!r})"


_ACCESSORS: Dict[AttributeType, Callable[[Row, str], Any]] = {
    AttributeType.STRING: Row.get_string,
    AttributeType.INT: Row.get_int,
    AttributeType.LONG: Row.get_long,
    AttributeType.FLOAT: Row.get_float,
    AttributeType.DOUBLE: Row.get_double,
    AttributeType.BOOL: Row.get_bool,
}


class RowCursor:
    """
    Sequential, one-row-lookahead view over a query result.

    `has_next()` fetches at most one row ahead; `next()` consumes it.
    """

    def __init__(
        self,
        rows: Iterable[Mapping[str, Any]],
        on_close: Optional[Callable[[], None]] = None,
    ) -> None:
        self._rows: Iterator[Mapping[str, Any]] = iter(rows)
        self._buffered: Optional[Mapping[str, Any]] = None
        self._on_close = on_close
        self._exhausted = False
        self.closed = False

    def has_next(self) -> bool:
        if self.closed or self._exhausted:
            return False
        if self._buffered is None:
            try:
                self._buffered = next(self._rows)
            except StopIteration:
                self._exhausted = True
                return False
        return True

    def next(self) -> Optional[Row]:
        """Consume and return the next row, or None when the cursor is exhausted."""
        if not self.has_next():
            return None
        values, self._buffered = self._buffered, None
        return Row(values)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._buffered = None
        if self._on_close is not None:
            self._on_close()


class BackendConnector(Protocol):
    """Contract for a relational source the database generator replays rows from."""

    def connect(self) -> None:
        ...

    def query(
        self,
        table_name: str,
        columns: Sequence[str],
        timestamp_column: Optional[str],
        start_time: int,
        end_time: Optional[int],
    ) -> RowCursor:
        ...

    def close(self) -> None:
        ...


def normalize_location(location: str) -> str:
    """Accept JDBC-style URLs (``jdbc:postgresql://...``) as libpq connection URIs."""
    location = location.strip()
    if location.lower().startswith("jdbc:"):
        location = location[len("jdbc:") :]
    return location


def _table_identifier(table_name: str) -> sql.Identifier:
    """Build an identifier for an optionally schema-qualified table name."""
    return sql.Identifier(*(part.strip() for part in table_name.split(".")))


def build_select(
    table_name: str,
    columns: Sequence[str],
    timestamp_column: Optional[str],
    end_bounded: bool,
) -> sql.Composed:
    """
    Compose the replay query.

    With a timestamp column the rows are restricted to the timestamp window and
    ordered by that column; without one the whole table is scanned.
    """
    selected: List[str] = list(dict.fromkeys(columns))
    if timestamp_column and timestamp_column not in selected:
        selected.append(timestamp_column)

    query = sql.SQL("SELECT {fields} FROM {table}").format(
        fields=sql.SQL(", ").join(sql.Identifier(c) for c in selected),
        table=_table_identifier(table_name),
    )
    if not timestamp_column:
        return query

    ts = sql.Identifier(timestamp_column)
    condition = sql.SQL("{ts} >= %s").format(ts=ts)
    if end_bounded:
        condition = sql.SQL("{lower} AND {ts} <= %s").format(lower=condition, ts=ts)
    return sql.SQL("{query} WHERE {condition} ORDER BY {ts}").format(
        query=query, condition=condition, ts=ts
    )


def _batched_fetch(cursor: psycopg.Cursor, batch_size: int) -> Iterator[list]:
    """
    Yield batches from a cursor using fetchmany.
    """
    while True:
        batch = cursor.fetchmany(batch_size)
        if not batch:
            break
        yield batch


class PostgresConnector:
    """
    BackendConnector for PostgreSQL using a dedicated psycopg connection.

    Each database generator owns exactly one connector; connections are never
    shared between generators.
    """

    def __init__(self, location: str, username: str, password: str) -> None:
        self.location = normalize_location(location)
        self._username = username
        self._password = password
        self._conn: Optional[psycopg.Connection] = None
        self._cursor: Optional[psycopg.Cursor] = None

    @property
    def connected(self) -> bool:
        return self._conn is not None and not self._conn.closed

    def connect(self) -> None:
        """
        Open the connection, retrying transient failures with exponential backoff.

        Raises
        ------
        SimulatorInitializationError
            If the database cannot be reached after all attempts.
        """
        if self.connected:
            return
        settings = get_settings()
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(settings.db_connect_attempts),
                wait=wait_exponential(multiplier=1, min=1, max=10),
                retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
                reraise=True,
            ):
                with attempt:
                    self._conn = psycopg.connect(
                        self.location,
                        user=self._username,
                        password=self._password,
                        connect_timeout=settings.db_connect_timeout_s,
                    )
        except psycopg.Error as exc:
            raise SimulatorInitializationError(
                f"Unable to connect to database '{self.location}' as user '{self._username}': {exc}"
            ) from exc
        log.debug("Database connection opened", extra={"location": self.location})

    def query(
        self,
        table_name: str,
        columns: Sequence[str],
        timestamp_column: Optional[str],
        start_time: int,
        end_time: Optional[int],
    ) -> RowCursor:
        if not self.connected:
            raise EventGenerationError(
                f"No open connection to database '{self.location}'; initialize resources before querying"
            )
        assert self._conn is not None
        self._close_cursor()

        statement = build_select(table_name, columns, timestamp_column, end_time is not None)
        params: List[int] = []
        if timestamp_column:
            params.append(start_time)
            if end_time is not None:
                params.append(end_time)

        try:
            # Named cursor keeps the result set on the server.
            self._cursor = self._conn.cursor(name="event_simulator_replay", row_factory=dict_row)
            self._cursor.execute(statement, params or None)
        except psycopg.Error as exc:
            raise EventGenerationError(
                f"Query on table '{table_name}' in database '{self.location}' failed: {exc}"
            ) from exc

        return RowCursor(
            self._iter_rows(self._cursor, table_name, get_settings().fetch_batch_size),
            on_close=self._close_cursor,
        )

    def _iter_rows(
        self, cursor: psycopg.Cursor, table_name: str, batch_size: int
    ) -> Iterator[Mapping[str, Any]]:
        try:
            for batch in _batched_fetch(cursor, batch_size):
                yield from batch
        except psycopg.Error as exc:
            raise EventGenerationError(
                f"Reading rows of table '{table_name}' from database '{self.location}' failed: {exc}"
            ) from exc

    def _close_cursor(self) -> None:
        if self._cursor is not None:
            try:
                self._cursor.close()
            except psycopg.Error:
                log.debug("Ignoring error while closing cursor", exc_info=True)
            finally:
                self._cursor = None

    def close(self) -> None:
        self._close_cursor()
        if self._conn is not None:
            try:
                self._conn.close()
            finally:
                self._conn = None
            log.debug("Database connection closed", extra={"location": self.location})


ConnectorFactory = Callable[[str, str, str], BackendConnector]

_CONNECTOR_FACTORIES: Dict[str, ConnectorFactory] = {
    "postgresql": PostgresConnector,
    "postgres": PostgresConnector,
    "psycopg": PostgresConnector,
    "org.postgresql.driver": PostgresConnector,
}


def supported_drivers() -> List[str]:
    """List driver identifiers accepted in database source configurations."""
    return sorted(_CONNECTOR_FACTORIES)


def resolve_connector_factory(driver: str) -> Optional[ConnectorFactory]:
    return _CONNECTOR_FACTORIES.get(driver.strip().lower())


__all__ = [
    "BackendConnector",
    "PostgresConnector",
    "Row",
    "RowCursor",
    "build_select",
    "normalize_location",
    "resolve_connector_factory",
    "supported_drivers",
]
