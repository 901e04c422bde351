"""
Database replay event generator.

Replays rows of a relational table as events. The timestamp of each event is
either read from a designated timestamp column (rows are then selected by the
timestamp window and ordering is left to the query) or synthesized at a fixed
interval from the window start, exactly like random simulation.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Tuple

from event_simulator.config import get_settings
from event_simulator.domain.models import DatabaseSimulationConfig, Event, StreamAttribute
from event_simulator.exceptions import (
    EventGenerationError,
    InsufficientAttributesError,
    InvalidConfigError,
    RowDecodeError,
    SimulatorInitializationError,
    render_config,
)
from event_simulator.generators.abstract import AbstractEventGenerator, build_event
from event_simulator.generators.validation import (
    COLUMN_NAMES,
    CONNECTION_LOCATION,
    DRIVER,
    EXECUTION_CONTEXT_NAME,
    PASSWORD,
    STREAM_NAME,
    TABLE_NAME,
    TIMESTAMP_ATTRIBUTE,
    TIMESTAMP_INTERVAL,
    USER_NAME,
    check_availability,
    default_interval,
    parse_interval,
    require,
    resolve_stream_attributes,
    split_column_names,
)
from event_simulator.infrastructure.db_connector import (
    BackendConnector,
    ConnectorFactory,
    RowCursor,
    resolve_connector_factory,
    supported_drivers,
)
from event_simulator.infrastructure.stream_registry import StreamSchemaProvider, get_stream_registry
from event_simulator.utils.logging import get_logger

log = get_logger(__name__)

_SIMULATION = "database simulation"


def _resolve_columns(
    source_config: Mapping[str, Any],
    attributes: List[StreamAttribute],
    stream_name: str,
    execution_context_name: str,
) -> Tuple[str, ...]:
    """
    Resolve the column mapping.

    The key is mandatory. A null or empty value means the columns are named
    like the stream attributes; otherwise it is a comma separated list (or an
    array) with one column per attribute, in attribute order.
    """
    context = {
        "stream_name": stream_name,
        "execution_context_name": execution_context_name,
        "config": render_config(source_config),
    }
    if COLUMN_NAMES not in source_config:
        raise InvalidConfigError(
            f"Column names list is required for {_SIMULATION} of stream '{stream_name}'. "
            f"Invalid source configuration : {render_config(source_config)}",
            **context,
        )
    raw = source_config[COLUMN_NAMES]
    if raw is None or (isinstance(raw, (str, list, tuple)) and not (raw.strip() if isinstance(raw, str) else raw)):
        return tuple(attribute.name for attribute in attributes)

    columns = split_column_names(raw)
    if "" in columns:
        raise InvalidConfigError(
            f"Column names cannot contain empty values. "
            f"Invalid source configuration : {render_config(source_config)}",
            **context,
        )
    if len(columns) != len(attributes):
        message = (
            f"Stream '{stream_name}' has {len(attributes)} attribute(s) but database source "
            f"configuration {render_config(source_config)} contains column names for "
            f"{len(columns)} attribute(s)."
        )
        log.error(message, extra={"stream": stream_name, "execution_context": execution_context_name})
        raise InsufficientAttributesError(
            message, expected=len(attributes), actual=len(columns), **context
        )
    return tuple(columns)


class DatabaseEventGenerator(AbstractEventGenerator):
    """
    Produces events by replaying rows of a database table.

    The connection is opened at construction (and again by
    `initialize_resources` when a stopped simulation resumes); `start` issues
    the query. On resume the rows delivered before the stop are skipped.

    Parameters
    ----------
    source_config : Mapping[str, Any]
        Parsed source configuration (`streamName`, `executionContextName`,
        `driver`, `connectionLocation`, `username`, `password`, `tableName`,
        `columnNames`, and `timestampAttribute` or `timestampInterval`).
    timestamp_start_time : int
        Window start in ms.
    timestamp_end_time : int | None
        Window end in ms; None (or -1) for an unbounded window.
    schema_provider : StreamSchemaProvider | None
        Resolves the stream schema; defaults to the process-wide registry.
    """

    kind = "database event generator"

    def __init__(
        self,
        source_config: Mapping[str, Any],
        timestamp_start_time: int,
        timestamp_end_time: Optional[int],
        schema_provider: Optional[StreamSchemaProvider] = None,
    ) -> None:
        provider = schema_provider or get_stream_registry()
        self.config, attributes, self._connector_factory = self._validate(source_config, provider)
        super().__init__(
            stream_name=self.config.stream_name,
            execution_context_name=self.config.execution_context_name,
            attributes=attributes,
            timestamp_start_time=timestamp_start_time,
            timestamp_end_time=timestamp_end_time,
            timestamp_interval=self.config.timestamp_interval,
        )
        self._connector: Optional[BackendConnector] = None
        self._cursor: Optional[RowCursor] = None
        self._rows_consumed = 0
        self.initialize_resources()

    @staticmethod
    def _validate(
        source_config: Mapping[str, Any],
        provider: StreamSchemaProvider,
    ) -> Tuple[DatabaseSimulationConfig, List[StreamAttribute], ConnectorFactory]:
        stream_name = require(source_config, STREAM_NAME, "Stream name", _SIMULATION)
        execution_context_name = require(
            source_config, EXECUTION_CONTEXT_NAME, "Execution context name", _SIMULATION
        )
        attributes = resolve_stream_attributes(
            provider, execution_context_name, stream_name, source_config, "database event generator"
        )
        driver = require(source_config, DRIVER, "A driver name", _SIMULATION)
        location = require(source_config, CONNECTION_LOCATION, "Connection location", _SIMULATION)
        username = require(source_config, USER_NAME, "Username", _SIMULATION)
        password = require(source_config, PASSWORD, "Password", _SIMULATION)
        table_name = require(source_config, TABLE_NAME, "Table name", _SIMULATION)

        factory = resolve_connector_factory(driver)
        if factory is None:
            raise InvalidConfigError(
                f"Driver '{driver}' is not supported for {_SIMULATION} of stream '{stream_name}'. "
                f"Supported drivers: {', '.join(supported_drivers())}. "
                f"Invalid source configuration : {render_config(source_config)}",
                stream_name=stream_name,
                execution_context_name=execution_context_name,
                config=render_config(source_config),
            )

        timestamp_attribute: Optional[str] = None
        timestamp_interval: Optional[int] = None
        if check_availability(source_config, TIMESTAMP_ATTRIBUTE):
            timestamp_attribute = str(source_config[TIMESTAMP_ATTRIBUTE]).strip()
        elif check_availability(source_config, TIMESTAMP_INTERVAL):
            timestamp_interval = parse_interval(source_config, _SIMULATION, allow_zero=True)
        if timestamp_attribute is None and not timestamp_interval:
            timestamp_interval = default_interval(
                source_config, _SIMULATION, get_settings().default_timestamp_interval_ms
            )

        columns = _resolve_columns(source_config, attributes, stream_name, execution_context_name)

        config = DatabaseSimulationConfig(
            stream_name=stream_name,
            execution_context_name=execution_context_name,
            driver=driver,
            connection_location=location,
            username=username,
            password=password,
            table_name=table_name,
            column_names=columns,
            timestamp_attribute=timestamp_attribute,
            timestamp_interval=timestamp_interval,
        )
        return config, attributes, factory

    def initialize_resources(self) -> None:
        """Open (or reopen) the backend connection."""
        self._release_resources()
        connector = self._connector_factory(
            self.config.connection_location,
            self.config.username,
            self.config.password.get_secret_value(),
        )
        try:
            connector.connect()
        except SimulatorInitializationError as exc:
            raise SimulatorInitializationError(
                f"Error occurred when connecting to database to simulate stream '{self.stream_name}': "
                f"{exc}. Source configuration : {self.describe_config()}",
                stream_name=self.stream_name,
                execution_context_name=self.execution_context_name,
                config=self.describe_config(),
            ) from exc
        self._connector = connector

    def _open_source(self) -> None:
        if self._connector is None:
            raise EventGenerationError(
                f"Database resources for stream '{self.stream_name}' are not initialized; "
                f"call initialize_resources() before start()",
                stream_name=self.stream_name,
                execution_context_name=self.execution_context_name,
                config=self.describe_config(),
            )
        if self._cursor is not None:
            self._cursor.close()
        try:
            cursor = self._connector.query(
                self.config.table_name,
                self.config.column_names,
                self.config.timestamp_attribute,
                self._timestamp_start_time,
                self._timestamp_end_time,
            )
            if not cursor.has_next() and self._rows_consumed == 0:
                cursor.close()
                raise EventGenerationError(
                    f"Table '{self.config.table_name}' contains no entries for the columns "
                    f"specified in source configuration {self.describe_config()}"
                )
            # Resume: skip rows delivered before the simulation was stopped.
            for _ in range(self._rows_consumed):
                if cursor.next() is None:
                    break
        except EventGenerationError as exc:
            message = (
                f"Error occurred when retrieving rows from database '{self.config.connection_location}' "
                f"to simulate stream '{self.stream_name}': {exc}"
            )
            log.error(message, extra=self._log_context())
            raise EventGenerationError(
                message,
                stream_name=self.stream_name,
                execution_context_name=self.execution_context_name,
                config=self.describe_config(),
            ) from exc
        self._cursor = cursor
        log.debug(
            f"Retrieved rows to simulate stream '{self.stream_name}'",
            extra={**self._log_context(), "rows_skipped": self._rows_consumed},
        )

    def _compute_next_event(self) -> Optional[Event]:
        if self._cursor is None:
            return None
        timestamp_column = self.config.timestamp_attribute
        if timestamp_column is None and not self._within_window():
            return None
        try:
            row = self._cursor.next()
        except EventGenerationError as exc:
            raise EventGenerationError(
                f"Error occurred when accessing rows to simulate stream '{self.stream_name}' "
                f"using source configuration {self.describe_config()}: {exc}",
                stream_name=self.stream_name,
                execution_context_name=self.execution_context_name,
                config=self.describe_config(),
            ) from exc
        if row is None:
            return None
        self._rows_consumed += 1

        if timestamp_column is not None:
            timestamp = row.get_long(timestamp_column)
            if timestamp is None:
                raise RowDecodeError(f"Timestamp column '{timestamp_column}' is null", timestamp_column)
        else:
            timestamp = self._next_synthetic_timestamp()

        values = [
            row.get(column, attribute.type)
            for column, attribute in zip(self.config.column_names, self._attributes)
        ]
        return build_event(self._attributes, values, timestamp)

    def _rewind(self, pending: Event) -> None:
        super()._rewind(pending)
        self._rows_consumed -= 1

    def _release_resources(self) -> None:
        cursor, self._cursor = getattr(self, "_cursor", None), None
        if cursor is not None:
            cursor.close()
        connector, self._connector = getattr(self, "_connector", None), None
        if connector is not None:
            connector.close()

    def describe_config(self) -> str:
        return str(self.config.model_dump(mode="json"))


__all__ = ["DatabaseEventGenerator"]
