"""
Infrastructure package for the event simulator.

Centralizes the collaborators generators depend on: database connectivity
(connector, row cursor) and stream schema lookup. Keep this layer focused on
I/O and resource management, decoupled from event generation logic.
"""

from event_simulator.infrastructure.db_connector import (
    BackendConnector,
    PostgresConnector,
    Row,
    RowCursor,
    supported_drivers,
)
from event_simulator.infrastructure.stream_registry import (
    InMemoryStreamRegistry,
    StreamSchemaProvider,
    get_stream_registry,
)

__all__ = [
    "BackendConnector",
    "PostgresConnector",
    "Row",
    "RowCursor",
    "supported_drivers",
    "InMemoryStreamRegistry",
    "StreamSchemaProvider",
    "get_stream_registry",
]
