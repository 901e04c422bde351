"""
Exception hierarchy for the event simulator.

Every error carries the stream name, the execution context name, and a
rendering of the active source configuration when they are known, so a failed
simulation can be diagnosed from the message alone.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional


class EventSimulatorError(Exception):
    """Base exception for all event simulator errors."""

    def __init__(
        self,
        message: str,
        stream_name: Optional[str] = None,
        execution_context_name: Optional[str] = None,
        config: Optional[str] = None,
    ) -> None:
        self.stream_name = stream_name
        self.execution_context_name = execution_context_name
        self.config = config
        super().__init__(message)


class InvalidConfigError(EventSimulatorError):
    """A source configuration field is missing or malformed."""


class InsufficientAttributesError(EventSimulatorError):
    """The number of attribute rules or columns does not match the stream schema."""

    def __init__(
        self,
        message: str,
        expected: int,
        actual: int,
        stream_name: Optional[str] = None,
        execution_context_name: Optional[str] = None,
        config: Optional[str] = None,
    ) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(message, stream_name, execution_context_name, config)


class SimulatorInitializationError(EventSimulatorError):
    """The target stream is not deployed, or a backend needed by the simulation is unreachable."""


class EventGenerationError(EventSimulatorError):
    """Producing events failed and the generator cannot continue."""


class InvalidEventError(EventGenerationError):
    """A single event could not be produced; generators skip it and move on."""


class RowDecodeError(InvalidEventError):
    """A column value could not be read as the attribute's declared type."""

    def __init__(self, message: str, column: str, value: Any = None) -> None:
        self.column = column
        self.value = value
        super().__init__(message)


_SECRET_KEYS = frozenset({"password"})


def render_config(config: Mapping[str, Any]) -> str:
    """Render a raw source configuration for error messages with secrets masked."""
    return str({k: ("******" if k in _SECRET_KEYS and v is not None else v) for k, v in config.items()})


__all__ = [
    "EventSimulatorError",
    "InvalidConfigError",
    "InsufficientAttributesError",
    "SimulatorInitializationError",
    "EventGenerationError",
    "InvalidEventError",
    "RowDecodeError",
    "render_config",
]
