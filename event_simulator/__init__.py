"""
Event Simulator - time-ordered event synthesis for stream-processing test harnesses.

This package produces, per configured stream, a pull-based sequence of events
whose timestamps advance monotonically inside a bounded or unbounded window:

- Random data simulation from per-attribute generation rules
- Database simulation replaying rows of a relational table

Each generator exposes the same start/peek/poll/stop contract so an external
multiplexer can merge several streams in global timestamp order.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from event_simulator.config import Settings, get_settings
from event_simulator.domain.models import AttributeType, Event, StreamAttribute
from event_simulator.exceptions import (
    EventGenerationError,
    EventSimulatorError,
    InsufficientAttributesError,
    InvalidConfigError,
    InvalidEventError,
    SimulatorInitializationError,
)
from event_simulator.generators import (
    DatabaseEventGenerator,
    EventGenerator,
    RandomEventGenerator,
    create_generator,
)
from event_simulator.infrastructure.stream_registry import InMemoryStreamRegistry, get_stream_registry
from event_simulator.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "AttributeType",
    "Event",
    "StreamAttribute",
    # Errors
    "EventSimulatorError",
    "EventGenerationError",
    "InsufficientAttributesError",
    "InvalidConfigError",
    "InvalidEventError",
    "SimulatorInitializationError",
    # Generators
    "EventGenerator",
    "DatabaseEventGenerator",
    "RandomEventGenerator",
    "create_generator",
    # Schema registry
    "InMemoryStreamRegistry",
    "get_stream_registry",
    # Logging
    "configure_logging",
    "get_logger",
]
