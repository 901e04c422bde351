"""
Domain package for the event simulator.

Exports the stream schema, event, and source configuration models used across
generators and backend connectors. Keep this package focused on data
definitions and validation concerns.
"""

from event_simulator.domain.models import (
    AttributeType,
    DatabaseSimulationConfig,
    Event,
    RandomSimulationConfig,
    StreamAttribute,
)

__all__ = [
    "AttributeType",
    "DatabaseSimulationConfig",
    "Event",
    "RandomSimulationConfig",
    "StreamAttribute",
]
