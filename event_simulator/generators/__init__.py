"""
Generators package for the event simulator.

Re-exports the generator interface and the concrete generators, and provides
`create_generator` to build the right generator from a source configuration's
`simulationType`.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional

from event_simulator.exceptions import InvalidConfigError, render_config
from event_simulator.generators.abstract import (
    UNBOUNDED_END_TIME,
    AbstractEventGenerator,
    EventGenerator,
)
from event_simulator.generators.database_generator import DatabaseEventGenerator
from event_simulator.generators.random_generator import RandomEventGenerator
from event_simulator.generators.validation import SIMULATION_TYPE
from event_simulator.infrastructure.stream_registry import StreamSchemaProvider

RANDOM_DATA_SIMULATION = "RANDOM_DATA_SIMULATION"
DATABASE_SIMULATION = "DATABASE_SIMULATION"


def _generator_factories() -> Dict[str, Callable[..., EventGenerator]]:
    """Registry of available generators by simulation type."""
    return {
        RANDOM_DATA_SIMULATION: RandomEventGenerator,
        DATABASE_SIMULATION: DatabaseEventGenerator,
    }


def available_simulation_types() -> List[str]:
    """List supported simulation types."""
    return sorted(_generator_factories().keys())


def create_generator(
    source_config: Mapping[str, Any],
    timestamp_start_time: int,
    timestamp_end_time: Optional[int] = None,
    schema_provider: Optional[StreamSchemaProvider] = None,
) -> EventGenerator:
    """
    Build the generator matching `simulationType` of a source configuration.

    Raises
    ------
    InvalidConfigError
        If the simulation type is missing or not supported.
    """
    simulation_type = str(source_config.get(SIMULATION_TYPE) or "").strip().upper()
    factories = _generator_factories()
    if simulation_type not in factories:
        raise InvalidConfigError(
            f"Unsupported simulation type '{source_config.get(SIMULATION_TYPE)}'. "
            f"Available: {', '.join(available_simulation_types())}. "
            f"Invalid source configuration : {render_config(source_config)}",
            stream_name=source_config.get("streamName"),
            config=render_config(source_config),
        )
    return factories[simulation_type](
        source_config,
        timestamp_start_time,
        timestamp_end_time,
        schema_provider=schema_provider,
    )


__all__ = [
    # Interfaces
    "AbstractEventGenerator",
    "EventGenerator",
    "UNBOUNDED_END_TIME",
    # Concrete generators
    "DatabaseEventGenerator",
    "RandomEventGenerator",
    # Factory
    "DATABASE_SIMULATION",
    "RANDOM_DATA_SIMULATION",
    "available_simulation_types",
    "create_generator",
]
