"""
Random data event generator.

Builds one attribute synthesizer per stream attribute and emits events at a
fixed timestamp interval starting from the window start, until the window end
(or forever for an unbounded window).
"""

from __future__ import annotations

import random
from typing import Any, List, Mapping, Optional

from event_simulator.config import get_settings
from event_simulator.domain.models import Event, RandomSimulationConfig
from event_simulator.exceptions import InsufficientAttributesError, InvalidConfigError, render_config
from event_simulator.generators.abstract import AbstractEventGenerator, build_event
from event_simulator.generators.attributes import AttributeSynthesizer, build_synthesizer
from event_simulator.generators.validation import (
    ATTRIBUTE_CONFIGURATION,
    EXECUTION_CONTEXT_NAME,
    STREAM_NAME,
    TIMESTAMP_INTERVAL,
    check_availability,
    check_availability_of_array,
    default_interval,
    parse_interval,
    require,
    resolve_stream_attributes,
)
from event_simulator.infrastructure.stream_registry import StreamSchemaProvider, get_stream_registry
from event_simulator.utils.logging import get_logger

log = get_logger(__name__)

_SIMULATION = "random data simulation"


class RandomEventGenerator(AbstractEventGenerator):
    """
    Produces events from per-attribute random generation rules.

    Parameters
    ----------
    source_config : Mapping[str, Any]
        Parsed source configuration (`streamName`, `executionContextName`,
        `attributeConfiguration`, optional `timestampInterval`).
    timestamp_start_time : int
        Timestamp of the first event, in ms.
    timestamp_end_time : int | None
        Last permitted timestamp; None (or -1) for an unbounded stream.
    schema_provider : StreamSchemaProvider | None
        Resolves the stream schema; defaults to the process-wide registry.
    rng : random.Random | None
        Source of randomness shared by all synthesizers (seed it for
        reproducible runs).
    """

    kind = "random event generator"

    def __init__(
        self,
        source_config: Mapping[str, Any],
        timestamp_start_time: int,
        timestamp_end_time: Optional[int],
        schema_provider: Optional[StreamSchemaProvider] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        provider = schema_provider or get_stream_registry()
        self.config, attributes, self._synthesizers = self._validate(source_config, provider, rng)
        super().__init__(
            stream_name=self.config.stream_name,
            execution_context_name=self.config.execution_context_name,
            attributes=attributes,
            timestamp_start_time=timestamp_start_time,
            timestamp_end_time=timestamp_end_time,
            timestamp_interval=self.config.timestamp_interval,
        )

    @staticmethod
    def _validate(
        source_config: Mapping[str, Any],
        provider: StreamSchemaProvider,
        rng: Optional[random.Random],
    ) -> tuple:
        stream_name = require(source_config, STREAM_NAME, "Stream name", _SIMULATION)
        execution_context_name = require(
            source_config, EXECUTION_CONTEXT_NAME, "Execution context name", _SIMULATION
        )
        attributes = resolve_stream_attributes(
            provider, execution_context_name, stream_name, source_config, "random event generator"
        )

        if not check_availability_of_array(source_config, ATTRIBUTE_CONFIGURATION):
            raise InvalidConfigError(
                f"Attribute configuration is required for {_SIMULATION} of stream '{stream_name}'. "
                f"Invalid source configuration : {render_config(source_config)}",
                stream_name=stream_name,
                execution_context_name=execution_context_name,
                config=render_config(source_config),
            )
        rules = list(source_config[ATTRIBUTE_CONFIGURATION])
        if len(rules) != len(attributes):
            message = (
                f"Stream '{stream_name}' has {len(attributes)} attribute(s) but random source "
                f"configuration {render_config(source_config)} contains attribute configurations "
                f"for {len(rules)} attribute(s)."
            )
            log.error(message, extra={"stream": stream_name, "execution_context": execution_context_name})
            raise InsufficientAttributesError(
                message,
                expected=len(attributes),
                actual=len(rules),
                stream_name=stream_name,
                execution_context_name=execution_context_name,
                config=render_config(source_config),
            )

        synthesizers: List[AttributeSynthesizer] = []
        for rule, attribute in zip(rules, attributes):
            try:
                synthesizers.append(build_synthesizer(rule, attribute, rng=rng))
            except InvalidConfigError as exc:
                raise InvalidConfigError(
                    f"{exc} Invalid source configuration of stream '{stream_name}' : "
                    f"{render_config(source_config)}",
                    stream_name=stream_name,
                    execution_context_name=execution_context_name,
                    config=render_config(source_config),
                ) from exc

        if check_availability(source_config, TIMESTAMP_INTERVAL):
            interval = parse_interval(source_config, _SIMULATION)
        else:
            interval = default_interval(
                source_config, _SIMULATION, get_settings().default_timestamp_interval_ms
            )

        config = RandomSimulationConfig(
            stream_name=stream_name,
            execution_context_name=execution_context_name,
            timestamp_interval=interval,
            attribute_configs=tuple(dict(rule) for rule in rules),
        )
        return config, attributes, synthesizers

    def _compute_next_event(self) -> Optional[Event]:
        if not self._within_window():
            return None
        timestamp = self._next_synthetic_timestamp()
        values = [synthesizer.generate() for synthesizer in self._synthesizers]
        return build_event(self._attributes, values, timestamp)

    def describe_config(self) -> str:
        return (
            f"{{streamName: {self.config.stream_name}, "
            f"executionContextName: {self.config.execution_context_name}, "
            f"timestampInterval: {self.config.timestamp_interval}, "
            f"attributeConfiguration: [{', '.join(s.describe() for s in self._synthesizers)}]}}"
        )


__all__ = ["RandomEventGenerator"]
