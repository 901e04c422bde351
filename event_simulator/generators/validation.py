"""
Shared validation helpers for source configurations.

Source configurations arrive as already-parsed mappings (typically decoded
JSON) using the camelCase keys below. These helpers implement the checks both
generator variants perform before building their validated config models.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence

from event_simulator.domain.models import StreamAttribute
from event_simulator.exceptions import InvalidConfigError, SimulatorInitializationError, render_config
from event_simulator.infrastructure.stream_registry import StreamSchemaProvider
from event_simulator.utils.logging import get_logger

log = get_logger(__name__)

# Source configuration keys
SIMULATION_TYPE = "simulationType"
STREAM_NAME = "streamName"
EXECUTION_CONTEXT_NAME = "executionContextName"
TIMESTAMP_INTERVAL = "timestampInterval"
ATTRIBUTE_CONFIGURATION = "attributeConfiguration"
DRIVER = "driver"
CONNECTION_LOCATION = "connectionLocation"
USER_NAME = "username"
PASSWORD = "password"
TABLE_NAME = "tableName"
COLUMN_NAMES = "columnNames"
TIMESTAMP_ATTRIBUTE = "timestampAttribute"


def check_availability(config: Mapping[str, Any], key: str) -> bool:
    """True if `key` is present, not null, and not an empty string."""
    if key not in config:
        return False
    value = config[key]
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def check_availability_of_array(config: Mapping[str, Any], key: str) -> bool:
    """True if `key` holds a non-empty list."""
    value = config.get(key)
    return isinstance(value, (list, tuple)) and len(value) > 0


def require(
    config: Mapping[str, Any],
    key: str,
    description: str,
    simulation: str,
) -> str:
    """
    Return the stripped string value of `key` or raise InvalidConfigError naming it.
    """
    if not check_availability(config, key):
        stream_name = config.get(STREAM_NAME)
        target = f" of stream '{stream_name}'" if stream_name else ""
        raise InvalidConfigError(
            f"{description} is required for {simulation}{target}. "
            f"Invalid source configuration : {render_config(config)}",
            stream_name=stream_name,
            execution_context_name=config.get(EXECUTION_CONTEXT_NAME),
            config=render_config(config),
        )
    return str(config[key]).strip()


def parse_interval(config: Mapping[str, Any], simulation: str, allow_zero: bool = False) -> int:
    """
    Parse a positive millisecond interval from `timestampInterval`.

    With `allow_zero` a zero interval is returned as is so the caller can fall
    back to its default. The caller must have checked the key is available.
    """
    raw = config[TIMESTAMP_INTERVAL]
    interval: Optional[int] = None
    if isinstance(raw, int) and not isinstance(raw, bool):
        interval = raw
    elif isinstance(raw, str) and raw.strip().lstrip("-").isdigit():
        interval = int(raw.strip())
    if interval is None or interval < 0 or (interval == 0 and not allow_zero):
        raise InvalidConfigError(
            f"Time interval between timestamps of 2 consecutive events must be a positive value "
            f"for {simulation} of stream '{config.get(STREAM_NAME)}'. "
            f"Invalid source configuration : {render_config(config)}",
            stream_name=config.get(STREAM_NAME),
            execution_context_name=config.get(EXECUTION_CONTEXT_NAME),
            config=render_config(config),
        )
    return interval


def default_interval(config: Mapping[str, Any], simulation: str, interval_ms: int) -> int:
    """Log that no time source was configured and return the default interval."""
    log.warning(
        f"Time interval is required for {simulation} of stream '{config.get(STREAM_NAME)}'. "
        f"Time interval will be set to {interval_ms} ms for source configuration : "
        f"{render_config(config)}",
        extra={"stream": config.get(STREAM_NAME), "interval_ms": interval_ms},
    )
    return interval_ms


def resolve_stream_attributes(
    provider: StreamSchemaProvider,
    execution_context_name: str,
    stream_name: str,
    config: Mapping[str, Any],
    generator_kind: str,
) -> List[StreamAttribute]:
    """
    Look up the stream schema; an absent schema means the stream is not deployed.
    """
    attributes = provider.get_stream_attributes(execution_context_name, stream_name)
    if attributes is None:
        message = (
            f"Error occurred when initializing {generator_kind} to simulate stream '{stream_name}'. "
            f"Stream '{stream_name}' does not exist in execution context '{execution_context_name}'. "
            f"Invalid source configuration : {render_config(config)}"
        )
        log.error(message, extra={"stream": stream_name, "execution_context": execution_context_name})
        raise SimulatorInitializationError(
            message,
            stream_name=stream_name,
            execution_context_name=execution_context_name,
            config=render_config(config),
        )
    return list(attributes)


def split_column_names(value: Any) -> Sequence[str]:
    """Split a comma separated column list (or a list of names) into trimmed entries."""
    if isinstance(value, (list, tuple)):
        return [str(item).strip() if item is not None else "" for item in value]
    return [part.strip() for part in str(value).split(",")]


__all__ = [
    "check_availability",
    "check_availability_of_array",
    "default_interval",
    "parse_interval",
    "require",
    "resolve_stream_attributes",
    "split_column_names",
]
