"""
Stream schema lookup for the generators.

Generators resolve a (execution context, stream) pair to its ordered attribute
list through a StreamSchemaProvider. The processing engine normally owns that
information; InMemoryStreamRegistry is the provider used by the CLI and tests,
and a process-wide instance is available through `get_stream_registry()`.
"""

from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional, Protocol, Tuple, runtime_checkable

from event_simulator.domain.models import StreamAttribute
from event_simulator.utils.logging import get_logger

log = get_logger(__name__)


@runtime_checkable
class StreamSchemaProvider(Protocol):
    """Resolves the attributes of a deployed stream."""

    def get_stream_attributes(
        self, execution_context_name: str, stream_name: str
    ) -> Optional[List[StreamAttribute]]:
        """
        Return the stream's attributes in schema order, or None if the stream
        is not currently deployed.
        """
        ...


class InMemoryStreamRegistry:
    """
    Thread-safe in-memory StreamSchemaProvider.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._streams: Dict[Tuple[str, str], Tuple[StreamAttribute, ...]] = {}

    def register_stream(
        self,
        execution_context_name: str,
        stream_name: str,
        attributes: Iterable[StreamAttribute | dict],
    ) -> None:
        parsed = tuple(
            attr if isinstance(attr, StreamAttribute) else StreamAttribute.model_validate(attr)
            for attr in attributes
        )
        with self._lock:
            self._streams[(execution_context_name, stream_name)] = parsed
        log.debug(
            "Registered stream",
            extra={
                "stream": stream_name,
                "execution_context": execution_context_name,
                "attributes": len(parsed),
            },
        )

    def unregister_stream(self, execution_context_name: str, stream_name: str) -> None:
        with self._lock:
            self._streams.pop((execution_context_name, stream_name), None)

    def clear(self) -> None:
        with self._lock:
            self._streams.clear()

    def get_stream_attributes(
        self, execution_context_name: str, stream_name: str
    ) -> Optional[List[StreamAttribute]]:
        with self._lock:
            attributes = self._streams.get((execution_context_name, stream_name))
        return list(attributes) if attributes is not None else None


_default_registry = InMemoryStreamRegistry()


def get_stream_registry() -> InMemoryStreamRegistry:
    """Return the process-wide registry used when no provider is passed explicitly."""
    return _default_registry


__all__ = [
    "StreamSchemaProvider",
    "InMemoryStreamRegistry",
    "get_stream_registry",
]
