"""
Event generator interface and shared lookahead machinery.

Every generator variant (random, database) implements the EventGenerator
protocol that an external multiplexer programs against: `start`, `stop`,
`peek`, `poll`, `initialize_resources`, plus the `stream_name` and
`execution_context_name` routing identifiers.

AbstractEventGenerator holds what the variants share: the single lookahead
slot, the timestamp window and interval stepper, and the advance loop that
skips events which fail individually while bounding consecutive failures.
"""

from __future__ import annotations

import abc
from typing import Any, Iterator, List, Optional, Protocol, Sequence, runtime_checkable

from event_simulator.config import get_settings
from event_simulator.domain.models import Event, StreamAttribute
from event_simulator.exceptions import EventGenerationError, InvalidEventError
from event_simulator.generators.attributes import conforms_to
from event_simulator.utils.logging import get_logger

log = get_logger(__name__)

# Legacy end-time sentinel for an unbounded window.
UNBOUNDED_END_TIME = -1


@runtime_checkable
class EventGenerator(Protocol):
    """
    Common interface all event generators must implement.

    Instances are not thread-safe; one worker drives a generator at a time.
    """

    @property
    def stream_name(self) -> str:
        ...

    @property
    def execution_context_name(self) -> str:
        ...

    def start(self) -> None:
        """Acquire the event source and load the first event into the lookahead slot."""
        ...

    def stop(self) -> None:
        """Release backend resources; safe to call at any point of the lifecycle."""
        ...

    def peek(self) -> Optional[Event]:
        """Return the next event without consuming it, or None when exhausted."""
        ...

    def poll(self) -> Optional[Event]:
        """Return the next event and advance, or None when exhausted."""
        ...

    def initialize_resources(self) -> None:
        """(Re)acquire backend resources so a stopped simulation can resume."""
        ...


def normalize_end_time(timestamp_end_time: Optional[int]) -> Optional[int]:
    """Map the legacy ``-1`` sentinel to None (unbounded)."""
    if timestamp_end_time is None or timestamp_end_time == UNBOUNDED_END_TIME:
        return None
    return timestamp_end_time


def build_event(attributes: Sequence[StreamAttribute], values: Sequence[Any], timestamp: int) -> Event:
    """
    Assemble an event, checking every value against its attribute's declared type.

    Raises
    ------
    InvalidEventError
        If the value count or any value type does not match the schema.
    """
    if len(values) != len(attributes):
        raise InvalidEventError(
            f"Event has {len(values)} value(s) but the stream has {len(attributes)} attribute(s)"
        )
    for attribute, value in zip(attributes, values):
        if not conforms_to(attribute.type, value):
            raise InvalidEventError(
                f"Value {value!r} is not a valid {attribute.type.value} "
                f"for attribute '{attribute.name}'"
            )
    return Event(timestamp=timestamp, data=tuple(values))


class AbstractEventGenerator(abc.ABC):
    """
    ABC helper for class-based generators.

    Subclasses implement `_compute_next_event` (return the next event, or None
    when the source is exhausted) and may override the `_open_source`,
    `_release_resources`, and `initialize_resources` hooks.
    """

    kind: str = "event generator"

    def __init__(
        self,
        stream_name: str,
        execution_context_name: str,
        attributes: List[StreamAttribute],
        timestamp_start_time: int,
        timestamp_end_time: Optional[int],
        timestamp_interval: Optional[int],
    ) -> None:
        self._stream_name = stream_name
        self._execution_context_name = execution_context_name
        self._attributes = list(attributes)
        self._timestamp_start_time = timestamp_start_time
        self._timestamp_end_time = normalize_end_time(timestamp_end_time)
        self._timestamp_interval = timestamp_interval
        self._current_timestamp = timestamp_start_time
        self._next_event: Optional[Event] = None
        self._exhausted = False
        self._deferred_error: Optional[EventGenerationError] = None
        self._max_consecutive_failures = get_settings().max_consecutive_failures
        log.debug(
            f"Timestamp range initiated for {self.kind} for stream '{stream_name}'. "
            f"Timestamp start time : {timestamp_start_time} and timestamp end time : "
            f"{self._timestamp_end_time if self._timestamp_end_time is not None else 'unbounded'}",
            extra=self._log_context(),
        )

    @property
    def stream_name(self) -> str:
        return self._stream_name

    @property
    def execution_context_name(self) -> str:
        return self._execution_context_name

    @property
    def attributes(self) -> List[StreamAttribute]:
        return list(self._attributes)

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def start(self) -> None:
        if self._exhausted:
            log.debug(f"{self.kind} for stream '{self._stream_name}' is exhausted; start ignored")
            return
        self._open_source()
        self._advance()
        log.debug(f"Start {self.kind} for stream '{self._stream_name}'", extra=self._log_context())

    def stop(self) -> None:
        pending, self._next_event = self._next_event, None
        if pending is not None:
            self._rewind(pending)
        self._release_resources()
        log.debug(f"Stop {self.kind} for stream '{self._stream_name}'", extra=self._log_context())

    def peek(self) -> Optional[Event]:
        return self._next_event

    def poll(self) -> Optional[Event]:
        """
        Return the next event and advance, or None when exhausted.

        A fatal error hit while refilling the lookahead is raised by the
        following call, after the event already taken out has been returned.
        """
        if self._deferred_error is not None:
            error, self._deferred_error = self._deferred_error, None
            raise error
        event = self._next_event
        if event is not None:
            try:
                self._advance()
            except EventGenerationError as exc:
                self._deferred_error = exc
        return event

    def initialize_resources(self) -> None:
        """No backend resources by default."""

    def _open_source(self) -> None:
        """Hook run by `start` before the first event is computed."""

    def _release_resources(self) -> None:
        """Hook run by `stop`."""

    def _rewind(self, pending: Event) -> None:
        """Give back the undelivered lookahead event so a resumed run produces it again."""
        if self._timestamp_interval is not None:
            self._current_timestamp = pending.timestamp

    @abc.abstractmethod
    def _compute_next_event(self) -> Optional[Event]:  # pragma: no cover - interface only
        """Produce the next event, or None once the source is exhausted."""
        raise NotImplementedError

    @abc.abstractmethod
    def describe_config(self) -> str:  # pragma: no cover - interface only
        """Render the active configuration for logs and errors."""
        raise NotImplementedError

    def _within_window(self) -> bool:
        return self._timestamp_end_time is None or self._current_timestamp <= self._timestamp_end_time

    def _next_synthetic_timestamp(self) -> int:
        assert self._timestamp_interval is not None
        timestamp = self._current_timestamp
        self._current_timestamp += self._timestamp_interval
        return timestamp

    def _advance(self) -> None:
        """
        Replace the lookahead with the next event, skipping events that fail individually.

        Raises
        ------
        EventGenerationError
            On a backend failure, or once `max_consecutive_failures` consecutive
            events could not be produced.
        """
        if self._exhausted:
            self._next_event = None
            return
        failures = 0
        while True:
            try:
                event = self._compute_next_event()
            except InvalidEventError as exc:
                failures += 1
                log.error(
                    f"Error occurred when generating event using {self.kind} to simulate stream "
                    f"'{self._stream_name}' using source configuration {self.describe_config()}. "
                    f"Drop event and create next event.",
                    exc_info=exc,
                    extra={**self._log_context(), "consecutive_failures": failures},
                )
                if failures >= self._max_consecutive_failures:
                    self._mark_exhausted()
                    raise EventGenerationError(
                        f"{failures} consecutive events could not be generated for stream "
                        f"'{self._stream_name}' using source configuration {self.describe_config()}",
                        stream_name=self._stream_name,
                        execution_context_name=self._execution_context_name,
                        config=self.describe_config(),
                    ) from exc
                continue
            except EventGenerationError:
                self._mark_exhausted()
                raise
            self._next_event = event
            if event is None:
                self._exhausted = True
            return

    def _mark_exhausted(self) -> None:
        self._next_event = None
        self._exhausted = True

    def _log_context(self) -> dict:
        return {"stream": self._stream_name, "execution_context": self._execution_context_name}

    def __enter__(self) -> "AbstractEventGenerator":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def __iter__(self) -> Iterator[Event]:
        while True:
            event = self.poll()
            if event is None:
                return
            yield event

    def __str__(self) -> str:
        return self.describe_config()


__all__ = [
    "AbstractEventGenerator",
    "EventGenerator",
    "UNBOUNDED_END_TIME",
    "build_event",
    "normalize_end_time",
]
