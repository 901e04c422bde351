from __future__ import annotations

import json
import sys
from itertools import islice
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from event_simulator.config import get_settings
from event_simulator.exceptions import EventSimulatorError
from event_simulator.generators import available_simulation_types, create_generator
from event_simulator.generators.attributes import available_generation_types
from event_simulator.infrastructure.db_connector import supported_drivers
from event_simulator.infrastructure.stream_registry import get_stream_registry
from event_simulator.utils.logging import configure_logging

app = typer.Typer(help="Event Simulator CLI.")


def _load_document(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        document = json.load(f)
    if not isinstance(document, dict) or not isinstance(document.get("source"), dict):
        raise typer.BadParameter(f"'{path}' must contain a JSON object with a 'source' object.")
    return document


def _register_streams(document: Dict[str, Any]) -> None:
    registry = get_stream_registry()
    for context_name, streams in (document.get("streams") or {}).items():
        for stream_name, attributes in streams.items():
            registry.register_stream(context_name, stream_name, attributes)


@app.command()
def info() -> None:
    """
    Show effective configuration values and supported sources.
    """
    settings = get_settings()
    typer.echo(
        f"interval={settings.default_timestamp_interval_ms}ms "
        f"max_consecutive_failures={settings.max_consecutive_failures} "
        f"fetch_batch={settings.fetch_batch_size} log_level={settings.log_level}"
    )
    typer.echo("Simulation types: " + ", ".join(available_simulation_types()))
    typer.echo("Random generation types: " + ", ".join(available_generation_types()))
    typer.echo("Database drivers: " + ", ".join(supported_drivers()))


@app.command()
def simulate(
    config: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="JSON file with 'streams' (context -> stream -> attributes) and a 'source' configuration.",
    ),
    start: Optional[int] = typer.Option(
        None,
        "--start",
        "-s",
        help="Timestamp start time in ms (default: document 'startTimestamp' or 0).",
    ),
    end: Optional[int] = typer.Option(
        None,
        "--end",
        "-e",
        help="Timestamp end time in ms (default: document 'endTimestamp'; unbounded if absent).",
    ),
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-n",
        help="Stop after emitting this many events.",
    ),
) -> None:
    """
    Run one source configuration and print its events as JSON lines.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    document = _load_document(config)
    _register_streams(document)
    start_time = start if start is not None else int(document.get("startTimestamp") or 0)
    end_time = end if end is not None else document.get("endTimestamp")

    try:
        generator = create_generator(document["source"], start_time, end_time)
        generator.start()
        try:
            events = iter(generator.poll, None)
            for event in islice(events, limit):
                typer.echo(
                    json.dumps(
                        {
                            "stream": generator.stream_name,
                            "timestamp": event.timestamp,
                            "data": list(event.data),
                        },
                        default=str,
                    )
                )
        finally:
            generator.stop()
    except EventSimulatorError as exc:
        typer.echo(f"Simulation failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
