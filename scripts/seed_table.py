"""
Seed a table for database simulation.

Implements deterministic pseudo-random row generation, CSV emission, and Postgres
COPY loading into a `sensor_readings`-shaped table whose rows can be replayed by
the database event generator.
"""

from __future__ import annotations

import csv
import random
import sys
import tempfile
import time
from pathlib import Path

import psycopg
import typer
from psycopg import sql

app = typer.Typer(help="Generate rows and load them into Postgres for database simulation (CSV + COPY).")

COLUMNS = ["ts", "sensor_id", "reading", "active", "hits"]


def _generate_rows_csv(
    csv_path: Path,
    rows: int,
    batch_size: int,
    seed: int,
    start_ts: int = 0,
    step_ms: int = 1000,
) -> None:
    rng = random.Random(seed)
    sensors = ["alpha", "beta", "gamma", "delta"]

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(COLUMNS)

        buffer: list[list[str]] = []
        for i in range(rows):
            buffer.append(
                [
                    str(start_ts + i * step_ms),
                    rng.choice(sensors),
                    f"{rng.uniform(-50, 150):.3f}",
                    "t" if rng.random() < 0.8 else "f",
                    str(rng.randint(0, 1000)),
                ]
            )
            if len(buffer) >= batch_size:
                writer.writerows(buffer)
                buffer.clear()
        if buffer:
            writer.writerows(buffer)


def _create_table(conn: psycopg.Connection, table: str) -> None:
    with conn.cursor() as cur:
        cur.execute(
            sql.SQL(
                """
                CREATE TABLE IF NOT EXISTS {table} (
                    id BIGSERIAL PRIMARY KEY,
                    ts BIGINT NOT NULL,
                    sensor_id TEXT NOT NULL,
                    reading DOUBLE PRECISION,
                    active BOOLEAN,
                    hits INTEGER
                )
                """
            ).format(table=sql.Identifier(table))
        )


def _copy_into_db(dsn: str, csv_path: Path, table: str = "sensor_readings") -> int:
    with psycopg.connect(dsn) as conn:
        _create_table(conn, table)
        with conn.cursor() as cur:
            with cur.copy(
                sql.SQL("COPY {table} ({fields}) FROM STDIN WITH (FORMAT csv, HEADER TRUE)").format(
                    table=sql.Identifier(table),
                    fields=sql.SQL(", ").join(sql.Identifier(c) for c in COLUMNS),
                )
            ) as copy:
                with csv_path.open("r", encoding="utf-8") as f:
                    for line in f:
                        copy.write(line)
            conn.commit()
    return 0


@app.command()
def main(
    dsn: str = typer.Option(
        ...,
        "--dsn",
        envvar="DATABASE_URL",
        help="Postgres DSN to load into.",
    ),
    rows: int = typer.Option(
        10_000,
        "--rows",
        "-r",
        help="Number of rows to generate.",
    ),
    table: str = typer.Option(
        "sensor_readings",
        "--table",
        "-t",
        help="Target table (created if missing).",
    ),
    start_ts: int = typer.Option(
        0,
        "--start-ts",
        help="Timestamp (ms) of the first row.",
    ),
    step_ms: int = typer.Option(
        1000,
        "--step-ms",
        help="Timestamp step between consecutive rows.",
    ),
    batch_size: int = typer.Option(
        10_000,
        "--batch-size",
        "-b",
        help="Batch size for CSV buffering during generation.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
) -> None:
    """
    Generate rows and load them into Postgres using COPY.
    """
    start = time.perf_counter()
    tmpdir = Path(tempfile.mkdtemp(prefix="event_simulator_csv_"))
    csv_path = tmpdir / f"{table}.csv"

    typer.echo(f"Generating {rows:,} rows -> {csv_path} (seed={seed})")
    _generate_rows_csv(csv_path, rows=rows, batch_size=batch_size, seed=seed, start_ts=start_ts, step_ms=step_ms)

    typer.echo(f"Loading CSV into '{table}' via COPY...")
    _copy_into_db(dsn, csv_path, table)
    typer.echo(f"Done in {time.perf_counter() - start:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
