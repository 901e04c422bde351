import csv
from pathlib import Path

import pytest

from event_simulator import config
from event_simulator.domain.models import StreamAttribute
from event_simulator.generators import available_simulation_types
from event_simulator.infrastructure.stream_registry import InMemoryStreamRegistry
from scripts import seed_table


def test_get_settings_defaults(monkeypatch):
    monkeypatch.delenv("SIM_DEFAULT_TIMESTAMP_INTERVAL_MS", raising=False)
    monkeypatch.delenv("SIM_MAX_CONSECUTIVE_FAILURES", raising=False)
    settings = config.get_settings()
    assert settings.default_timestamp_interval_ms == 1000
    assert settings.max_consecutive_failures > 0
    assert settings.fetch_batch_size > 0
    assert settings.db_connect_attempts >= 1


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("SIM_DEFAULT_TIMESTAMP_INTERVAL_MS", "250")
    monkeypatch.setenv("SIM_MAX_CONSECUTIVE_FAILURES", "2")
    settings = config.get_settings()
    assert settings.default_timestamp_interval_ms == 250
    assert settings.max_consecutive_failures == 2


def test_default_interval_follows_settings(monkeypatch, registry, random_config):
    from event_simulator.generators.random_generator import RandomEventGenerator

    monkeypatch.setenv("SIM_DEFAULT_TIMESTAMP_INTERVAL_MS", "500")
    del random_config["timestampInterval"]

    generator = RandomEventGenerator(random_config, 0, 1_000, schema_provider=registry)
    generator.start()

    assert [e.timestamp for e in generator] == [0, 500, 1_000]


def test_available_simulation_types_contains_known_entries():
    names = available_simulation_types()
    assert names == ["DATABASE_SIMULATION", "RANDOM_DATA_SIMULATION"]


def test_registry_register_and_unregister():
    registry = InMemoryStreamRegistry()
    registry.register_stream("App", "S", [{"name": "a", "type": "int"}, StreamAttribute(name="b", type="STRING")])

    attributes = registry.get_stream_attributes("App", "S")
    assert [a.name for a in attributes] == ["a", "b"]
    assert registry.get_stream_attributes("Other", "S") is None

    registry.unregister_stream("App", "S")
    assert registry.get_stream_attributes("App", "S") is None


def test_registry_rejects_unknown_attribute_type():
    with pytest.raises(ValueError):
        InMemoryStreamRegistry().register_stream("App", "S", [{"name": "a", "type": "OBJECT"}])


def test_seed_table_writes_csv(tmp_path: Path):
    csv_path = tmp_path / "rows.csv"
    # Generate a tiny dataset without loading into DB
    seed_table._generate_rows_csv(csv_path, rows=5, batch_size=2, seed=123, start_ts=100, step_ms=10)
    assert csv_path.exists()
    with csv_path.open("r", newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    # header + 5 rows = 6 lines
    assert len(rows) == 6
    assert rows[0] == ["ts", "sensor_id", "reading", "active", "hits"]
    assert [int(r[0]) for r in rows[1:]] == [100, 110, 120, 130, 140]
    assert all(r[3] in ("t", "f") for r in rows[1:])


def test_settings_only_expose_simulator_fields():
    assert set(config.Settings.model_fields) == {
        "log_level",
        "log_json",
        "default_timestamp_interval_ms",
        "max_consecutive_failures",
        "fetch_batch_size",
        "db_connect_timeout_s",
        "db_connect_attempts",
    }
